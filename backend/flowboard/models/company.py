"""
Tenant models: companies and their users.
"""
import uuid
from sqlalchemy import Column, String, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from flowboard.db.database import Base


def new_id() -> str:
    return str(uuid.uuid4())


class Company(Base):
    """
    Company table - the isolation boundary for devices and dashboards.

    Fields:
        id: Opaque tenant id
        name: Company display name
        created_at: Timestamp when company was created
    """
    __tablename__ = "companies"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    users = relationship("User", back_populates="company", cascade="all, delete-orphan")
    devices = relationship("Device", back_populates="company", cascade="all, delete-orphan")
    dashboards = relationship("Dashboard", back_populates="company", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Company(id='{self.id}', name='{self.name}')>"


class User(Base):
    """
    User table. Credentials live with the identity service; this row only
    anchors ownership (created_by) and the company/role a token claims.

    Fields:
        id: Opaque user id (token ``sub``)
        company_id: Owning company
        email: User's email address
        role: 'admin' or 'user'
    """
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    company_id = Column(String(36), ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    role = Column(String(16), nullable=False, default="user")
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    company = relationship("Company", back_populates="users")

    def __repr__(self):
        return f"<User(id='{self.id}', email='{self.email}', role='{self.role}')>"
