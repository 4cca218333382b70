from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Boolean
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from flowboard.db.database import Base, JSONType
from flowboard.models.company import new_id


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Dashboard(Base):
    __tablename__ = "dashboards"

    id = Column(String(36), primary_key=True, default=new_id)
    company_id = Column(String(36), ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    created_by = Column(String(36), nullable=True)  # user id from the token
    is_active = Column(Boolean, nullable=False, default=True)
    grid_config = Column(JSONType, default=dict)  # columns, rowHeight, breakpoints
    version = Column(Integer, nullable=False, default=1)
    # Set client-side so rows created in the same second still order by creation
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    company = relationship("Company", back_populates="dashboards")
    layouts = relationship(
        "DashboardLayout", back_populates="dashboard",
        cascade="all, delete-orphan", order_by="DashboardLayout.display_order"
    )


class DashboardLayout(Base):
    """
    Placement of a widget definition on a dashboard. Removing a layout row
    leaves the widget definition in place.
    """
    __tablename__ = "dashboard_layouts"

    id = Column(String(36), primary_key=True, default=new_id)
    dashboard_id = Column(String(36), ForeignKey("dashboards.id", ondelete="CASCADE"), nullable=False, index=True)
    widget_definition_id = Column(String(36), ForeignKey("widget_definitions.id"), nullable=False)
    layout_config = Column(JSONType, nullable=False, default=dict)  # x, y, w, h, minW, minH, static
    instance_config = Column(JSONType, default=dict)
    display_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    dashboard = relationship("Dashboard", back_populates="layouts")
    widget_definition = relationship("WidgetDefinition")
