"""
Device models: catalog, hierarchy, devices and their readings.
"""
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from flowboard.db.database import Base, JSONType
from flowboard.models.company import new_id


class DeviceType(Base):
    """Classifies devices, e.g. a multiphase flow meter."""
    __tablename__ = "device_types"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    description = Column(String, nullable=True)

    properties = relationship(
        "DeviceTypeProperty", back_populates="device_type",
        cascade="all, delete-orphan", order_by="DeviceTypeProperty.id"
    )

    def __repr__(self):
        return f"<DeviceType(id={self.id}, name='{self.name}')>"


class DeviceTypeProperty(Base):
    """
    A measured property a device type reports inside ``DeviceReading.data``.

    Fields:
        name: Human name, e.g. 'Oil Flow Rate'
        display_name: Short label used as series key, e.g. 'OFR'
        data_source_property: Key inside the reading's data map
        unit: Unit of measure, e.g. 'l/min'
        data_type: 'number' for anything charted
    """
    __tablename__ = "device_type_properties"

    id = Column(Integer, primary_key=True, index=True)
    device_type_id = Column(Integer, ForeignKey("device_types.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    display_name = Column(String, nullable=False)
    data_source_property = Column(String, nullable=False)
    unit = Column(String, nullable=True)
    data_type = Column(String, nullable=False, default="number")

    device_type = relationship("DeviceType", back_populates="properties")


class HierarchyNode(Base):
    """
    Location/organizational grouping. Nodes form a forest through parent_id;
    a node without a parent is a root.
    """
    __tablename__ = "hierarchy_nodes"

    id = Column(String(36), primary_key=True, default=new_id)
    parent_id = Column(String(36), ForeignKey("hierarchy_nodes.id", ondelete="CASCADE"), nullable=True, index=True)
    name = Column(String, nullable=False)
    level = Column(String, nullable=True)  # region, field, well, ...

    def __repr__(self):
        return f"<HierarchyNode(id='{self.id}', name='{self.name}', parent='{self.parent_id}')>"


class Device(Base):
    __tablename__ = "devices"

    id = Column(String(36), primary_key=True, default=new_id)
    company_id = Column(String(36), ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    device_type_id = Column(Integer, ForeignKey("device_types.id"), nullable=False, index=True)
    hierarchy_id = Column(String(36), ForeignKey("hierarchy_nodes.id"), nullable=True, index=True)
    serial_number = Column(String, nullable=False, index=True)
    metadata_ = Column("metadata", JSONType, default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    company = relationship("Company", back_populates="devices")
    device_type = relationship("DeviceType")
    hierarchy = relationship("HierarchyNode")

    def __repr__(self):
        return f"<Device(id='{self.id}', serial='{self.serial_number}')>"


class DeviceReading(Base):
    """Append-only time-series log, one row per observation."""
    __tablename__ = "device_readings"
    __table_args__ = (
        Index("ix_device_readings_device_created", "device_id", "created_at"),
    )

    id = Column(Integer, primary_key=True)
    device_id = Column(String(36), ForeignKey("devices.id", ondelete="CASCADE"), nullable=False)
    serial_number = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    data = Column(JSONType, nullable=False, default=dict)

    device = relationship("Device")


class DeviceLatest(Base):
    """Most recent reading per device; upserted on every new reading."""
    __tablename__ = "device_latest"
    __table_args__ = (
        UniqueConstraint("device_id", name="uq_device_latest_device"),
    )

    id = Column(Integer, primary_key=True)
    device_id = Column(String(36), ForeignKey("devices.id", ondelete="CASCADE"), nullable=False)
    serial_number = Column(String, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False, index=True)
    data = Column(JSONType, nullable=False, default=dict)

    device = relationship("Device")
