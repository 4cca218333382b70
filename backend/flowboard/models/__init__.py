"""
Models package - exports all database models.
"""
from flowboard.models.company import Company, User
from flowboard.models.device import (
    DeviceType,
    DeviceTypeProperty,
    HierarchyNode,
    Device,
    DeviceReading,
    DeviceLatest,
)
from flowboard.models.widget import WidgetType, WidgetDefinition
from flowboard.models.dashboard import Dashboard, DashboardLayout

__all__ = [
    "Company",
    "User",
    "DeviceType",
    "DeviceTypeProperty",
    "HierarchyNode",
    "Device",
    "DeviceReading",
    "DeviceLatest",
    "WidgetType",
    "WidgetDefinition",
    "Dashboard",
    "DashboardLayout",
]
