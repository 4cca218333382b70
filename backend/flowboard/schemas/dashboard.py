from pydantic import Field
from typing import List, Optional, Dict, Any
from datetime import datetime

from flowboard.schemas.common import CamelModel


class LayoutConfig(CamelModel):
    """Grid placement of one widget (react-grid-layout units)."""
    x: int = Field(..., ge=0)
    y: int = Field(..., ge=0)
    w: int = Field(..., ge=1)
    h: int = Field(..., ge=1)
    min_w: Optional[int] = Field(None, ge=1)
    min_h: Optional[int] = Field(None, ge=1)
    static: bool = False


class DashboardResponse(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    created_by: Optional[str] = None
    is_active: bool
    grid_config: Dict[str, Any] = Field(default_factory=dict)
    version: int
    created_at: Optional[datetime] = None
    can_edit: bool = False


class WidgetView(CamelModel):
    """A layout row joined with its widget definition and widget type."""
    layout_id: str
    widget_id: str
    name: str
    description: Optional[str] = None
    type: str
    component: str
    data_source_config: Dict[str, Any] = Field(default_factory=dict)
    layout_config: Dict[str, Any] = Field(default_factory=dict)
    instance_config: Dict[str, Any] = Field(default_factory=dict)
    display_order: int


class UserDashboardResponse(CamelModel):
    dashboard: DashboardResponse
    widgets: List[WidgetView]


class AddToDashboardRequest(CamelModel):
    widget_definition_id: Optional[str] = None
    layout_config: Optional[LayoutConfig] = None
    instance_config: Dict[str, Any] = Field(default_factory=dict)


class AddToDashboardResponse(CamelModel):
    layout_id: str


class LayoutUpdate(CamelModel):
    layout_id: str
    layout_config: LayoutConfig


class UpdateLayoutRequest(CamelModel):
    layouts: Optional[List[LayoutUpdate]] = None
