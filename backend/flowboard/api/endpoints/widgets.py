"""
Widget endpoints: catalog, widget creation and per-widget data.
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from flowboard.api.deps import get_current_user, require_admin, with_timeout
from flowboard.core.config import settings
from flowboard.db.database import get_db
from flowboard.schemas.auth import Principal
from flowboard.schemas.common import Envelope
from flowboard.schemas.widget import (
    AvailableWidgetsResponse,
    CatalogResponse,
    CreateWidgetRequest,
    CreateWidgetResponse,
    DevicePropertyResponse,
    DeviceTypeResponse,
    WidgetTypeResponse,
)
from flowboard.schemas.widget_data import (
    LatestDataResponse,
    TimeRange,
    WidgetDataFilters,
    WidgetDataResponse,
)
from flowboard.services.widget_data_service import WidgetDataService
from flowboard.services.widget_service import WidgetService


router = APIRouter(prefix=settings.API_PREFIX, tags=["Widgets"])


@router.get("/available-widgets", response_model=Envelope[AvailableWidgetsResponse])
async def available_widgets(
    device_type_id: Optional[int] = Query(None, alias="deviceTypeId"),
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Widget types a user can add, with the properties of the device type.
    """
    widget_types = await with_timeout(WidgetService.list_widget_types(db))
    properties = await with_timeout(WidgetService.list_properties(db, device_type_id))
    return Envelope[AvailableWidgetsResponse](
        data=AvailableWidgetsResponse(
            widget_types=[WidgetTypeResponse.model_validate(t) for t in widget_types],
            properties=[DevicePropertyResponse.model_validate(p) for p in properties],
        )
    )


@router.get("/device-types", response_model=Envelope[CatalogResponse])
async def device_types(
    current_user: Principal = Depends(require_admin("view the widget catalog")),
    db: AsyncSession = Depends(get_db)
):
    """
    Device types and the widget type catalog, for the widget builder.
    """
    device_types = await with_timeout(WidgetService.list_device_types(db))
    widget_types = await with_timeout(WidgetService.list_widget_types(db))
    return Envelope[CatalogResponse](
        data=CatalogResponse(
            device_types=[DeviceTypeResponse.model_validate(d) for d in device_types],
            widget_types=[WidgetTypeResponse.model_validate(t) for t in widget_types],
        )
    )


@router.post(
    "/create-widget",
    response_model=Envelope[CreateWidgetResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_widget(
    widget_in: CreateWidgetRequest,
    current_user: Principal = Depends(require_admin("create widgets")),
    db: AsyncSession = Depends(get_db)
):
    """
    Create a widget definition from a device type, widget type and properties.
    """
    widget = await with_timeout(WidgetService.create_widget(db, current_user, widget_in))
    return Envelope[CreateWidgetResponse](data=CreateWidgetResponse(widget_id=widget.id), message="Widget created")


@router.get("/widget-data/{widget_id}", response_model=Envelope[WidgetDataResponse])
async def widget_data(
    widget_id: str,
    time_range: TimeRange = Query(TimeRange(settings.DEFAULT_TIME_RANGE), alias="timeRange"),
    hierarchy_id: Optional[str] = Query(None, alias="hierarchyId"),
    device_id: Optional[str] = Query(None, alias="deviceId"),
    limit: int = Query(settings.DEFAULT_POINT_LIMIT, ge=1, le=settings.MAX_POINT_LIMIT),
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Time-series points for every series of a widget.

    The company scope always comes from the token; hierarchyId and deviceId
    narrow it further (deviceId wins when both are sent).
    """
    filters = WidgetDataFilters(
        time_range=time_range,
        hierarchy_id=hierarchy_id,
        device_id=device_id,
        limit=limit,
    )
    result = await with_timeout(
        WidgetDataService.resolve_series_data(db, widget_id, current_user.company_id, filters)
    )
    return Envelope[WidgetDataResponse](data=result)


@router.get("/widget-data/{widget_id}/latest", response_model=Envelope[LatestDataResponse])
async def widget_latest(
    widget_id: str,
    hierarchy_id: Optional[str] = Query(None, alias="hierarchyId"),
    device_id: Optional[str] = Query(None, alias="deviceId"),
    current_user: Principal = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Latest value per device for every series of a widget, with their mean.
    """
    filters = WidgetDataFilters(hierarchy_id=hierarchy_id, device_id=device_id)
    result = await with_timeout(
        WidgetDataService.resolve_latest(db, widget_id, current_user.company_id, filters)
    )
    return Envelope[LatestDataResponse](data=result)
