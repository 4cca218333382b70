"""
Widget data resolution.

Given a widget and request filters, builds the company/device-type/hierarchy
scoped query for every configured series and shapes the rows into the
per-series response the dashboard renders.

Scope rules:
    - devices always belong to the caller's company (taken from the token)
    - the widget's deviceTypeId, when configured, narrows to that type
    - deviceId wins over hierarchyId when both are given
    - hierarchyId expands to the node and everything beneath it

Value rules for a series property:
    - readings without the key are skipped
    - a key present with JSON null reads as 0 in time series
    - values that are not numeric are skipped
"""
import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import cast, select
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from flowboard.core.config import settings
from flowboard.core.errors import InternalError, ValidationError
from flowboard.models.device import Device, DeviceLatest, DeviceReading, DeviceType, HierarchyNode
from flowboard.schemas.widget import SeriesDescriptor
from flowboard.schemas.widget_data import (
    FilterContext,
    LatestDataResponse,
    LatestEntry,
    LatestSeries,
    SeriesData,
    SeriesPoint,
    WidgetDataFilters,
    WidgetDataResponse,
)
from flowboard.services.hierarchy_service import HierarchyService
from flowboard.services.widget_service import WidgetService

logger = logging.getLogger(__name__)


def to_decimal(raw: Any) -> Optional[Decimal]:
    """Parse a JSON value as a finite decimal; None when it is not numeric."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        raw = str(raw)
    if not isinstance(raw, str):
        return None
    try:
        value = Decimal(raw.strip())
    except InvalidOperation:
        return None
    return value if value.is_finite() else None


def series_value(data: Dict[str, Any], key: str) -> Optional[Decimal]:
    """Value of ``key`` for a time-series point, or None to skip the reading."""
    if not isinstance(data, dict) or key not in data:
        return None
    if data[key] is None:
        return Decimal(0)
    return to_decimal(data[key])


class WidgetDataService:
    @staticmethod
    async def _device_scope(
        db: AsyncSession,
        company_id: str,
        device_type_id: Optional[int],
        filters: WidgetDataFilters,
    ) -> Tuple[list, FilterContext]:
        """WHERE clauses on Device for this request, plus the scope actually applied."""
        conditions = [Device.company_id == company_id]
        if device_type_id is not None:
            conditions.append(Device.device_type_id == device_type_id)

        context = FilterContext()
        if filters.device_id:
            conditions.append(Device.id == filters.device_id)
            context.device_id = filters.device_id
        elif filters.hierarchy_id:
            node_ids = await HierarchyService.get_descendant_ids(db, filters.hierarchy_id)
            conditions.append(Device.hierarchy_id.in_(sorted(node_ids)))
            context.hierarchy_id = filters.hierarchy_id

        return conditions, context

    @staticmethod
    async def _series_points(
        db: AsyncSession,
        scope: list,
        series: SeriesDescriptor,
        since: datetime,
        limit: int,
    ) -> List[SeriesPoint]:
        key = series.data_source_property
        stmt = (
            select(DeviceReading.id, DeviceReading.created_at, DeviceReading.serial_number, DeviceReading.data)
            .join(Device, Device.id == DeviceReading.device_id)
            .where(*scope, DeviceReading.created_at >= since)
            .order_by(DeviceReading.created_at.desc(), DeviceReading.id.desc())
        )
        if db.get_bind().dialect.name == "postgresql":
            stmt = stmt.where(cast(DeviceReading.data, JSONB).has_key(key))

        # Newest first: the cap keeps the most recent `limit` usable points.
        # Non-numeric values are only detectable here, so scan in pages.
        points: List[SeriesPoint] = []
        page_size = max(settings.READING_PAGE_SIZE, limit)
        offset = 0
        while len(points) < limit:
            result = await db.execute(stmt.offset(offset).limit(page_size))
            rows = result.all()
            for row in rows:
                value = series_value(row.data, key)
                if value is None:
                    continue
                points.append(
                    SeriesPoint(timestamp=row.created_at, serial_number=row.serial_number, value=float(value))
                )
                if len(points) == limit:
                    break
            if len(rows) < page_size:
                break
            offset += page_size

        points.reverse()
        return points

    @staticmethod
    async def resolve_series_data(
        db: AsyncSession,
        widget_id: str,
        company_id: str,
        filters: WidgetDataFilters,
        now: Optional[datetime] = None,
    ) -> WidgetDataResponse:
        """
        Time-series data for every series of a widget.

        Args:
            db: Database session
            widget_id: Widget definition id
            company_id: Caller's company, from the token
            filters: Time range, hierarchy/device scope and point limit
            now: Evaluation instant (defaults to the current UTC time)

        Returns:
            Points per series keyed by the series display name, oldest first

        Raises:
            NotFoundError: unknown widget
            ValidationError: limit below 1
            InternalError: store failure or malformed widget config
        """
        if filters.limit < 1:
            raise ValidationError("limit must be at least 1")

        widget = await WidgetService.get_widget(db, widget_id)
        series_list = widget.config.series()
        now = now or datetime.now(timezone.utc)
        since = now - filters.time_range.duration

        data: Dict[str, SeriesData] = {}
        try:
            scope, context = await WidgetDataService._device_scope(
                db, company_id, widget.config.device_type_id, filters
            )
            for series in series_list:
                points = await WidgetDataService._series_points(db, scope, series, since, filters.limit)
                data[series.display_name] = SeriesData(
                    points=points, unit=series.unit, property_name=series.property_name
                )
        except SQLAlchemyError as e:
            raise InternalError(f"Failed to load data for widget {widget_id}") from e

        context.time_range = filters.time_range
        logger.debug(
            "Widget %s (%s): %s",
            widget_id, filters.time_range.value,
            {key: len(series.points) for key, series in data.items()},
        )
        return WidgetDataResponse(
            widget_id=widget.definition.id,
            widget_name=widget.definition.name,
            data=data,
            filters=context,
        )

    @staticmethod
    async def resolve_latest(
        db: AsyncSession,
        widget_id: str,
        company_id: str,
        filters: WidgetDataFilters,
    ) -> LatestDataResponse:
        """
        Current value per in-scope device for every series, with their mean.

        Devices without a numeric current value are listed with a null value
        and left out of ``aggregatedValue`` and ``count``.
        """
        widget = await WidgetService.get_widget(db, widget_id)
        series_list = widget.config.series()

        try:
            scope, context = await WidgetDataService._device_scope(
                db, company_id, widget.config.device_type_id, filters
            )
            rows = []
            if series_list:
                result = await db.execute(
                    select(
                        DeviceLatest.updated_at,
                        DeviceLatest.serial_number,
                        DeviceLatest.data,
                        DeviceType.name.label("device_type"),
                        HierarchyNode.name.label("location"),
                    )
                    .join(Device, Device.id == DeviceLatest.device_id)
                    .join(DeviceType, DeviceType.id == Device.device_type_id)
                    .outerjoin(HierarchyNode, HierarchyNode.id == Device.hierarchy_id)
                    .where(*scope)
                    .order_by(DeviceLatest.updated_at.desc(), DeviceLatest.id.desc())
                )
                rows = result.all()
        except SQLAlchemyError as e:
            raise InternalError(f"Failed to load latest values for widget {widget_id}") from e

        data: Dict[str, LatestSeries] = {}
        for series in series_list:
            key = series.data_source_property
            entries: List[LatestEntry] = []
            values: List[Decimal] = []
            for row in rows:
                value = to_decimal(row.data.get(key)) if isinstance(row.data, dict) else None
                if value is not None:
                    values.append(value)
                entries.append(
                    LatestEntry(
                        timestamp=row.updated_at,
                        serial_number=row.serial_number,
                        value=float(value) if value is not None else None,
                        location=row.location,
                        device_type=row.device_type,
                    )
                )

            aggregated = float(sum(values) / len(values)) if values else None
            data[series.display_name] = LatestSeries(
                latest=entries,
                aggregated_value=aggregated,
                count=len(values),
                unit=series.unit,
                property_name=series.property_name,
            )

        return LatestDataResponse(
            widget_id=widget.definition.id,
            widget_name=widget.definition.name,
            data=data,
            filters=context,
        )
