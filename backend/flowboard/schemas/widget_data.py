"""
Request filters and response shapes for per-widget data.
"""
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, List, Optional

from flowboard.schemas.common import CamelModel


class TimeRange(str, Enum):
    ONE_HOUR = "1h"
    SIX_HOURS = "6h"
    ONE_DAY = "24h"
    SEVEN_DAYS = "7d"
    THIRTY_DAYS = "30d"

    @property
    def duration(self) -> timedelta:
        return _DURATIONS[self]


_DURATIONS = {
    TimeRange.ONE_HOUR: timedelta(hours=1),
    TimeRange.SIX_HOURS: timedelta(hours=6),
    TimeRange.ONE_DAY: timedelta(hours=24),
    TimeRange.SEVEN_DAYS: timedelta(days=7),
    TimeRange.THIRTY_DAYS: timedelta(days=30),
}


class WidgetDataFilters(CamelModel):
    time_range: TimeRange = TimeRange.ONE_DAY
    hierarchy_id: Optional[str] = None
    device_id: Optional[str] = None
    limit: int = 200


class SeriesPoint(CamelModel):
    timestamp: datetime
    serial_number: str
    value: float


class SeriesData(CamelModel):
    points: List[SeriesPoint]
    unit: Optional[str] = None
    property_name: str


class FilterContext(CamelModel):
    """The scope actually applied, echoed for display."""
    time_range: Optional[TimeRange] = None
    hierarchy_id: Optional[str] = None
    device_id: Optional[str] = None


class WidgetDataResponse(CamelModel):
    widget_id: str
    widget_name: str
    data: Dict[str, SeriesData]
    filters: FilterContext


class LatestEntry(CamelModel):
    timestamp: datetime
    serial_number: str
    value: Optional[float] = None
    location: Optional[str] = None
    device_type: Optional[str] = None


class LatestSeries(CamelModel):
    latest: List[LatestEntry]
    aggregated_value: Optional[float] = None
    count: int
    unit: Optional[str] = None
    property_name: str


class LatestDataResponse(CamelModel):
    widget_id: str
    widget_name: str
    data: Dict[str, LatestSeries]
    filters: FilterContext
