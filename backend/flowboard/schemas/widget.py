"""
Widget catalog schemas and the typed variants of ``dataSourceConfig``.

A widget definition stores its data-source configuration as JSON whose shape
depends on the widget type. ``parse_data_source_config`` turns that JSON into
one of the variant models below, so the resolvers never touch raw dicts.
"""
from typing import Any, Dict, List, Optional, Union
from pydantic import ConfigDict, Field, model_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from flowboard.core.errors import InternalError
from flowboard.schemas.common import CamelModel


class SeriesDescriptor(CamelModel):
    """One charted property of a widget."""
    property_id: Optional[int] = None
    property_name: str
    display_name: str
    data_source_property: str
    unit: Optional[str] = None
    data_type: str = "number"


class DataSourceConfig(CamelModel):
    """Common base for the per-widget-type config variants."""

    # Display hints (colors, thresholds, ...) ride along untouched
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    device_type_id: Optional[int] = None

    def series(self) -> List[SeriesDescriptor]:
        return []

    @model_validator(mode="after")
    def check_unique_series(self):
        # Series are keyed by display name in every response
        names = [s.display_name for s in self.series()]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"duplicate series display names: {', '.join(duplicates)}")
        return self


class LineChartConfig(DataSourceConfig):
    device_type_id: int
    number_of_series: int = 0
    series_config: List[SeriesDescriptor] = Field(default_factory=list)

    def series(self) -> List[SeriesDescriptor]:
        return list(self.series_config)


class KpiConfig(DataSourceConfig):
    metric: str
    unit: Optional[str] = None
    title: Optional[str] = None

    def series(self) -> List[SeriesDescriptor]:
        return [
            SeriesDescriptor(
                property_name=self.title or self.metric,
                display_name=self.metric,
                data_source_property=self.metric,
                unit=self.unit,
            )
        ]


class DonutChartConfig(DataSourceConfig):
    metrics: List[str] = Field(default_factory=list)
    title: Optional[str] = None

    def series(self) -> List[SeriesDescriptor]:
        return [
            SeriesDescriptor(property_name=metric, display_name=metric, data_source_property=metric)
            for metric in self.metrics
        ]


class MapConfig(DataSourceConfig):
    show_devices: bool = True
    show_statistics: bool = True


AnyDataSourceConfig = Union[LineChartConfig, KpiConfig, DonutChartConfig, MapConfig]

CONFIG_VARIANTS: Dict[str, type] = {
    "line_chart": LineChartConfig,
    "kpi": KpiConfig,
    "donut_chart": DonutChartConfig,
    "map": MapConfig,
}


def parse_data_source_config(widget_type_name: str, raw: Optional[Dict[str, Any]]) -> AnyDataSourceConfig:
    """
    Validate stored config JSON against the variant for its widget type.

    Raises:
        InternalError: unknown widget type or a config that does not fit its variant
    """
    variant = CONFIG_VARIANTS.get(widget_type_name)
    if variant is None:
        raise InternalError(f"Unknown widget type '{widget_type_name}'")
    try:
        return variant.model_validate(raw or {})
    except PydanticValidationError as e:
        raise InternalError(f"Malformed {widget_type_name} dataSourceConfig: {e}") from e


# --- Catalog responses ---

class WidgetTypeResponse(CamelModel):
    id: int
    name: str
    component_binding: str
    default_config: Dict[str, Any] = Field(default_factory=dict)


class DevicePropertyResponse(CamelModel):
    id: int
    device_type_id: int
    name: str
    display_name: str
    data_source_property: str
    unit: Optional[str] = None
    data_type: str


class DeviceTypeResponse(CamelModel):
    id: int
    name: str
    description: Optional[str] = None


class AvailableWidgetsResponse(CamelModel):
    widget_types: List[WidgetTypeResponse]
    properties: List[DevicePropertyResponse]


class CatalogResponse(CamelModel):
    device_types: List[DeviceTypeResponse]
    widget_types: List[WidgetTypeResponse]


# --- Widget creation ---

class CreateWidgetRequest(CamelModel):
    """Fields are optional so missing ones can be reported together."""
    device_type_id: Optional[int] = None
    widget_type_id: Optional[int] = None
    property_ids: Optional[List[int]] = None
    display_name: Optional[str] = None
    description: Optional[str] = None


class CreateWidgetResponse(CamelModel):
    widget_id: str
