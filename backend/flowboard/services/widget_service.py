"""
Widget configuration store: catalog lookups, widget definitions and their
typed data-source configs.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from flowboard.core.errors import InternalError, NotFoundError, ValidationError
from flowboard.models.device import DeviceType, DeviceTypeProperty
from flowboard.models.widget import WidgetDefinition, WidgetType
from flowboard.schemas.auth import Principal
from flowboard.schemas.widget import (
    AnyDataSourceConfig,
    CreateWidgetRequest,
    SeriesDescriptor,
    parse_data_source_config,
)

logger = logging.getLogger(__name__)


@dataclass
class ResolvedWidget:
    definition: WidgetDefinition
    widget_type: WidgetType
    config: AnyDataSourceConfig


def descriptor_for(prop: DeviceTypeProperty) -> SeriesDescriptor:
    return SeriesDescriptor(
        property_id=prop.id,
        property_name=prop.name,
        display_name=prop.display_name,
        data_source_property=prop.data_source_property,
        unit=prop.unit,
        data_type=prop.data_type,
    )


def build_data_source_config(
    widget_type: WidgetType,
    device_type_id: int,
    properties: List[DeviceTypeProperty],
    display_name: str,
) -> Dict[str, Any]:
    """Raw config JSON for a new widget: the type's defaults plus the chosen properties."""
    config: Dict[str, Any] = dict(widget_type.default_config or {})
    config["deviceTypeId"] = device_type_id

    if widget_type.name == "line_chart":
        config["numberOfSeries"] = len(properties)
        config["seriesConfig"] = [
            descriptor_for(p).model_dump(by_alias=True, exclude_none=True) for p in properties
        ]
    elif widget_type.name == "kpi":
        if len(properties) != 1:
            raise ValidationError("kpi widgets take exactly one property")
        config["metric"] = properties[0].data_source_property
        config["unit"] = properties[0].unit
        config["title"] = display_name
    elif widget_type.name == "donut_chart":
        config["metrics"] = [p.data_source_property for p in properties]
        config["title"] = display_name

    return config


class WidgetService:
    @staticmethod
    async def get_widget(db: AsyncSession, widget_id: str) -> ResolvedWidget:
        """
        Load a widget definition with its type and parsed config.

        Raises:
            NotFoundError: no widget with this id
            InternalError: store failure or a config that does not fit its type
        """
        try:
            definition = await db.get(WidgetDefinition, widget_id)
            if definition is None:
                raise NotFoundError("Widget not found")
            widget_type = await db.get(WidgetType, definition.widget_type_id)
        except SQLAlchemyError as e:
            raise InternalError("Failed to load widget") from e

        config = parse_data_source_config(widget_type.name, definition.data_source_config)
        return ResolvedWidget(definition=definition, widget_type=widget_type, config=config)

    @staticmethod
    async def list_widget_types(db: AsyncSession) -> List[WidgetType]:
        result = await db.execute(select(WidgetType).order_by(WidgetType.id))
        return list(result.scalars().all())

    @staticmethod
    async def list_device_types(db: AsyncSession) -> List[DeviceType]:
        result = await db.execute(select(DeviceType).order_by(DeviceType.id))
        return list(result.scalars().all())

    @staticmethod
    async def list_properties(db: AsyncSession, device_type_id: int | None = None) -> List[DeviceTypeProperty]:
        stmt = select(DeviceTypeProperty).order_by(DeviceTypeProperty.id)
        if device_type_id is not None:
            stmt = stmt.where(DeviceTypeProperty.device_type_id == device_type_id)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def create_widget(db: AsyncSession, principal: Principal, request: CreateWidgetRequest) -> WidgetDefinition:
        missing = [
            alias for alias, value in (
                ("deviceTypeId", request.device_type_id),
                ("widgetTypeId", request.widget_type_id),
                ("propertyIds", request.property_ids),
                ("displayName", (request.display_name or "").strip() or None),
            )
            if value is None
        ]
        if missing:
            raise ValidationError(f"{', '.join(missing)} {'is' if len(missing) == 1 else 'are'} required")

        if len(set(request.property_ids)) != len(request.property_ids):
            raise ValidationError("propertyIds must not contain duplicates")

        device_type = await db.get(DeviceType, request.device_type_id)
        if device_type is None:
            raise ValidationError(f"Unknown deviceTypeId {request.device_type_id}")

        widget_type = await db.get(WidgetType, request.widget_type_id)
        if widget_type is None:
            raise ValidationError(f"Unknown widgetTypeId {request.widget_type_id}")

        properties: List[DeviceTypeProperty] = []
        if request.property_ids:
            result = await db.execute(
                select(DeviceTypeProperty).where(
                    DeviceTypeProperty.id.in_(request.property_ids),
                    DeviceTypeProperty.device_type_id == device_type.id,
                )
            )
            by_id = {p.id: p for p in result.scalars().all()}
            unknown = [pid for pid in request.property_ids if pid not in by_id]
            if unknown:
                raise ValidationError(
                    f"Properties {unknown} do not belong to device type {device_type.id}"
                )
            # keep the order the caller picked
            properties = [by_id[pid] for pid in request.property_ids]

        if not properties and widget_type.name != "map":
            raise ValidationError("At least one property is required")

        display_name = request.display_name.strip()
        raw_config = build_data_source_config(widget_type, device_type.id, properties, display_name)
        config = parse_data_source_config(widget_type.name, raw_config)

        widget = WidgetDefinition(
            name=display_name,
            description=request.description,
            widget_type_id=widget_type.id,
            data_source_config=config.model_dump(by_alias=True, exclude_none=True),
            created_by=principal.user_id,
        )
        db.add(widget)
        await db.commit()
        await db.refresh(widget)

        logger.info(
            "Created %s widget %s (%d series) for company %s",
            widget_type.name, widget.id, len(properties), principal.company_id,
        )
        return widget
