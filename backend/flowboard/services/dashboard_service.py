import logging
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from typing import List, Optional

from flowboard.core.errors import InternalError, NotFoundError, ValidationError
from flowboard.models.dashboard import Dashboard, DashboardLayout
from flowboard.models.widget import WidgetDefinition, WidgetType
from flowboard.schemas.auth import Principal
from flowboard.schemas.dashboard import (
    AddToDashboardRequest,
    DashboardResponse,
    LayoutUpdate,
    UserDashboardResponse,
    WidgetView,
)

logger = logging.getLogger(__name__)


class DashboardService:
    @staticmethod
    async def get_active_dashboard(db: AsyncSession, company_id: str) -> Optional[Dashboard]:
        """The company's dashboard: earliest-created among the active ones."""
        result = await db.execute(
            select(Dashboard)
            .where(Dashboard.company_id == company_id, Dashboard.is_active.is_(True))
            .order_by(Dashboard.created_at.asc(), Dashboard.id.asc())
            .limit(1)
        )
        return result.scalars().first()

    @staticmethod
    async def require_active_dashboard(db: AsyncSession, company_id: str) -> Dashboard:
        dashboard = await DashboardService.get_active_dashboard(db, company_id)
        if dashboard is None:
            raise NotFoundError("Dashboard not found")
        return dashboard

    @staticmethod
    async def get_widget_views(db: AsyncSession, dashboard_id: str) -> List[WidgetView]:
        result = await db.execute(
            select(DashboardLayout, WidgetDefinition, WidgetType)
            .join(WidgetDefinition, WidgetDefinition.id == DashboardLayout.widget_definition_id)
            .join(WidgetType, WidgetType.id == WidgetDefinition.widget_type_id)
            .where(DashboardLayout.dashboard_id == dashboard_id)
            .order_by(DashboardLayout.display_order.asc(), DashboardLayout.created_at.asc())
        )
        return [
            WidgetView(
                layout_id=layout.id,
                widget_id=definition.id,
                name=definition.name,
                description=definition.description,
                type=widget_type.name,
                component=widget_type.component_binding,
                data_source_config=definition.data_source_config or {},
                layout_config=layout.layout_config or {},
                instance_config=layout.instance_config or {},
                display_order=layout.display_order,
            )
            for layout, definition, widget_type in result.all()
        ]

    @staticmethod
    async def resolve_dashboard(db: AsyncSession, company_id: str, role: str = "user") -> UserDashboardResponse:
        try:
            dashboard = await DashboardService.require_active_dashboard(db, company_id)
            widgets = await DashboardService.get_widget_views(db, dashboard.id)
        except SQLAlchemyError as e:
            raise InternalError("Failed to load dashboard") from e

        response = DashboardResponse.model_validate(dashboard)
        response.can_edit = role == "admin"
        return UserDashboardResponse(dashboard=response, widgets=widgets)

    @staticmethod
    async def add_to_dashboard(db: AsyncSession, principal: Principal, request: AddToDashboardRequest) -> DashboardLayout:
        missing = [
            alias for alias, value in (
                ("widgetDefinitionId", request.widget_definition_id),
                ("layoutConfig", request.layout_config),
            )
            if value is None
        ]
        if missing:
            raise ValidationError(f"{' and '.join(missing)} {'is' if len(missing) == 1 else 'are'} required")

        dashboard = await DashboardService.require_active_dashboard(db, principal.company_id)

        widget = await db.get(WidgetDefinition, request.widget_definition_id)
        if widget is None:
            raise NotFoundError("Widget definition not found")

        result = await db.execute(
            select(func.max(DashboardLayout.display_order)).where(DashboardLayout.dashboard_id == dashboard.id)
        )
        last_order = result.scalar()

        layout = DashboardLayout(
            dashboard_id=dashboard.id,
            widget_definition_id=widget.id,
            layout_config=request.layout_config.model_dump(by_alias=True, exclude_none=True),
            instance_config=request.instance_config,
            display_order=0 if last_order is None else last_order + 1,
        )
        db.add(layout)
        dashboard.version += 1
        await db.commit()
        await db.refresh(layout)

        logger.info("Added widget %s to dashboard %s as layout %s", widget.id, dashboard.id, layout.id)
        return layout

    @staticmethod
    async def remove_layout(db: AsyncSession, principal: Principal, layout_id: str) -> None:
        """Delete one placement; the widget definition itself is kept."""
        result = await db.execute(
            select(DashboardLayout, Dashboard)
            .join(Dashboard, Dashboard.id == DashboardLayout.dashboard_id)
            .where(DashboardLayout.id == layout_id, Dashboard.company_id == principal.company_id)
        )
        row = result.first()
        if row is None:
            raise NotFoundError("Layout not found")

        layout, dashboard = row
        await db.delete(layout)
        dashboard.version += 1
        await db.commit()
        logger.info("Removed layout %s from dashboard %s", layout_id, dashboard.id)

    @staticmethod
    async def update_layouts(db: AsyncSession, principal: Principal, updates: List[LayoutUpdate]) -> Dashboard:
        """Replace layoutConfig for every listed row, all or nothing."""
        dashboard = await DashboardService.require_active_dashboard(db, principal.company_id)

        ids = [u.layout_id for u in updates]
        result = await db.execute(
            select(DashboardLayout).where(
                DashboardLayout.dashboard_id == dashboard.id,
                DashboardLayout.id.in_(ids),
            )
        )
        layouts = {layout.id: layout for layout in result.scalars().all()}
        unknown = [layout_id for layout_id in ids if layout_id not in layouts]
        if unknown:
            raise NotFoundError(f"Layout {', '.join(unknown)} not found")

        for update in updates:
            layouts[update.layout_id].layout_config = update.layout_config.model_dump(by_alias=True, exclude_none=True)
        dashboard.version += 1
        await db.commit()
        await db.refresh(dashboard)
        return dashboard
