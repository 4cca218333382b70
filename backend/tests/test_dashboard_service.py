"""
Tests for dashboard composition and layout changes.
"""
from datetime import timedelta

import pytest
from sqlalchemy import select

from factories import add_company
from flowboard.core.errors import NotFoundError, ValidationError
from flowboard.models import Dashboard, DashboardLayout, WidgetDefinition
from flowboard.schemas.auth import Principal
from flowboard.schemas.dashboard import AddToDashboardRequest, LayoutConfig, LayoutUpdate
from flowboard.services.dashboard_service import DashboardService


def admin_of(tenant):
    return Principal(user_id=tenant.admin.id, company_id=tenant.company.id, role="admin")


def place(x=0, y=0, w=4, h=3):
    return LayoutConfig(x=x, y=y, w=w, h=h)


class TestResolveDashboard:
    async def test_company_dashboard_with_its_line_chart(self, db, tenant):
        result = await DashboardService.resolve_dashboard(db, tenant.company.id)

        assert result.dashboard.id == tenant.dashboard.id
        assert result.dashboard.can_edit is False
        assert len(result.widgets) == 1
        widget = result.widgets[0]
        assert widget.type == "line_chart"
        assert widget.component == "LineChartWidget"
        assert widget.widget_id == tenant.widget.id
        assert widget.data_source_config["seriesConfig"][0]["displayName"] == "OFR"

    async def test_admin_can_edit(self, db, tenant):
        result = await DashboardService.resolve_dashboard(db, tenant.company.id, role="admin")
        assert result.dashboard.can_edit is True

    async def test_earliest_active_dashboard_wins(self, db, tenant):
        created = tenant.dashboard.created_at
        db.add_all([
            Dashboard(company_id=tenant.company.id, name="Older but inactive",
                      is_active=False, created_at=created - timedelta(days=2)),
            Dashboard(company_id=tenant.company.id, name="Newer active",
                      is_active=True, created_at=created + timedelta(days=1)),
        ])
        await db.commit()

        dashboard = await DashboardService.get_active_dashboard(db, tenant.company.id)

        assert dashboard.id == tenant.dashboard.id

    async def test_company_without_dashboard(self, db, tenant):
        other = await add_company(db)
        await db.commit()

        with pytest.raises(NotFoundError):
            await DashboardService.resolve_dashboard(db, other.id)

    async def test_other_company_cannot_see_dashboard(self, db, tenant):
        other = await add_company(db)
        db.add(Dashboard(company_id=other.id, name="Theirs", is_active=True))
        await db.commit()

        result = await DashboardService.resolve_dashboard(db, other.id)

        assert result.dashboard.name == "Theirs"
        assert result.widgets == []


class TestLayoutChanges:
    async def test_add_appends_in_display_order(self, db, tenant):
        version = tenant.dashboard.version
        layout = await DashboardService.add_to_dashboard(
            db, admin_of(tenant),
            AddToDashboardRequest(widget_definition_id=tenant.widget.id, layout_config=place(x=6)),
        )

        result = await DashboardService.resolve_dashboard(db, tenant.company.id)

        assert [w.layout_id for w in result.widgets][-1] == layout.id
        assert [w.display_order for w in result.widgets] == [0, 1]
        assert result.widgets[-1].layout_config == {"x": 6, "y": 0, "w": 4, "h": 3, "static": False}
        assert result.dashboard.version == version + 1

    async def test_add_requires_fields(self, db, tenant):
        with pytest.raises(ValidationError) as exc:
            await DashboardService.add_to_dashboard(db, admin_of(tenant), AddToDashboardRequest())
        assert exc.value.message == "widgetDefinitionId and layoutConfig are required"

    async def test_add_unknown_widget(self, db, tenant):
        with pytest.raises(NotFoundError):
            await DashboardService.add_to_dashboard(
                db, admin_of(tenant),
                AddToDashboardRequest(widget_definition_id="missing", layout_config=place()),
            )

    async def test_remove_keeps_widget_definition(self, db, tenant):
        [view] = (await DashboardService.resolve_dashboard(db, tenant.company.id)).widgets

        await DashboardService.remove_layout(db, admin_of(tenant), view.layout_id)

        result = await DashboardService.resolve_dashboard(db, tenant.company.id)
        assert result.widgets == []
        assert await db.get(WidgetDefinition, tenant.widget.id) is not None

    async def test_remove_other_companys_layout_is_not_found(self, db, tenant):
        [view] = (await DashboardService.resolve_dashboard(db, tenant.company.id)).widgets
        other = await add_company(db)
        stranger = Principal(user_id="someone", company_id=other.id, role="admin")

        with pytest.raises(NotFoundError):
            await DashboardService.remove_layout(db, stranger, view.layout_id)

    async def test_update_replaces_layout_configs(self, db, tenant):
        [view] = (await DashboardService.resolve_dashboard(db, tenant.company.id)).widgets

        await DashboardService.update_layouts(
            db, admin_of(tenant), [LayoutUpdate(layout_id=view.layout_id, layout_config=place(x=2, y=5, w=10, h=6))]
        )

        stored = await db.get(DashboardLayout, view.layout_id)
        assert stored.layout_config == {"x": 2, "y": 5, "w": 10, "h": 6, "static": False}

    async def test_update_with_unknown_layout_writes_nothing(self, db, tenant):
        [view] = (await DashboardService.resolve_dashboard(db, tenant.company.id)).widgets
        before = dict(view.layout_config)

        with pytest.raises(NotFoundError):
            await DashboardService.update_layouts(db, admin_of(tenant), [
                LayoutUpdate(layout_id=view.layout_id, layout_config=place(x=9)),
                LayoutUpdate(layout_id="missing", layout_config=place()),
            ])

        result = await db.execute(
            select(DashboardLayout.layout_config).where(DashboardLayout.id == view.layout_id)
        )
        assert result.scalar_one() == before
