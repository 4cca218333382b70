"""
Tests for latest-value resolution and its aggregate.
"""
import pytest

from factories import add_company, add_device, add_node, minutes_ago, set_latest
from flowboard.core.errors import NotFoundError
from flowboard.schemas.widget_data import WidgetDataFilters
from flowboard.services.widget_data_service import WidgetDataService


async def latest(db, widget_id, company_id, **filters):
    return await WidgetDataService.resolve_latest(db, widget_id, company_id, WidgetDataFilters(**filters))


class TestResolveLatest:
    async def test_demo_tenant_has_one_entry_per_meter(self, db, tenant):
        result = await latest(db, tenant.widget.id, tenant.company.id)

        ofr = result.data["OFR"]
        assert ofr.count == 3
        assert {e.serial_number for e in ofr.latest} == {"MPFM-001", "MPFM-002", "MPFM-003"}
        assert {e.device_type for e in ofr.latest} == {"MPFM"}
        assert {e.location for e in ofr.latest} == {"Well A-1", "Field A", "Field B"}
        assert ofr.unit == "l/min"
        assert ofr.aggregated_value == pytest.approx(sum(e.value for e in ofr.latest) / 3)

    async def test_null_values_are_left_out_of_aggregate(self, db, tenant, catalog, now):
        company = await add_company(db, "Five Meters Co")
        values = [10, None, 20, None, 60]
        for index, value in enumerate(values):
            meter = await add_device(db, company, catalog.device_type, f"FM-{index}")
            await set_latest(db, meter, minutes_ago(now, index), {"OFR": value, "WFR": 1})

        result = await latest(db, tenant.widget.id, company.id)

        ofr = result.data["OFR"]
        assert ofr.count == 3
        assert ofr.aggregated_value == pytest.approx(30.0)
        assert len(ofr.latest) == 5
        assert [e.value for e in ofr.latest] == [10.0, None, 20.0, None, 60.0]

    async def test_newest_first(self, db, tenant, catalog, now):
        company = await add_company(db)
        for index, age in enumerate([30, 5, 60, 1]):
            meter = await add_device(db, company, catalog.device_type, f"M-{age}")
            await set_latest(db, meter, minutes_ago(now, age), {"OFR": index})

        result = await latest(db, tenant.widget.id, company.id)

        assert [e.serial_number for e in result.data["OFR"].latest] == ["M-1", "M-5", "M-30", "M-60"]
        timestamps = [e.timestamp for e in result.data["OFR"].latest]
        assert timestamps == sorted(timestamps, reverse=True)

    async def test_no_values_gives_empty_aggregate(self, db, tenant, catalog, now):
        company = await add_company(db)
        meter = await add_device(db, company, catalog.device_type, "EMPTY-1")
        await set_latest(db, meter, now, {"WFR": 3})

        result = await latest(db, tenant.widget.id, company.id)

        assert result.data["OFR"].count == 0
        assert result.data["OFR"].aggregated_value is None

    async def test_scoped_by_hierarchy_and_company(self, db, tenant, catalog, now):
        other = await add_company(db)
        intruder = await add_device(db, other, catalog.device_type, "INTRUDER", node=tenant.hierarchy["field_a"])
        await set_latest(db, intruder, now, {"OFR": 1_000_000})

        result = await latest(db, tenant.widget.id, tenant.company.id, hierarchy_id=tenant.hierarchy["field_a"].id)

        assert {e.serial_number for e in result.data["OFR"].latest} == {"MPFM-001", "MPFM-002"}
        assert result.data["OFR"].count == 2

    async def test_device_filter(self, db, tenant, catalog, now):
        sub_node = await add_node(db, "Unused", parent=tenant.hierarchy["field_b"])
        result = await latest(
            db, tenant.widget.id, tenant.company.id,
            hierarchy_id=sub_node.id, device_id=tenant.devices[0].id,
        )

        assert [e.serial_number for e in result.data["OFR"].latest] == ["MPFM-001"]

    async def test_unknown_widget(self, db, tenant):
        with pytest.raises(NotFoundError):
            await latest(db, "nonexistent-id", tenant.company.id)
