"""
Tests for the catalog and demo-tenant seed.
"""
from sqlalchemy import func, select

from flowboard.db.seed import seed_catalog, seed_demo_tenant
from flowboard.models import Company, Dashboard, Device, DeviceReading, WidgetType


async def count(db, column):
    return (await db.execute(select(func.count(column)))).scalar_one()


class TestSeed:
    async def test_catalog_is_idempotent(self, db, catalog):
        again = await seed_catalog(db)

        assert await count(db, WidgetType.id) == 4
        assert again.device_type.id == catalog.device_type.id
        assert set(again.properties) == set(catalog.properties)

    async def test_demo_tenant_is_seeded_once(self, db, catalog, tenant):
        readings = await count(db, DeviceReading.id)

        again = await seed_demo_tenant(db, catalog)

        assert await count(db, Company.id) == 1
        assert await count(db, Device.id) == 3
        assert await count(db, Dashboard.id) == 1
        assert await count(db, DeviceReading.id) == readings

        assert again.company.id == tenant.company.id
        assert again.admin.id == tenant.admin.id
        assert again.user.id == tenant.user.id
        assert again.dashboard.id == tenant.dashboard.id
        assert again.widget.id == tenant.widget.id
        assert [d.serial_number for d in again.devices] == ["MPFM-001", "MPFM-002", "MPFM-003"]
        assert {key: node.id for key, node in again.hierarchy.items()} == \
            {key: node.id for key, node in tenant.hierarchy.items()}
