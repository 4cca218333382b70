"""
Catalog and demo-tenant data.

The catalog (widget types, the multiphase flow meter device type and its
properties) is what every installation needs; the "Arabco" tenant is demo
data for local runs.
"""
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from flowboard.models import (
    Company,
    Dashboard,
    DashboardLayout,
    Device,
    DeviceLatest,
    DeviceReading,
    DeviceType,
    DeviceTypeProperty,
    HierarchyNode,
    User,
    WidgetDefinition,
    WidgetType,
)
from flowboard.services.widget_service import build_data_source_config

logger = logging.getLogger(__name__)

WIDGET_TYPES = [
    {
        "name": "line_chart",
        "component_binding": "LineChartWidget",
        "default_config": {"deviceTypeId": None, "numberOfSeries": 0, "seriesConfig": []},
    },
    {
        "name": "kpi",
        "component_binding": "KpiWidget",
        "default_config": {"metric": "", "unit": None, "title": None, "decimals": 2},
    },
    {
        "name": "donut_chart",
        "component_binding": "DonutChartWidget",
        "default_config": {"metrics": [], "title": None},
    },
    {
        "name": "map",
        "component_binding": "MapWidget",
        "default_config": {"showDevices": True, "showStatistics": True},
    },
]

MPFM_NAME = "MPFM"
DEMO_COMPANY = "Arabco"
DEMO_ADMIN_EMAIL = "admin@arabco.example"
DEMO_USER_EMAIL = "operator@arabco.example"

MPFM_PROPERTIES = [
    # name, display name, data key, unit
    ("Oil Flow Rate", "OFR", "OFR", "l/min"),
    ("Water Flow Rate", "WFR", "WFR", "l/min"),
    ("Gas Flow Rate", "GFR", "GFR", "l/min"),
    ("Gas Volume Fraction", "GVF", "GVF", "%"),
    ("Water Liquid Ratio", "WLR", "WLR", "%"),
    ("Pressure", "Pressure", "Pressure", "bar"),
    ("Temperature", "Temperature", "Temperature", "°C"),
]


@dataclass
class Catalog:
    widget_types: Dict[str, WidgetType] = field(default_factory=dict)
    device_type: Optional[DeviceType] = None
    properties: Dict[str, DeviceTypeProperty] = field(default_factory=dict)


@dataclass
class DemoTenant:
    company: Company
    admin: User
    user: User
    hierarchy: Dict[str, HierarchyNode]
    devices: List[Device]
    dashboard: Dashboard
    widget: WidgetDefinition


async def seed_catalog(db: AsyncSession) -> Catalog:
    """Insert widget types and the MPFM device type unless already present."""
    catalog = Catalog()

    existing = {t.name: t for t in (await db.execute(select(WidgetType))).scalars().all()}
    for entry in WIDGET_TYPES:
        widget_type = existing.get(entry["name"])
        if widget_type is None:
            widget_type = WidgetType(**entry)
            db.add(widget_type)
        catalog.widget_types[entry["name"]] = widget_type

    result = await db.execute(select(DeviceType).where(DeviceType.name == MPFM_NAME))
    device_type = result.scalars().first()
    if device_type is None:
        device_type = DeviceType(name=MPFM_NAME, description="Multiphase flow meter")
        db.add(device_type)
        await db.flush()
        for name, display_name, key, unit in MPFM_PROPERTIES:
            db.add(DeviceTypeProperty(
                device_type_id=device_type.id,
                name=name,
                display_name=display_name,
                data_source_property=key,
                unit=unit,
                data_type="number",
            ))
    catalog.device_type = device_type

    await db.flush()
    result = await db.execute(
        select(DeviceTypeProperty).where(DeviceTypeProperty.device_type_id == device_type.id)
    )
    catalog.properties = {p.display_name: p for p in result.scalars().all()}
    await db.commit()
    return catalog


def sample_reading(serial_index: int, step: int) -> Dict[str, float]:
    """Smooth, slightly different curves per device."""
    phase = step / 12 + serial_index
    return {
        "OFR": round(420 + 60 * math.sin(phase) + 15 * serial_index, 2),
        "WFR": round(180 + 25 * math.cos(phase), 2),
        "GFR": round(950 + 80 * math.sin(phase / 2), 2),
        "GVF": round(62 + 4 * math.sin(phase), 2),
        "WLR": round(30 + 3 * math.cos(phase), 2),
        "Pressure": round(18 + math.sin(phase), 2),
        "Temperature": round(65 + 2 * math.cos(phase), 2),
    }


async def load_demo_tenant(db: AsyncSession, company: Company) -> DemoTenant:
    """Read back a previously seeded demo tenant."""
    result = await db.execute(select(User).where(User.company_id == company.id))
    users = {u.email: u for u in result.scalars().all()}

    result = await db.execute(
        select(Device).where(Device.company_id == company.id).order_by(Device.serial_number)
    )
    devices = list(result.scalars().all())

    # MPFM-001 sits on the well, MPFM-002 on field A, MPFM-003 on field B
    well_a1, field_a, field_b = [await db.get(HierarchyNode, d.hierarchy_id) for d in devices[:3]]
    region = await db.get(HierarchyNode, field_a.parent_id)

    result = await db.execute(
        select(Dashboard)
        .where(Dashboard.company_id == company.id, Dashboard.is_active.is_(True))
        .order_by(Dashboard.created_at.asc(), Dashboard.id.asc())
    )
    dashboard = result.scalars().first()

    result = await db.execute(
        select(WidgetDefinition)
        .join(DashboardLayout, DashboardLayout.widget_definition_id == WidgetDefinition.id)
        .where(DashboardLayout.dashboard_id == dashboard.id)
        .order_by(DashboardLayout.display_order.asc())
    )
    widget = result.scalars().first()

    return DemoTenant(
        company=company,
        admin=users[DEMO_ADMIN_EMAIL],
        user=users[DEMO_USER_EMAIL],
        hierarchy={"region": region, "field_a": field_a, "field_b": field_b, "well_a1": well_a1},
        devices=devices,
        dashboard=dashboard,
        widget=widget,
    )


async def seed_demo_tenant(
    db: AsyncSession,
    catalog: Catalog,
    now: Optional[datetime] = None,
    hours: int = 24,
    interval_minutes: int = 15,
) -> DemoTenant:
    """Create the Arabco company with hierarchy, meters, readings and a dashboard.

    Returns the already stored tenant when Arabco exists.
    """
    result = await db.execute(select(Company).where(Company.name == DEMO_COMPANY).order_by(Company.id))
    existing = result.scalars().first()
    if existing is not None:
        logger.info("Demo company %s already present, skipping", existing.id)
        return await load_demo_tenant(db, existing)

    now = now or datetime.now(timezone.utc)

    company = Company(name=DEMO_COMPANY)
    db.add(company)
    await db.flush()

    admin = User(company_id=company.id, email=DEMO_ADMIN_EMAIL, role="admin")
    user = User(company_id=company.id, email=DEMO_USER_EMAIL, role="user")
    db.add_all([admin, user])

    region = HierarchyNode(name="Eastern Region", level="region")
    db.add(region)
    await db.flush()
    field_a = HierarchyNode(name="Field A", level="field", parent_id=region.id)
    field_b = HierarchyNode(name="Field B", level="field", parent_id=region.id)
    db.add_all([field_a, field_b])
    await db.flush()
    well_a1 = HierarchyNode(name="Well A-1", level="well", parent_id=field_a.id)
    db.add(well_a1)
    await db.flush()

    devices = [
        Device(company_id=company.id, device_type_id=catalog.device_type.id,
               hierarchy_id=node.id, serial_number=serial, metadata_={"model": "MPFM-2600"})
        for serial, node in (("MPFM-001", well_a1), ("MPFM-002", field_a), ("MPFM-003", field_b))
    ]
    db.add_all(devices)
    await db.flush()

    steps = hours * 60 // interval_minutes
    for index, device in enumerate(devices):
        for step in range(steps + 1):
            db.add(DeviceReading(
                device_id=device.id,
                serial_number=device.serial_number,
                created_at=now - timedelta(minutes=interval_minutes * (steps - step)),
                data=sample_reading(index, step),
            ))
        db.add(DeviceLatest(
            device_id=device.id,
            serial_number=device.serial_number,
            updated_at=now,
            data=sample_reading(index, steps),
        ))

    line_chart = catalog.widget_types["line_chart"]
    ofr = catalog.properties["OFR"]
    widget = WidgetDefinition(
        name="Oil Flow Rate",
        description="Oil flow rate across all meters",
        widget_type_id=line_chart.id,
        data_source_config=build_data_source_config(
            line_chart, catalog.device_type.id, [ofr], "Oil Flow Rate"
        ),
        created_by=admin.id,
    )
    db.add(widget)

    dashboard = Dashboard(
        company_id=company.id,
        name="Production Overview",
        description="Default dashboard",
        created_by=admin.id,
        is_active=True,
        grid_config={"cols": 12, "rowHeight": 80},
    )
    db.add(dashboard)
    await db.flush()

    db.add(DashboardLayout(
        dashboard_id=dashboard.id,
        widget_definition_id=widget.id,
        layout_config={"x": 0, "y": 0, "w": 6, "h": 4, "minW": 3, "minH": 3, "static": False},
        display_order=0,
    ))
    await db.commit()

    logger.info("Seeded demo company %s with %d devices", company.id, len(devices))
    return DemoTenant(
        company=company,
        admin=admin,
        user=user,
        hierarchy={"region": region, "field_a": field_a, "field_b": field_b, "well_a1": well_a1},
        devices=devices,
        dashboard=dashboard,
        widget=widget,
    )
