"""
Small builders for test data that the demo seed does not cover.
"""
from datetime import timedelta

from flowboard.core.security import create_access_token
from flowboard.models import Company, Device, DeviceLatest, DeviceReading, HierarchyNode


async def add_company(db, name="Other Co"):
    company = Company(name=name)
    db.add(company)
    await db.flush()
    return company


async def add_node(db, name, parent=None):
    node = HierarchyNode(name=name, parent_id=parent.id if parent else None)
    db.add(node)
    await db.flush()
    return node


async def add_device(db, company, device_type, serial, node=None):
    device = Device(
        company_id=company.id,
        device_type_id=device_type.id,
        hierarchy_id=node.id if node else None,
        serial_number=serial,
    )
    db.add(device)
    await db.flush()
    return device


async def add_readings(db, device, readings):
    """readings: iterable of (created_at, data)"""
    for created_at, data in readings:
        db.add(DeviceReading(
            device_id=device.id,
            serial_number=device.serial_number,
            created_at=created_at,
            data=data,
        ))
    await db.commit()


async def set_latest(db, device, updated_at, data):
    db.add(DeviceLatest(
        device_id=device.id,
        serial_number=device.serial_number,
        updated_at=updated_at,
        data=data,
    ))
    await db.commit()


def minutes_ago(now, minutes):
    return now - timedelta(minutes=minutes)


def bearer(user_id, company_id, role="user"):
    token = create_access_token({"sub": user_id, "company_id": company_id, "role": role})
    return {"Authorization": f"Bearer {token}"}
