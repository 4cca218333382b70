"""
Script to load the widget catalog and the Arabco demo tenant into the
configured database, then print bearer tokens to try the API with.
"""
import asyncio
from flowboard.core.config import settings
from flowboard.core.security import create_access_token
from flowboard.db.database import AsyncSessionLocal, init_db
from flowboard.db.seed import seed_catalog, seed_demo_tenant


async def main():
    await init_db()

    async with AsyncSessionLocal() as db:
        catalog = await seed_catalog(db)
        tenant = await seed_demo_tenant(db, catalog)

    print("=" * 60)
    print("DEMO DATA LOADED")
    print("=" * 60)
    print(f"Database:   {settings.DATABASE_URL}")
    print(f"Company:    {tenant.company.name} ({tenant.company.id})")
    print(f"Dashboard:  {tenant.dashboard.name} ({tenant.dashboard.id})")
    print(f"Widget:     {tenant.widget.name} ({tenant.widget.id})")
    print(f"Devices:    {', '.join(d.serial_number for d in tenant.devices)}")

    for principal in (tenant.admin, tenant.user):
        token = create_access_token(
            {"sub": principal.id, "company_id": tenant.company.id, "role": principal.role}
        )
        print(f"\n{principal.role.upper()} token ({principal.email}):\n{token}")

    print("\nTry:")
    print(f"  curl -H 'Authorization: Bearer <token>' "
          f"http://localhost:{settings.PORT}{settings.API_PREFIX}/widget-data/{tenant.widget.id}?timeRange=1h")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
