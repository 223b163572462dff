from __future__ import annotations

import asyncio

import asyncpg

from connectrix.infra.migrations import MIGRATIONS_DIR, apply_migrations
from connectrix.obs.logging import configure_logging
from connectrix.settings import settings


async def _connect(retries: int = 30, delay: float = 2.0) -> asyncpg.Connection:
    for attempt in range(retries):
        try:
            return await asyncpg.connect(dsn=settings.postgres_url)
        except (OSError, asyncpg.CannotConnectNowError) as exc:
            print(f"Database starting up... waiting {delay}s ({attempt + 1}/{retries}): {exc}")
            await asyncio.sleep(delay)
    raise SystemExit("Could not connect to database after multiple retries")


async def main() -> None:
    configure_logging()
    conn = await _connect()
    try:
        applied = await apply_migrations(conn, MIGRATIONS_DIR)
    finally:
        await conn.close()
    if applied:
        print(f"Applied {', '.join(applied)}")
    else:
        print("Schema up to date")


if __name__ == "__main__":
    asyncio.run(main())
