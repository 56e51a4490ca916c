"""Create the payroll cycle tables in the configured database.

Usage:
    python scripts/create_schema.py
    python scripts/create_schema.py --database-url sqlite+aiosqlite:///paycycle.db
    python scripts/create_schema.py --drop
"""

from __future__ import annotations

import argparse
import asyncio

from paycycle.config import get_settings
from paycycle.database import get_engine
from paycycle.models import Base


async def create_schema(database_url: str, drop: bool = False) -> None:
    """Create all ORM tables, optionally dropping them first."""
    engine = get_engine(database_url)
    try:
        async with engine.begin() as conn:
            if drop:
                await conn.run_sync(Base.metadata.drop_all)
            await conn.run_sync(Base.metadata.create_all)
    finally:
        await engine.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Create payroll cycle tables")
    parser.add_argument(
        "--database-url",
        default=None,
        help="Database URL (default: DATABASE_URL setting)",
    )
    parser.add_argument(
        "--drop",
        action="store_true",
        help="Drop existing tables first",
    )
    args = parser.parse_args()

    database_url = args.database_url or get_settings().database_url
    target = database_url.split("@")[1] if "@" in database_url else database_url
    print(f"Target database: {target}")

    asyncio.run(create_schema(database_url, drop=args.drop))
    print("Tables created: " + ", ".join(sorted(Base.metadata.tables)))


if __name__ == "__main__":
    main()
