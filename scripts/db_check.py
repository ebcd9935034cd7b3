"""
Check that DATABASE_URL is reachable.

Usage
-----

    python -m scripts.db_check

Exit codes: 0 ok, 1 connection failed, 2 DATABASE_URL not set.
"""
from __future__ import annotations

import asyncio
import sys

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from config import get_settings
from services.db import create_engine, mask_url, wants_ssl


async def _check(url: str) -> int:
    settings = get_settings()
    print(f"Connecting with: {mask_url(url)}")
    print(f"SSL enabled: {wants_ssl(url, settings.pg_ssl_mode)}")

    eng = create_engine(settings)
    try:
        async with eng.connect() as conn:
            row = (
                await conn.execute(text("select now() as now, current_database() as db"))
            ).mappings().one()
        print(f"Success: {dict(row)}")
        return 0
    except (SQLAlchemyError, OSError) as exc:
        print(f"Connection error: {exc}", file=sys.stderr)
        return 1
    finally:
        await eng.dispose()


def main() -> None:
    url = get_settings().database_url
    if not url:
        print("DATABASE_URL is not set", file=sys.stderr)
        sys.exit(2)
    sys.exit(asyncio.run(_check(url)))


if __name__ == "__main__":
    main()
