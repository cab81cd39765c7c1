#!/usr/bin/env python3
"""
Create ledger tables without running migrations.

Intended for local development and throwaway SQLite databases; production
schemas are managed with ``alembic upgrade head``.
"""

import argparse
import asyncio
import sys

from loguru import logger

from hierarchy_ledger.config.settings import settings
from hierarchy_ledger.database import create_engine, init_models
from hierarchy_ledger.models import Base


logger.remove()
logger.add(sys.stderr, level="INFO")


async def init_database(database_url: str | None = None) -> None:
    """Create every table known to the model metadata (checkfirst)."""
    active = settings
    if database_url:
        active = settings.model_copy(update={"database_url": database_url})

    logger.info(f"Connecting to {active.database_url.split('@')[-1]}")
    engine = create_engine(active)

    try:
        await init_models(engine)
    finally:
        await engine.dispose()

    logger.success(f"Tables ready: {', '.join(sorted(Base.metadata.tables))}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create ledger tables")
    parser.add_argument("--database-url", help="Override DATABASE_URL")
    args = parser.parse_args()
    asyncio.run(init_database(args.database_url))
