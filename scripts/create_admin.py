#!/usr/bin/env python3
"""Create an administrator root account."""

import argparse
import asyncio
import sys

from loguru import logger

from hierarchy_ledger.config.settings import settings
from hierarchy_ledger.database import create_engine, create_session_maker
from hierarchy_ledger.models.enums import AccountRole
from hierarchy_ledger.services.network_service import NetworkService
from hierarchy_ledger.utils.exceptions import LedgerError


logger.remove()
logger.add(sys.stderr, level="INFO")


async def create_admin(username: str, password: str) -> int:
    """Register an admin root account and return its ID."""
    engine = create_engine(settings)
    try:
        service = NetworkService(create_session_maker(engine), settings)
        account = await service.register(username, password, role=AccountRole.ADMIN)
    finally:
        await engine.dispose()

    logger.success(f"Admin account {account.username} created with id {account.id}")
    return account.id


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("username")
    parser.add_argument("password")
    args = parser.parse_args()

    try:
        asyncio.run(create_admin(args.username, args.password))
    except LedgerError as e:
        logger.error(f"Could not create admin: {e.message}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
