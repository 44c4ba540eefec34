#!/usr/bin/env python3
"""
One-off administrative operations on the `users` collection.

Usage:
    # Give one account a 15-minute subscription window
    python scripts/manage_users.py grant-subscription user@example.com --minutes 15

    # Reset the game counter on every account
    python scripts/manage_users.py reset-counter --field gameLimit --value 0

    # Add subscriptionExpiry / gameLimit to accounts created before they existed
    python scripts/manage_users.py backfill

    # Delete unverified accounts whose verification window has passed
    python scripts/manage_users.py sweep

Every operation writes absolute values, so re-running after a crash is safe.

Environment Variables Required:
    MONGODB_URI: MongoDB connection string
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
from typing import Optional, Sequence

# Ensure project root is on the path
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, ROOT_DIR)

from pymongo.asynchronous.mongo_client import AsyncMongoClient  # noqa: E402

from config import AppSettings  # noqa: E402
from errors import NotFoundError  # noqa: E402
from repositories.user_repository import UserRepository  # noqa: E402
from services.maintenance import MaintenanceService  # noqa: E402
from shared.logging import get_logger, setup_logging  # noqa: E402

log = get_logger("manage_users")


def build_parser(default_minutes: int = 15) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__.split("\n\n")[0].strip())
    sub = parser.add_subparsers(dest="command", required=True)

    grant = sub.add_parser("grant-subscription", help="set subscriptionExpiry to now + N minutes")
    grant.add_argument("email")
    grant.add_argument("--minutes", type=int, default=default_minutes)

    reset = sub.add_parser("reset-counter", help="set a numeric field on every account")
    reset.add_argument("--field", default="gameLimit")
    reset.add_argument("--value", type=int, default=0)

    sub.add_parser("backfill", help="add missing optional fields with their defaults")
    sub.add_parser("sweep", help="delete expired unverified accounts")
    return parser


async def run(args: argparse.Namespace, maintenance: MaintenanceService) -> int:
    if args.command == "grant-subscription":
        try:
            expiry = await maintenance.grant_subscription(args.email, args.minutes)
        except NotFoundError as e:
            log.error("grant_subscription_failed", error=e.message)
            return 1
        print(f"Subscription for {args.email} now expires at {expiry.isoformat()}")
    elif args.command == "reset-counter":
        modified = await maintenance.reset_usage_counter(args.field, args.value)
        print(f"Set {args.field}={args.value} on {modified} users")
    elif args.command == "backfill":
        results = await maintenance.backfill_defaults()
        for field, modified in results.items():
            print(f"Backfilled {field} on {modified} users")
    elif args.command == "sweep":
        deleted = await maintenance.sweep_abandoned_signups()
        print(f"Deleted {deleted} abandoned signups")
    return 0


async def _main(argv: Optional[Sequence[str]]) -> int:
    settings = AppSettings()
    setup_logging(settings.logging, is_production=settings.is_production)
    args = build_parser(settings.maintenance.subscription_grant_minutes).parse_args(argv)

    client: AsyncMongoClient = AsyncMongoClient(settings.db.mongodb_uri, tz_aware=True)
    try:
        users = UserRepository(client[settings.db.db_name]["users"])
        maintenance = MaintenanceService(
            users, default_game_limit=settings.maintenance.default_game_limit
        )
        return await run(args, maintenance)
    finally:
        await client.close()


def main(argv: Optional[Sequence[str]] = None) -> int:
    return asyncio.run(_main(argv))


if __name__ == "__main__":
    sys.exit(main())
