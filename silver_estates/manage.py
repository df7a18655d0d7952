"""
Database management commands for the remote store service.
Creates, drops, resets and seeds the listing tables.
"""

import argparse
import asyncio
import logging
import sys
from decimal import Decimal
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, AsyncSession

from silver_estates.config import settings
from silver_estates.database import engine, create_tables, drop_tables
from silver_estates.repositories.property import SalePropertyRepository, RentalPropertyRepository
from silver_estates.repositories.user import ProfileRepository, UserRepository

logger = logging.getLogger(__name__)

DEMO_EMAIL = "demo@silverestates.in"
DEMO_PASSWORD = "silver123"


class DatabaseManager:
    """Runs schema and seed operations against one engine."""

    def __init__(self, target_engine: Optional[AsyncEngine] = None):
        self.engine = target_engine or engine
        self.session_factory = async_sessionmaker(self.engine, class_=AsyncSession, expire_on_commit=False)

    async def create(self) -> None:
        await create_tables(self.engine)

    async def drop(self) -> None:
        await drop_tables(self.engine)

    async def seed(self) -> bool:
        """
        Add a confirmed demo owner with one sale and one rental listing.
        Returns False when the demo owner already exists.
        """
        async with self.session_factory() as session:
            users = UserRepository(session)
            if await users.get_by_email(DEMO_EMAIL):
                logger.info("Demo owner already exists, skipping seed")
                return False

            try:
                owner = await users.create_user({
                    "email": DEMO_EMAIL,
                    "password": DEMO_PASSWORD,
                    "email_confirmed": True,
                })
                await ProfileRepository(session).create({
                    "id": owner.id,
                    "full_name": "Silver Estates Demo",
                    "city": "Jabalpur",
                })
                await SalePropertyRepository(session).create_listing({
                    "user_id": owner.id,
                    "title": "3BHK Independent House",
                    "property_type": "house",
                    "price": Decimal("8500000"),
                    "bedrooms": 3,
                    "bathrooms": 2,
                    "area": Decimal("1650"),
                    "location": "Napier Town, Jabalpur",
                })
                await RentalPropertyRepository(session).create_listing({
                    "user_id": owner.id,
                    "title": "2BHK Apartment near Civic Centre",
                    "property_type": "apartment",
                    "monthly_rent": Decimal("18000"),
                    "security_deposit": Decimal("36000"),
                    "bedrooms": 2,
                    "bathrooms": 2,
                    "furnished": "semi",
                    "amenities": ["Lift", "Power Backup"],
                })
            except Exception as e:
                await session.rollback()
                logger.error(f"Failed to seed database: {e}")
                raise

        logger.info("Database seeded successfully")
        logger.info(f"  Email: {DEMO_EMAIL}")
        logger.info(f"  Password: {DEMO_PASSWORD}")
        logger.warning("The demo owner is for development only")
        return True

    async def reset(self) -> None:
        """Drop and recreate every table, then seed."""
        logger.warning("Resetting database - all data will be lost!")
        await self.drop()
        await self.create()
        await self.seed()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Silver Estates database management")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("create", help="Create all tables")
    subparsers.add_parser("drop", help="Drop all tables (development only)")
    subparsers.add_parser("seed", help="Add a demo owner and listings")

    reset_parser = subparsers.add_parser("reset", help="Drop, recreate and seed (development only)")
    reset_parser.add_argument("--confirm", action="store_true", help="Confirm database reset")

    return parser


async def run_command(manager: DatabaseManager, command: str) -> None:
    if command == "create":
        await manager.create()
    elif command == "drop":
        await manager.drop()
    elif command == "seed":
        await manager.seed()
    elif command == "reset":
        await manager.reset()


def main(argv=None) -> int:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    if args.command == "reset" and not args.confirm:
        print("Database reset requires --confirm flag")
        return 1

    try:
        asyncio.run(run_command(DatabaseManager(), args.command))
    except Exception as e:
        logger.error(f"Command failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
