"""
Listing repositories for the sale_properties and rental_properties tables.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from silver_estates.repositories.base import BaseRepository
from silver_estates.models.property import SaleProperty, RentalProperty
from typing import Any, Dict, Type, Union
import logging

logger = logging.getLogger(__name__)

Listing = Union[SaleProperty, RentalProperty]


class ListingRepository(BaseRepository[Listing]):
    """
    Repository for one listing table.
    Validates the asking amount before anything reaches the database.
    """

    def __init__(self, model: Type[Listing], db: AsyncSession):
        super().__init__(model, db)

    async def create_listing(self, listing_data: Dict[str, Any]) -> Listing:
        """
        Create a new listing with validation.

        Raises:
            ValueError: If the asking amount is not positive
        """
        candidate = self.model(**listing_data)
        candidate.validate_price()

        created = await self.create(listing_data)
        logger.info(f"Created {self.model.__tablename__} row: {created.title} (ID: {created.id})")
        return created


class SalePropertyRepository(ListingRepository):
    def __init__(self, db: AsyncSession):
        super().__init__(SaleProperty, db)


class RentalPropertyRepository(ListingRepository):
    def __init__(self, db: AsyncSession):
        super().__init__(RentalProperty, db)
