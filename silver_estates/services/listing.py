"""
Table service behind the generic /tables endpoints.
Applies the store's access rules: profiles are read-only and visible only to their owner,
listings may be inserted by any signed-in user for themselves and deleted only by their owner.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Type
from pydantic import BaseModel, ValidationError as PydanticValidationError
from sqlalchemy import Boolean, Integer, Numeric, Uuid
from sqlalchemy.ext.asyncio import AsyncSession
from silver_estates.config import settings
from silver_estates.models.user import User
from silver_estates.repositories.base import BaseRepository
from silver_estates.repositories.property import SalePropertyRepository, RentalPropertyRepository
from silver_estates.repositories.user import ProfileRepository
from silver_estates.schemas.property import SalePropertyCreate, RentalPropertyCreate
from silver_estates.utils.exceptions import (
    APIException,
    BadRequestError,
    ForbiddenError,
    ListingOwnershipError,
    NotFoundError,
    PrivateRowError,
    ReadOnlyTableError,
    UnauthorizedError,
    UnknownTableError,
    ValidationError
)
import uuid
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TableAccess:
    repository: Type[BaseRepository]
    create_schema: Optional[Type[BaseModel]] = None
    # Reads are limited to rows whose column matches the signed-in user
    reader_column: Optional[str] = None

    @property
    def writable(self) -> bool:
        return self.create_schema is not None


TABLES: Dict[str, TableAccess] = {
    "profiles": TableAccess(ProfileRepository, reader_column="id"),
    "sale_properties": TableAccess(SalePropertyRepository, SalePropertyCreate),
    "rental_properties": TableAccess(RentalPropertyRepository, RentalPropertyCreate),
}


def coerce_filter_value(column, raw: str) -> Any:
    """
    Convert a query-string value to the column's Python type.

    Raises:
        ValueError: If the value cannot represent the column type
    """
    column_type = column.type
    if isinstance(column_type, Uuid):
        return uuid.UUID(raw)
    if isinstance(column_type, Boolean):
        lowered = raw.lower()
        if lowered not in ("true", "false", "1", "0"):
            raise ValueError(f"'{raw}' is not a boolean")
        return lowered in ("true", "1")
    if isinstance(column_type, Integer):
        return int(raw)
    if isinstance(column_type, Numeric):
        try:
            return Decimal(raw)
        except InvalidOperation:
            raise ValueError(f"'{raw}' is not a number")
    return raw


class ListingService:
    """
    Service for reading and writing the store's tables.
    Every result row is returned as a plain dict in wire form.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    def _table(self, table: str) -> TableAccess:
        access = TABLES.get(table)
        if access is None:
            raise UnknownTableError(table)
        return access

    @staticmethod
    def _reader(table: str, access: TableAccess, current_user: Optional[User]) -> Optional[User]:
        """Return the user private reads are scoped to, or None for public tables."""
        if access.reader_column is None:
            return None
        if current_user is None:
            raise UnauthorizedError(f"Authentication token required to read {table}")
        return current_user

    async def query(
        self,
        table: str,
        filters: Optional[Dict[str, str]] = None,
        order: Optional[str] = None,
        limit: Optional[int] = None,
        current_user: Optional[User] = None
    ) -> List[Dict[str, Any]]:
        """
        Query a table with equality filters.

        Args:
            table: Table name
            filters: Column name to raw query-string value
            order: Column name, optionally suffixed with '.desc' or '.asc'
            limit: Maximum rows; capped at the configured maximum
            current_user: Signed-in user, required for private tables

        Raises:
            UnknownTableError: If the table does not exist
            UnauthorizedError: If a private table is read anonymously
            PrivateRowError: If a private table is filtered to another user
            ValidationError: If a filter, order or limit is invalid
        """
        access = self._table(table)
        reader = self._reader(table, access, current_user)
        repo = access.repository(self.db)

        filters = dict(filters or {})
        if reader is not None:
            requested = filters.get(access.reader_column)
            if requested is not None and requested != str(reader.id):
                logger.warning(f"User {reader.id} tried to read {table} rows of {requested}")
                raise PrivateRowError(table)
            filters[access.reader_column] = str(reader.id)

        if limit is None:
            limit = settings.max_query_limit
        elif limit < 1:
            raise ValidationError("limit must be at least 1")
        limit = min(limit, settings.max_query_limit)

        if order:
            field_name, _, direction = order.partition(".")
            if direction not in ("", "asc", "desc"):
                raise ValidationError(f"Invalid order direction: {direction}")

        typed_filters = {}
        try:
            for field, raw in filters.items():
                typed_filters[field] = coerce_filter_value(repo._column(field), raw)
            rows = await repo.get_multi(filters=typed_filters, order_by=order, limit=limit)
        except ValueError as e:
            raise ValidationError(str(e))

        logger.debug(f"Query on {table} with {typed_filters} returned {len(rows)} rows")
        return [row.to_dict() for row in rows]

    async def get(self, table: str, row_id: str, current_user: Optional[User] = None) -> Dict[str, Any]:
        """
        Fetch one row by id.

        Raises:
            UnknownTableError: If the table does not exist
            UnauthorizedError: If a private table is read anonymously
            NotFoundError: If no row has the id
            PrivateRowError: If the row belongs to another user
        """
        access = self._table(table)
        reader = self._reader(table, access, current_user)
        repo = access.repository(self.db)

        try:
            key = uuid.UUID(row_id)
        except ValueError:
            raise NotFoundError("Row", row_id)

        row = await repo.get_by_id(key)
        if row is None:
            raise NotFoundError("Row", row_id)
        if reader is not None and getattr(row, access.reader_column) != reader.id:
            raise PrivateRowError(table)
        return row.to_dict()

    async def insert(self, table: str, payload: Dict[str, Any], current_user: User) -> Dict[str, Any]:
        """
        Insert a listing owned by the current user.

        Raises:
            UnknownTableError: If the table does not exist
            ReadOnlyTableError: If the table does not accept inserts
            ValidationError: If the payload does not fit the table
            ForbiddenError: If the payload names another owner
        """
        access = self._table(table)
        if not access.writable:
            raise ReadOnlyTableError(table)

        try:
            listing = access.create_schema.model_validate(payload)
        except PydanticValidationError as e:
            field_errors = [
                {"field": ".".join(str(loc) for loc in error["loc"]), "message": error["msg"]}
                for error in e.errors()
            ]
            raise ValidationError("Invalid row for table " + table, field_errors=field_errors)

        if listing.user_id is not None and listing.user_id != str(current_user.id):
            raise ForbiddenError("Cannot create a listing for another user")

        create_data = listing.model_dump()
        create_data["user_id"] = current_user.id
        if create_data.get("available_from") is not None:
            create_data["available_from"] = create_data["available_from"].isoformat()

        try:
            row = await access.repository(self.db).create_listing(create_data)
        except APIException:
            raise
        except ValueError as e:
            raise ValidationError(str(e))
        except Exception as e:
            logger.error(f"Failed to insert into {table} for user {current_user.id}: {e}")
            raise BadRequestError(f"Failed to create listing: {str(e)}")

        logger.info(f"User {current_user.email} listed {table} row {row.id}")
        return row.to_dict()

    async def delete(self, table: str, row_id: str, current_user: User) -> None:
        """
        Delete a listing owned by the current user.

        Raises:
            UnknownTableError: If the table does not exist
            ReadOnlyTableError: If the table does not accept deletes
            NotFoundError: If no row has the id
            ListingOwnershipError: If the row belongs to someone else
        """
        access = self._table(table)
        if not access.writable:
            raise ReadOnlyTableError(table)

        repo = access.repository(self.db)
        try:
            key = uuid.UUID(row_id)
        except ValueError:
            raise NotFoundError("Row", row_id)

        row = await repo.get_by_id(key)
        if row is None:
            raise NotFoundError("Row", row_id)

        if row.user_id != current_user.id:
            logger.warning(f"User {current_user.id} tried to delete {table} row {row_id} owned by {row.user_id}")
            raise ListingOwnershipError()

        await repo.delete(key)
        logger.info(f"User {current_user.email} deleted {table} row {row_id}")
