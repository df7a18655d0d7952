"""
Listing models for the sale_properties and rental_properties tables.
Both tables share the descriptive columns; they differ in how the asking amount is stored.
"""

from sqlalchemy import String, Text, Integer, Numeric, JSON, ForeignKey, Uuid, Index
from sqlalchemy.orm import Mapped, mapped_column
from silver_estates.database import Base
from decimal import Decimal
from typing import List, Optional
import uuid


def _number(value: Optional[Decimal]):
    """Render a numeric column as int when it carries no fraction."""
    if value is None:
        return None
    if value == value.to_integral_value():
        return int(value)
    return float(value)


class ListingColumns:
    """Columns shared by sale and rental listings."""

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id"),
        nullable=False,
        index=True,
        comment="Owner of the listing"
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    property_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)

    bedrooms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    bathrooms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    area: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=12, scale=2),
        nullable=True,
        comment="Area in square feet"
    )

    location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    contact_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    contact_phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    contact_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    images: Mapped[Optional[List[str]]] = mapped_column(JSON, nullable=True)

    def _common_dict(self) -> dict:
        return {
            "id": str(self.id),
            "user_id": str(self.user_id),
            "title": self.title,
            "description": self.description,
            "property_type": self.property_type,
            "bedrooms": self.bedrooms,
            "bathrooms": self.bathrooms,
            "area": _number(self.area),
            "location": self.location,
            "address": self.address,
            "contact_name": self.contact_name,
            "contact_phone": self.contact_phone,
            "contact_email": self.contact_email,
            "images": list(self.images or []),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


class SaleProperty(ListingColumns, Base):
    """Property listed for sale."""

    __tablename__ = "sale_properties"

    price: Mapped[Decimal] = mapped_column(
        Numeric(precision=14, scale=2),
        nullable=False,
        index=True,
        comment="Asking price in rupees"
    )

    def __repr__(self) -> str:
        return f"<SaleProperty(id={self.id}, title={self.title[:30]}, price={self.price})>"

    def validate_price(self) -> None:
        """
        Raises:
            ValueError: If price is not positive
        """
        if self.price is None or self.price <= 0:
            raise ValueError("Property price must be greater than 0")

    def to_dict(self) -> dict:
        result = self._common_dict()
        result["price"] = _number(self.price)
        return result


class RentalProperty(ListingColumns, Base):
    """Property listed for rent."""

    __tablename__ = "rental_properties"

    monthly_rent: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        nullable=False,
        index=True,
        comment="Monthly rent in rupees"
    )

    security_deposit: Mapped[Optional[Decimal]] = mapped_column(Numeric(precision=12, scale=2), nullable=True)
    parking: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    furnished: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    available_from: Mapped[Optional[str]] = mapped_column(String(10), nullable=True, comment="ISO date")
    lease_duration: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    amenities: Mapped[Optional[List[str]]] = mapped_column(JSON, nullable=True)

    def __repr__(self) -> str:
        return f"<RentalProperty(id={self.id}, title={self.title[:30]}, monthly_rent={self.monthly_rent})>"

    def validate_price(self) -> None:
        """
        Raises:
            ValueError: If monthly rent is not positive
        """
        if self.monthly_rent is None or self.monthly_rent <= 0:
            raise ValueError("Monthly rent must be greater than 0")

    def to_dict(self) -> dict:
        result = self._common_dict()
        result.update({
            "monthly_rent": _number(self.monthly_rent),
            "security_deposit": _number(self.security_deposit),
            "parking": self.parking,
            "furnished": self.furnished,
            "available_from": self.available_from,
            "lease_duration": self.lease_duration,
            "amenities": list(self.amenities) if self.amenities else None,
        })
        return result


# Owner listings are always read newest first
sale_owner_index = Index(
    "idx_sale_properties_owner_created",
    SaleProperty.user_id,
    SaleProperty.created_at.desc()
)

rental_owner_index = Index(
    "idx_rental_properties_owner_created",
    RentalProperty.user_id,
    RentalProperty.created_at.desc()
)
