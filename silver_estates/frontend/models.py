"""
View models shared by the application core: listing kinds, accounts and property cards.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class ListingKind(str, Enum):
    """Kind of listing; each kind lives in its own remote table."""

    SALE = "sale"
    RENTAL = "rental"

    @property
    def table(self) -> str:
        return "sale_properties" if self is ListingKind.SALE else "rental_properties"

    @property
    def amount_field(self) -> str:
        return "price" if self is ListingKind.SALE else "monthly_rent"


@dataclass(frozen=True)
class UserAccount:
    """Signed-in account as seen by the application."""

    id: str
    email: str
    display_name: Optional[str] = None
    phone: Optional[str] = None
    city: Optional[str] = None
    user_type: Optional[str] = None
    email_confirmed: bool = False
    created_at: Optional[str] = None

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "UserAccount":
        return cls(
            id=str(data["id"]),
            email=data["email"],
            display_name=data.get("full_name"),
            phone=data.get("phone_number"),
            city=data.get("city"),
            user_type=data.get("user_type"),
            email_confirmed=bool(data.get("email_confirmed", False)),
            created_at=data.get("created_at"),
        )


@dataclass(frozen=True)
class PropertyCard:
    """
    Sale and rental records unified to one shape for listing pages.
    `amount` is the price of a sale or the monthly rent of a rental.
    """

    id: str
    kind: ListingKind
    owner_id: Optional[str]
    title: str
    location: Optional[str] = None
    property_type: Optional[str] = None
    amount: Optional[float] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    parking: Optional[int] = None
    area: Optional[float] = None
    furnished: Optional[str] = None
    security_deposit: Optional[float] = None
    images: Tuple[str, ...] = field(default_factory=tuple)
    created_at: Optional[str] = None

    @classmethod
    def from_record(cls, kind: ListingKind, record: Dict[str, Any]) -> "PropertyCard":
        return cls(
            id=str(record["id"]),
            kind=kind,
            owner_id=record.get("user_id"),
            title=record.get("title") or "",
            location=record.get("location"),
            property_type=record.get("property_type"),
            amount=record.get(kind.amount_field),
            bedrooms=record.get("bedrooms"),
            bathrooms=record.get("bathrooms"),
            parking=record.get("parking"),
            area=record.get("area"),
            furnished=record.get("furnished"),
            security_deposit=record.get("security_deposit"),
            images=tuple(record.get("images") or ()),
            created_at=record.get("created_at"),
        )

    @property
    def detail_path(self) -> str:
        return f"/property/{self.id}/{self.kind.value}"
