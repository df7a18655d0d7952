"""
Pydantic schemas for listing inserts.
Insert schemas reject unknown columns so a malformed client payload never reaches the table.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List
from datetime import date
from decimal import Decimal


FURNISHED_CHOICES = ("fully", "semi", "unfurnished")


class ListingCreateBase(BaseModel):
    """Columns shared by both listing tables on insert."""

    model_config = ConfigDict(extra="forbid")

    user_id: Optional[str] = Field(
        None,
        description="Owner id; must match the signed-in user when given"
    )
    title: str = Field(..., min_length=1, max_length=255, description="Listing title")
    description: Optional[str] = Field(None, max_length=5000)
    property_type: str = Field(..., min_length=1, max_length=50, examples=["apartment"])
    bedrooms: Optional[int] = Field(None, ge=0, le=50)
    bathrooms: Optional[int] = Field(None, ge=0, le=50)
    area: Optional[Decimal] = Field(None, gt=0, description="Area in square feet")
    location: Optional[str] = Field(None, max_length=255)
    address: Optional[str] = Field(None, max_length=1000)
    contact_name: Optional[str] = Field(None, max_length=255)
    contact_phone: Optional[str] = Field(None, max_length=32)
    contact_email: Optional[str] = Field(None, max_length=255)
    images: List[str] = Field(default_factory=list, description="Image URIs or data URIs, in display order")

    @field_validator("title", "property_type")
    @classmethod
    def validate_required_text(cls, v):
        if not v or not v.strip():
            raise ValueError("Field cannot be empty")
        return v.strip()

    @field_validator("images", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return [] if v is None else v


class SalePropertyCreate(ListingCreateBase):
    price: Decimal = Field(..., gt=0, description="Asking price in rupees")


class RentalPropertyCreate(ListingCreateBase):
    monthly_rent: Decimal = Field(..., gt=0, description="Monthly rent in rupees")
    security_deposit: Optional[Decimal] = Field(None, ge=0)
    parking: Optional[int] = Field(None, ge=0, le=50)
    furnished: Optional[str] = Field(None, description="fully, semi or unfurnished")
    available_from: Optional[date] = None
    lease_duration: Optional[str] = Field(None, max_length=20)
    amenities: Optional[List[str]] = None

    @field_validator("furnished")
    @classmethod
    def validate_furnished(cls, v):
        if v is not None and v not in FURNISHED_CHOICES:
            raise ValueError(f"furnished must be one of: {', '.join(FURNISHED_CHOICES)}")
        return v

