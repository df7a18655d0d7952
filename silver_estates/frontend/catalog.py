"""
Client-side property catalog filtering.

The catalog pages fetch every listing once and derive the visible subset from
the user's criteria on every change. Filtering is pure: the input list and the
criteria are never mutated and the result keeps input order.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple
from silver_estates.frontend.exceptions import ValidationError
from silver_estates.frontend.models import ListingKind, PropertyCard


@dataclass(frozen=True)
class PriceBracket:
    """Amount range, exclusive below and inclusive above; None leaves a side open."""

    label: str
    lower: Optional[int] = None
    upper: Optional[int] = None

    def contains(self, amount: Optional[float]) -> bool:
        if amount is None:
            return False
        if self.lower is not None and amount <= self.lower:
            return False
        if self.upper is not None and amount > self.upper:
            return False
        return True


SALE_BRACKETS: Dict[str, PriceBracket] = {
    "low": PriceBracket("Under ₹50 Lakh", upper=5_000_000),
    "mid": PriceBracket("₹50 Lakh - ₹1 Crore", lower=5_000_000, upper=10_000_000),
    "high": PriceBracket("Above ₹1 Crore", lower=10_000_000),
}

# Option values of the buy page select
SALE_BRACKET_ALIASES: Dict[str, str] = {
    "0-50": "low",
    "50-100": "mid",
    "100+": "high",
}

RENTAL_BRACKETS: Dict[str, PriceBracket] = {
    "0-15": PriceBracket("₹0 - ₹15,000", upper=15_000),
    "15-25": PriceBracket("₹15,000 - ₹25,000", lower=15_000, upper=25_000),
    "25-40": PriceBracket("₹25,000 - ₹40,000", lower=25_000, upper=40_000),
    "40+": PriceBracket("₹40,000+", lower=40_000),
}

# Static sort labels; selecting one does not reorder results
SORT_OPTIONS: Dict[ListingKind, Tuple[Tuple[str, str], ...]] = {
    ListingKind.SALE: (
        ("price-low", "Price: Low to High"),
        ("price-high", "Price: High to Low"),
        ("newest", "Newest First"),
        ("area", "Area"),
    ),
    ListingKind.RENTAL: (
        ("price-low", "Rent: Low to High"),
        ("price-high", "Rent: High to Low"),
        ("newest", "Newest First"),
        ("area", "Area"),
    ),
}

SALE_PROPERTY_TYPES = ("apartment", "villa", "house", "plot", "commercial", "duplex", "farmland")
RENTAL_PROPERTY_TYPES = ("apartment", "house", "villa", "studio", "commercial")


def known_bracket_keys() -> List[str]:
    return [*SALE_BRACKETS, *SALE_BRACKET_ALIASES, *RENTAL_BRACKETS]


def resolve_bracket(kind: ListingKind, key: str) -> Optional[PriceBracket]:
    """Bracket named by key for a listing kind, or None when the kind defines no such bracket."""
    if kind is ListingKind.SALE:
        return SALE_BRACKETS.get(SALE_BRACKET_ALIASES.get(key, key))
    return RENTAL_BRACKETS.get(key)


@dataclass(frozen=True)
class FilterCriteria:
    """
    Catalog criteria as entered by the user. Blank values are inactive.

    Raises:
        ValidationError: If price_bracket names no known bracket
    """

    text_query: str = ""
    price_bracket: Optional[str] = None
    property_type: Optional[str] = None
    location: Optional[str] = None

    def __post_init__(self):
        if self.price_bracket and self.price_bracket not in known_bracket_keys():
            raise ValidationError(f"Unknown price bracket '{self.price_bracket}'", field="price_bracket")


def matches_text(card: PropertyCard, query: str) -> bool:
    if not query:
        return True
    needle = query.lower()
    return needle in (card.title or "").lower() or needle in (card.location or "").lower()


def matches_type(card: PropertyCard, property_type: Optional[str]) -> bool:
    if not property_type:
        return True
    return (card.property_type or "").lower() == property_type.lower()


def matches_location(card: PropertyCard, location: Optional[str]) -> bool:
    if not location:
        return True
    if card.location is None:
        return False
    return location.lower() in card.location.lower()


def matches_bracket(card: PropertyCard, bracket_key: Optional[str]) -> bool:
    if not bracket_key:
        return True
    bracket = resolve_bracket(card.kind, bracket_key)
    return bracket is not None and bracket.contains(card.amount)


def matches(card: PropertyCard, criteria: FilterCriteria) -> bool:
    return (
        matches_text(card, criteria.text_query)
        and matches_type(card, criteria.property_type)
        and matches_location(card, criteria.location)
        and matches_bracket(card, criteria.price_bracket)
    )


def filter_properties(cards: Iterable[PropertyCard], criteria: FilterCriteria) -> List[PropertyCard]:
    """Cards passing every active predicate, in input order."""
    return [card for card in cards if matches(card, criteria)]
