"""
Tests for client-side catalog filtering.
"""

import pytest

from silver_estates.frontend.catalog import (
    FilterCriteria,
    PriceBracket,
    RENTAL_BRACKETS,
    SALE_BRACKETS,
    filter_properties,
    resolve_bracket
)
from silver_estates.frontend.exceptions import ValidationError
from silver_estates.frontend.models import ListingKind, PropertyCard
from tests.conftest import ListingFactory


def sale_card(**fields) -> PropertyCard:
    return PropertyCard.from_record(ListingKind.SALE, ListingFactory.record(ListingKind.SALE, **fields))


def rental_card(**fields) -> PropertyCard:
    return PropertyCard.from_record(ListingKind.RENTAL, ListingFactory.record(ListingKind.RENTAL, **fields))


@pytest.fixture
def sale_cards():
    return [
        sale_card(title="Lake View Flat", location="Gwarighat, Jabalpur", property_type="apartment", price=4_500_000),
        sale_card(title="Garden Villa", location="Napier Town, Jabalpur", property_type="villa", price=8_500_000),
        sale_card(title="Heritage Bungalow", location="Civil Lines, Bhopal", property_type="house", price=25_000_000),
        sale_card(title="Corner Plot", location=None, property_type="plot", price=None),
    ]


class TestPriceBracket:
    """Test bracket bounds."""

    def test_lower_bound_is_exclusive(self):
        assert SALE_BRACKETS["mid"].contains(5_000_000) is False
        assert SALE_BRACKETS["low"].contains(5_000_000) is True

    def test_upper_bound_is_inclusive(self):
        assert SALE_BRACKETS["mid"].contains(10_000_000) is True
        assert SALE_BRACKETS["high"].contains(10_000_000) is False
        assert SALE_BRACKETS["high"].contains(10_000_001) is True

    def test_rental_boundaries(self):
        assert RENTAL_BRACKETS["0-15"].contains(15_000) is True
        assert RENTAL_BRACKETS["15-25"].contains(15_000) is False
        assert RENTAL_BRACKETS["40+"].contains(40_001) is True

    def test_missing_amount_never_matches(self):
        assert PriceBracket("Any").contains(None) is False

    def test_resolve_bracket_aliases(self):
        assert resolve_bracket(ListingKind.SALE, "50-100") is SALE_BRACKETS["mid"]
        assert resolve_bracket(ListingKind.SALE, "high") is SALE_BRACKETS["high"]
        assert resolve_bracket(ListingKind.RENTAL, "high") is None


class TestFilterProperties:
    """Test catalog predicates and their combination."""

    def test_empty_criteria_keeps_everything_in_order(self, sale_cards):
        result = filter_properties(sale_cards, FilterCriteria())
        assert result == sale_cards
        assert result is not sale_cards

    def test_text_query_matches_title_or_location(self, sale_cards):
        by_title = filter_properties(sale_cards, FilterCriteria(text_query="villa"))
        by_location = filter_properties(sale_cards, FilterCriteria(text_query="BHOPAL"))

        assert [c.title for c in by_title] == ["Garden Villa"]
        assert [c.title for c in by_location] == ["Heritage Bungalow"]

    def test_property_type_is_case_insensitive(self, sale_cards):
        result = filter_properties(sale_cards, FilterCriteria(property_type="Villa"))
        assert [c.title for c in result] == ["Garden Villa"]

    def test_location_excludes_missing_location(self, sale_cards):
        result = filter_properties(sale_cards, FilterCriteria(location="jabalpur"))
        assert [c.title for c in result] == ["Lake View Flat", "Garden Villa"]

    def test_price_bracket(self, sale_cards):
        result = filter_properties(sale_cards, FilterCriteria(price_bracket="50-100"))
        assert [c.title for c in result] == ["Garden Villa"]

    def test_null_price_fails_active_bracket(self, sale_cards):
        result = filter_properties(sale_cards, FilterCriteria(price_bracket="low"))
        assert "Corner Plot" not in [c.title for c in result]
        assert "Corner Plot" in [c.title for c in filter_properties(sale_cards, FilterCriteria())]

    def test_predicates_combine_with_and(self, sale_cards):
        criteria = FilterCriteria(text_query="jabalpur", price_bracket="0-50", property_type="apartment")
        result = filter_properties(sale_cards, criteria)
        assert [c.title for c in result] == ["Lake View Flat"]

    def test_blank_values_are_inactive(self, sale_cards):
        criteria = FilterCriteria(text_query="", price_bracket="", property_type="", location="")
        assert filter_properties(sale_cards, criteria) == sale_cards

    def test_rental_brackets_use_monthly_rent(self):
        cards = [
            rental_card(title="Studio", monthly_rent=12_000),
            rental_card(title="2BHK", monthly_rent=18_000),
            rental_card(title="Penthouse", monthly_rent=55_000),
        ]
        result = filter_properties(cards, FilterCriteria(price_bracket="15-25"))
        assert [c.title for c in result] == ["2BHK"]

    def test_sale_bracket_key_does_not_apply_to_rentals(self):
        cards = [rental_card(monthly_rent=12_000)]
        assert filter_properties(cards, FilterCriteria(price_bracket="low")) == []

    def test_unknown_bracket_is_rejected(self):
        with pytest.raises(ValidationError, match="Unknown price bracket"):
            FilterCriteria(price_bracket="cheap")
