"""
Currency formatting in Indian magnitude notation.

1 Lakh = 100,000 and 1 Crore = 10,000,000. Abbreviated amounts are rounded
half-up to one decimal. Each page picks the formatter it displays with:
the rent list abbreviates rent, the property detail view does not.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

Amount = Union[int, float, Decimal]

CRORE = Decimal(10_000_000)
LAKH = Decimal(100_000)
ONE_DECIMAL = Decimal("0.1")


def _to_decimal(amount: Optional[Amount]) -> Decimal:
    # Missing amounts display as zero
    if amount is None:
        return Decimal(0)
    return Decimal(str(amount))


def _grouped(value: Decimal) -> str:
    """Thousands separators; whole numbers lose their fraction."""
    if value == value.to_integral_value():
        return f"{int(value):,}"
    return f"{value.normalize():,f}"


def format_price(amount: Optional[Amount]) -> str:
    """
    Render an amount in Crore/Lakh notation.

    >>> format_price(5_000_000)
    '50.0 Lakh'
    >>> format_price(12_500_000)
    '1.3 Crore'
    >>> format_price(50_000)
    '50,000'
    """
    value = _to_decimal(amount)

    if value >= CRORE:
        return f"{(value / CRORE).quantize(ONE_DECIMAL, rounding=ROUND_HALF_UP)} Crore"
    if value >= LAKH:
        return f"{(value / LAKH).quantize(ONE_DECIMAL, rounding=ROUND_HALF_UP)} Lakh"
    return _grouped(value)


def price_label(amount: Optional[Amount]) -> str:
    """Price as displayed on sale cards and the sale detail view."""
    return f"₹{format_price(amount)}"


def format_rent(rent: Optional[Amount]) -> str:
    """Full monthly rent, e.g. '₹18,000/month'."""
    return f"₹{_grouped(_to_decimal(rent))}/month"


def format_rent_abbreviated(rent: Optional[Amount]) -> str:
    """Monthly rent in Lakh/Crore notation, used on the rent list page."""
    return f"₹{format_price(rent)}/month"


def format_deposit(deposit: Optional[Amount]) -> str:
    if not deposit:
        return "Not specified"
    return f"₹{_grouped(_to_decimal(deposit))}"


def format_area(area: Optional[Amount]) -> str:
    if not area:
        return "Not specified"
    return f"{_grouped(_to_decimal(area))} sq ft"
