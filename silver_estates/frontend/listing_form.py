"""
Listing form validation and coercion.

Turns the raw strings of the sale and rental forms into a record the remote
store accepts. Validation never touches the store.
"""

from typing import Any, Dict, List, Mapping, Optional, Tuple, Union
import math
import re

from silver_estates.frontend.exceptions import AuthRequiredError, InvalidNumberError, MissingFieldError
from silver_estates.frontend.models import ListingKind
from silver_estates.frontend.session import AuthSession

Number = Union[int, float]

REQUIRED_FIELDS: Dict[ListingKind, Tuple[str, ...]] = {
    ListingKind.SALE: ("title", "price", "property_type"),
    ListingKind.RENTAL: ("title", "monthly_rent", "property_type"),
}

COUNT_FIELDS: Dict[ListingKind, Tuple[str, ...]] = {
    ListingKind.SALE: ("bedrooms", "bathrooms", "area"),
    ListingKind.RENTAL: ("bedrooms", "bathrooms", "parking", "area"),
}

TEXT_FIELDS: Dict[ListingKind, Tuple[str, ...]] = {
    ListingKind.SALE: (
        "description", "location", "address", "contact_name", "contact_phone", "contact_email",
    ),
    ListingKind.RENTAL: (
        "description", "location", "address", "contact_name", "contact_phone", "contact_email",
        "furnished", "available_from", "lease_duration",
    ),
}

AMENITIES = (
    "Air Conditioning", "Parking", "Swimming Pool", "Gym", "Lift",
    "Security", "Power Backup", "Garden", "Balcony", "Furnished Kitchen",
)

LEASE_DURATIONS = ("11months", "1year", "2years", "3years", "flexible")

_SEPARATORS = re.compile(r"[,\s]")
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def form_fields(kind: ListingKind) -> Tuple[str, ...]:
    """Every field the form for a listing kind carries."""
    fields = REQUIRED_FIELDS[kind] + COUNT_FIELDS[kind] + TEXT_FIELDS[kind] + ("images",)
    if kind is ListingKind.RENTAL:
        fields += ("security_deposit", "amenities")
    return fields


def blank_form(kind: ListingKind) -> Dict[str, Any]:
    form: Dict[str, Any] = {name: "" for name in form_fields(kind)}
    form["images"] = []
    if kind is ListingKind.RENTAL:
        form["amenities"] = []
    return form


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_amount(raw: Any, field: str, allow_zero: bool = False) -> Number:
    """
    Parse a currency amount, ignoring thousands separators and whitespace.

    Raises:
        InvalidNumberError: If the value is not a finite number, or not positive
    """
    text = _SEPARATORS.sub("", str(raw))
    try:
        value = float(text)
    except ValueError:
        raise InvalidNumberError(field, str(raw))

    if not math.isfinite(value) or value < 0 or (value == 0 and not allow_zero):
        raise InvalidNumberError(field, str(raw))

    return int(value) if value.is_integer() else value


def parse_count(raw: Any, field: str) -> Optional[int]:
    """
    Leading-integer parse of an optional numeric field: '' -> None, '5+' -> 5.

    Raises:
        InvalidNumberError: If a non-empty value has no leading digits or is negative
    """
    if _is_blank(raw):
        return None

    match = _LEADING_INT.match(str(raw))
    if not match or int(match.group(1)) < 0:
        raise InvalidNumberError(field, str(raw))
    return int(match.group(1))


def _optional_text(raw: Any) -> Optional[str]:
    return None if _is_blank(raw) else str(raw).strip()


class ListingFormValidator:
    """Validates listing forms and attaches the signed-in owner."""

    def __init__(self, session: AuthSession):
        self.session = session

    def validate(self, form: Mapping[str, Any], kind: ListingKind) -> Dict[str, Any]:
        """
        Validate and coerce a form into a listing record without an owner.

        Raises:
            MissingFieldError: For the first required field that is empty
            InvalidNumberError: For an amount or count that does not parse
        """
        for name in REQUIRED_FIELDS[kind]:
            if _is_blank(form.get(name)):
                raise MissingFieldError(name)

        amount_field = kind.amount_field
        record: Dict[str, Any] = {
            "title": str(form["title"]).strip(),
            amount_field: parse_amount(form[amount_field], amount_field),
            "property_type": str(form["property_type"]).strip(),
        }

        for name in COUNT_FIELDS[kind]:
            record[name] = parse_count(form.get(name), name)

        for name in TEXT_FIELDS[kind]:
            record[name] = _optional_text(form.get(name))

        if kind is ListingKind.RENTAL:
            deposit = form.get("security_deposit")
            record["security_deposit"] = (
                None if _is_blank(deposit) else parse_amount(deposit, "security_deposit", allow_zero=True)
            )
            amenities: List[str] = list(form.get("amenities") or [])
            record["amenities"] = amenities or None

        record["images"] = list(form.get("images") or [])
        return record

    def prepare(self, form: Mapping[str, Any], kind: ListingKind) -> Dict[str, Any]:
        """
        Validate a form for submission by the signed-in user.

        The session is checked first: it may have ended while the form was being filled.

        Raises:
            AuthRequiredError: If nobody is signed in
            MissingFieldError, InvalidNumberError: As for validate()
        """
        user = self.session.current_user
        if not self.session.is_authenticated or user is None:
            raise AuthRequiredError("Please log in to list your property")

        record = self.validate(form, kind)
        record["user_id"] = user.id
        return record
