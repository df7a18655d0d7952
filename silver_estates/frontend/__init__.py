"""
Application core of The Silver Estates.

Framework-agnostic presentation logic: authentication state, route guarding,
catalog filtering, price formatting, listing validation and the page
controllers that compose them. Persistence goes through a RemoteStore.
"""

from .app import Application, create_app
from .catalog import FilterCriteria, filter_properties
from .formatting import format_deposit, format_price, format_rent, format_rent_abbreviated, price_label
from .guard import GuardDecision, GuardOutcome, RouteGuard
from .listing_form import ListingFormValidator
from .models import ListingKind, PropertyCard, UserAccount
from .session import AuthResult, AuthSession, AuthState, SignUpResult
from .store import AuthEvent, HttpRemoteStore, RemoteStore, StoreSession

__all__ = [
    "Application",
    "create_app",
    "FilterCriteria",
    "filter_properties",
    "format_deposit",
    "format_price",
    "format_rent",
    "format_rent_abbreviated",
    "price_label",
    "GuardDecision",
    "GuardOutcome",
    "RouteGuard",
    "ListingFormValidator",
    "ListingKind",
    "PropertyCard",
    "UserAccount",
    "AuthResult",
    "AuthSession",
    "AuthState",
    "SignUpResult",
    "AuthEvent",
    "HttpRemoteStore",
    "RemoteStore",
    "StoreSession",
]
