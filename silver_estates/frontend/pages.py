"""
Page controllers for the application's routes.

A page holds the state a view renders (records, loading flag, form values)
and performs its remote store calls. Remote failures become toasts and leave
the previous state in place. Each load bumps a generation counter; results
that arrive after a newer load began, or after the page was unmounted, are dropped.
"""

from dataclasses import dataclass, replace
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple
import asyncio
import logging

from silver_estates.frontend.catalog import (
    RENTAL_BRACKETS,
    RENTAL_PROPERTY_TYPES,
    SALE_BRACKETS,
    SALE_BRACKET_ALIASES,
    SALE_PROPERTY_TYPES,
    SORT_OPTIONS,
    FilterCriteria,
    filter_properties
)
from silver_estates.frontend.exceptions import (
    AppError,
    AuthError,
    AuthRequiredError,
    PermissionDeniedError,
    ValidationError
)
from silver_estates.frontend.formatting import (
    format_area,
    format_deposit,
    format_rent,
    format_rent_abbreviated,
    price_label
)
from silver_estates.frontend.guard import AUTH_ROUTE
from silver_estates.frontend.images import ImageCapture
from silver_estates.frontend.listing_form import (
    AMENITIES,
    ListingFormValidator,
    blank_form,
    form_fields
)
from silver_estates.frontend.models import ListingKind, PropertyCard, UserAccount
from silver_estates.frontend.notifications import ToastQueue
from silver_estates.frontend.session import AuthSession
from silver_estates.frontend.store import RemoteStore

logger = logging.getLogger(__name__)

HOME_ROUTE = "/"


@dataclass
class PageContext:
    """Collaborators every page receives from the application shell."""

    store: RemoteStore
    session: AuthSession
    toasts: ToastQueue
    navigate: Callable[[str], Awaitable[None]]


class Page:
    title = ""

    def __init__(self, context: PageContext):
        self.context = context
        self.loading = False
        self.mounted = True
        self._generation = 0
        self._subscriptions: List[Callable[[], None]] = []

    @property
    def store(self) -> RemoteStore:
        return self.context.store

    @property
    def session(self) -> AuthSession:
        return self.context.session

    @property
    def toasts(self) -> ToastQueue:
        return self.context.toasts

    async def load(self) -> None:
        """Fetch whatever the page shows. Called by the shell after mounting."""

    def unmount(self) -> None:
        self.mounted = False
        self._generation += 1
        for unsubscribe in self._subscriptions:
            unsubscribe()
        self._subscriptions.clear()

    def _begin(self) -> int:
        self._generation += 1
        self.loading = True
        return self._generation

    def _is_current(self, generation: int) -> bool:
        return self.mounted and generation == self._generation

    def _finish(self, generation: int) -> bool:
        """Clear the loading flag when the result is still wanted. Returns whether it is."""
        if not self._is_current(generation):
            logger.debug(f"Dropping stale response on {type(self).__name__}")
            return False
        self.loading = False
        return True


class StaticPage(Page):
    """Content-only page: home, developer and not-found views."""

    def __init__(self, context: PageContext, title: str):
        super().__init__(context)
        self.title = title


class CatalogPage(Page):
    """Buy and rent pages: every listing of one kind, filtered in memory."""

    def __init__(self, context: PageContext, kind: ListingKind):
        super().__init__(context)
        self.kind = kind
        self.title = "Find Your Dream Home" if kind is ListingKind.SALE else "Find Your Perfect Rental"
        self.cards: List[PropertyCard] = []
        self.criteria = FilterCriteria()
        self.sort_by: Optional[str] = None

    async def load(self) -> None:
        generation = self._begin()
        try:
            rows = await self.store.query(self.kind.table, order="created_at.desc")
        except AppError as e:
            if self._finish(generation):
                logger.warning(f"Failed to fetch {self.kind.table}: {e}")
                self.toasts.error("Error", "Failed to fetch properties")
            return

        if self._finish(generation):
            self.cards = [PropertyCard.from_record(self.kind, row) for row in rows]

    @property
    def visible(self) -> List[PropertyCard]:
        return filter_properties(self.cards, self.criteria)

    @property
    def result_label(self) -> str:
        count = len(self.visible)
        if self.kind is ListingKind.SALE:
            return f"{count} Properties Found"
        return f"{count} Rental Properties Available"

    @property
    def bracket_options(self) -> List[Tuple[str, str]]:
        if self.kind is ListingKind.SALE:
            return [(alias, SALE_BRACKETS[key].label) for alias, key in SALE_BRACKET_ALIASES.items()]
        return [(key, bracket.label) for key, bracket in RENTAL_BRACKETS.items()]

    @property
    def property_type_options(self) -> Tuple[str, ...]:
        return SALE_PROPERTY_TYPES if self.kind is ListingKind.SALE else RENTAL_PROPERTY_TYPES

    @property
    def sort_options(self) -> Tuple[Tuple[str, str], ...]:
        return SORT_OPTIONS[self.kind]

    def set_criteria(self, **changes: Any) -> FilterCriteria:
        """
        Raises:
            ValidationError: If an unknown price bracket is chosen; criteria stay unchanged
        """
        self.criteria = replace(self.criteria, **changes)
        return self.criteria

    def clear_filters(self) -> None:
        self.criteria = FilterCriteria()

    def set_sort(self, option: str) -> None:
        """Remember the selected sort label. Results keep their order."""
        if option not in dict(self.sort_options):
            raise ValidationError(f"Unknown sort option '{option}'", field="sort_by")
        self.sort_by = option

    def price_text(self, card: PropertyCard) -> str:
        if card.kind is ListingKind.SALE:
            return price_label(card.amount)
        return format_rent_abbreviated(card.amount)


class PropertyDetailsPage(Page):
    """One listing in full, with an image carousel."""

    def __init__(self, context: PageContext, property_id: str, kind: ListingKind):
        super().__init__(context)
        self.property_id = property_id
        self.kind = kind
        self.record: Optional[Dict[str, Any]] = None
        self.current_image_index = 0

    async def load(self) -> None:
        generation = self._begin()
        try:
            record = await self.store.get_by_id(self.kind.table, self.property_id)
        except AppError as e:
            if self._finish(generation):
                logger.warning(f"Failed to fetch {self.kind.table} {self.property_id}: {e}")
                self.toasts.error("Error", "Failed to fetch property details")
            return

        if self._finish(generation):
            self.record = record
            self.current_image_index = 0
            self.title = record.get("title") or ""

    @property
    def card(self) -> Optional[PropertyCard]:
        return PropertyCard.from_record(self.kind, self.record) if self.record else None

    @property
    def price_text(self) -> str:
        card = self.card
        if card is None:
            return ""
        if self.kind is ListingKind.SALE:
            return price_label(card.amount)
        return format_rent(card.amount)

    @property
    def deposit_text(self) -> str:
        return format_deposit(self.record.get("security_deposit") if self.record else None)

    @property
    def area_text(self) -> str:
        return format_area(self.record.get("area") if self.record else None)

    @property
    def images(self) -> List[str]:
        return list((self.record or {}).get("images") or [])

    @property
    def current_image(self) -> Optional[str]:
        images = self.images
        return images[self.current_image_index] if images else None

    def next_image(self) -> None:
        if self.images:
            self.current_image_index = (self.current_image_index + 1) % len(self.images)

    def previous_image(self) -> None:
        if self.images:
            self.current_image_index = (self.current_image_index - 1) % len(self.images)


class MyPropertiesPage(Page):
    """The signed-in user's own listings, with delete."""

    title = "My Properties"

    def __init__(self, context: PageContext):
        super().__init__(context)
        self.sale_cards: List[PropertyCard] = []
        self.rental_cards: List[PropertyCard] = []
        self._subscriptions.append(self.session.subscribe(self._on_session_change))

    def _on_session_change(self, session: AuthSession) -> None:
        # User-scoped data must not outlive the session
        if not session.is_authenticated:
            self.sale_cards = []
            self.rental_cards = []

    def cards(self, kind: ListingKind) -> List[PropertyCard]:
        return self.sale_cards if kind is ListingKind.SALE else self.rental_cards

    def _set_cards(self, kind: ListingKind, cards: List[PropertyCard]) -> None:
        if kind is ListingKind.SALE:
            self.sale_cards = cards
        else:
            self.rental_cards = cards

    async def load(self) -> None:
        user = self.session.current_user
        if user is None:
            await self.context.navigate(AUTH_ROUTE)
            return

        generation = self._begin()
        filters = {"user_id": user.id}
        try:
            sale_rows, rental_rows = await asyncio.gather(
                self.store.query(ListingKind.SALE.table, filters=filters, order="created_at.desc"),
                self.store.query(ListingKind.RENTAL.table, filters=filters, order="created_at.desc"),
            )
        except AuthError:
            if self._finish(generation):
                await self.context.navigate(AUTH_ROUTE)
            return
        except AppError as e:
            if self._finish(generation):
                logger.warning(f"Failed to fetch listings of user {user.id}: {e}")
                self.toasts.error("Error", "Failed to fetch your properties")
            return

        if self._finish(generation):
            self.sale_cards = [PropertyCard.from_record(ListingKind.SALE, row) for row in sale_rows]
            self.rental_cards = [PropertyCard.from_record(ListingKind.RENTAL, row) for row in rental_rows]

    def tab_label(self, kind: ListingKind) -> str:
        name = "For Sale" if kind is ListingKind.SALE else "For Rent"
        return f"{name} ({len(self.cards(kind))})"

    def _check_owner(self, card: PropertyCard, user: UserAccount) -> None:
        if card.owner_id != user.id:
            raise PermissionDeniedError()

    async def delete_property(self, kind: ListingKind, property_id: str) -> bool:
        """
        Delete one of the user's listings.
        The card leaves the list only after the remote delete succeeded.
        """
        card = next((c for c in self.cards(kind) if c.id == property_id), None)
        if card is None:
            self.toasts.error("Error", "Property not found")
            return False

        user = self.session.current_user
        if user is None:
            await self.context.navigate(AUTH_ROUTE)
            return False

        try:
            self._check_owner(card, user)
            await self.store.delete(kind.table, property_id)
        except AuthError:
            self.toasts.error("Authentication Required", "Please log in again to manage your properties")
            if self.mounted:
                await self.context.navigate(AUTH_ROUTE)
            return False
        except AppError as e:
            logger.warning(f"Failed to delete {kind.table} {property_id}: {e}")
            self.toasts.error("Failed to delete property", str(e))
            return False

        if self.mounted:
            self._set_cards(kind, [c for c in self.cards(kind) if c.id != property_id])
        self.toasts.success("Success", "Property deleted successfully")
        return True


class ListingFormPage(Page):
    """Sale (/sell) and rental (/rent/list) listing forms."""

    def __init__(self, context: PageContext, kind: ListingKind):
        super().__init__(context)
        self.kind = kind
        self.title = "List Your Property" if kind is ListingKind.SALE else "List Your Rental Property"
        self.validator = ListingFormValidator(context.session)
        self.form: Dict[str, Any] = blank_form(kind)
        self.submitting = False

    def set_field(self, name: str, value: Any) -> None:
        if name not in form_fields(self.kind):
            raise ValidationError(f"Unknown field '{name}'", field=name)
        self.form[name] = value

    def toggle_amenity(self, amenity: str) -> None:
        if self.kind is not ListingKind.RENTAL or amenity not in AMENITIES:
            raise ValidationError(f"Unknown amenity '{amenity}'", field="amenities")

        amenities = self.form["amenities"]
        if amenity in amenities:
            amenities.remove(amenity)
        else:
            amenities.append(amenity)

    def add_images(self, data_uris: List[str]) -> None:
        self.form["images"].extend(data_uris)

    async def add_image_files(self, paths: List[str]) -> bool:
        try:
            data_uris = await ImageCapture.read_files(paths)
        except ValidationError as e:
            self.toasts.error("Invalid image", str(e))
            return False

        self.add_images(data_uris)
        return True

    def remove_image(self, index: int) -> None:
        del self.form["images"][index]

    def reset(self) -> None:
        self.form = blank_form(self.kind)

    @property
    def _noun(self) -> str:
        return "property" if self.kind is ListingKind.SALE else "rental property"

    async def submit(self) -> Optional[Dict[str, Any]]:
        """
        Validate and insert the listing.

        Returns:
            The created record, or None when validation or the insert failed
        """
        try:
            record = self.validator.prepare(self.form, self.kind)
        except AuthRequiredError:
            self.toasts.error("Authentication Required", f"Please log in to list your {self._noun}")
            await self.context.navigate(AUTH_ROUTE)
            return None
        except ValidationError as e:
            self.toasts.error("Error", str(e))
            return None

        generation = self._begin()
        self.submitting = True
        try:
            created = await self.store.insert(self.kind.table, record)
        except AuthError:
            self.submitting = False
            self.toasts.error("Authentication Required", f"Please log in to list your {self._noun}")
            # An expired session has already taken the shell to the sign-in page
            if self._finish(generation):
                await self.context.navigate(AUTH_ROUTE)
            return None
        except AppError as e:
            self.submitting = False
            self._finish(generation)
            logger.warning(f"Failed to insert into {self.kind.table}: {e}")
            self.toasts.error("Error", str(e) or f"Failed to list {self._noun}. Please try again.")
            return None

        self.submitting = False
        if self._finish(generation):
            self.reset()
        self.toasts.success("Success!", f"Your {self._noun} has been listed successfully.")
        return created


class AccountPage(Page):
    title = "My Account"

    QUICK_LINKS = (
        ("My Properties", "/my-properties"),
        ("List Property for Sale", "/sell"),
        ("List Property for Rent", "/rent/list"),
    )

    async def load(self) -> None:
        if not self.session.is_authenticated:
            await self.context.navigate(AUTH_ROUTE)

    @property
    def account(self) -> Optional[UserAccount]:
        return self.session.current_user

    async def open(self, path: str) -> None:
        await self.context.navigate(path)

    async def sign_out(self) -> None:
        await self.session.sign_out()


class AuthPage(Page):
    """Sign-in and sign-up form."""

    title = "Welcome"

    def __init__(self, context: PageContext):
        super().__init__(context)
        self.is_login = True
        self.email = ""
        self.password = ""
        self.full_name = ""
        self.phone_number = ""

    async def load(self) -> None:
        if self.session.is_authenticated:
            await self.context.navigate(HOME_ROUTE)

    def toggle_mode(self) -> None:
        self.is_login = not self.is_login

    async def submit(self) -> bool:
        """Returns True when the user signed in or an account was created."""
        generation = self._begin()
        try:
            if self.is_login:
                return await self._sign_in()
            return await self._sign_up()
        finally:
            self._finish(generation)

    async def _sign_in(self) -> bool:
        result = await self.session.sign_in(self.email, self.password)
        if not result.ok:
            self.toasts.error("Login Failed", str(result.error) or "Please check your credentials and try again.")
            return False

        await self.context.navigate(HOME_ROUTE)
        return True

    async def _sign_up(self) -> bool:
        if not self.full_name.strip():
            self.toasts.error("Full Name Required", "Please enter your full name.")
            return False

        result = await self.session.sign_up(
            self.email,
            self.password,
            self.full_name.strip(),
            self.phone_number.strip() or None,
        )
        if not result.ok:
            self.toasts.error("Signup Failed", str(result.error) or "Please try again with different details.")
            return False

        if result.confirmation_required:
            self.toasts.success("Account Created!", "Please check your email to verify your account.")
            self.is_login = True
            return True

        await self.context.navigate(HOME_ROUTE)
        return True
