"""
Application shell: route table, navigator and composition root.

The shell owns the one AuthSession, consults the RouteGuard on every
navigation, mounts one page at a time and redirects to the auth page when
the session ends while a protected route is showing.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Pattern, Tuple
import logging
import re

from silver_estates.config import Settings, settings as default_settings
from silver_estates.frontend.guard import GuardOutcome, RouteGuard
from silver_estates.frontend.models import ListingKind
from silver_estates.frontend.notifications import ToastQueue
from silver_estates.frontend.pages import (
    AccountPage,
    AuthPage,
    CatalogPage,
    ListingFormPage,
    MyPropertiesPage,
    Page,
    PageContext,
    PropertyDetailsPage,
    StaticPage
)
from silver_estates.frontend.session import AuthSession
from silver_estates.frontend.store import FileTokenStore, HttpRemoteStore, RemoteStore

logger = logging.getLogger(__name__)

PageFactory = Callable[[PageContext, Dict[str, str]], Page]


@dataclass(frozen=True)
class Route:
    pattern: str
    factory: PageFactory

    @property
    def regex(self) -> Pattern:
        return re.compile("^" + re.sub(r"\{(\w+)\}", r"(?P<\1>[^/]+)", self.pattern) + "$")

    def match(self, path: str) -> Optional[Dict[str, str]]:
        found = self.regex.match(path)
        return found.groupdict() if found else None


ROUTES: Tuple[Route, ...] = (
    Route("/", lambda ctx, _: StaticPage(ctx, "The Silver Estates")),
    Route("/buy", lambda ctx, _: CatalogPage(ctx, ListingKind.SALE)),
    Route("/rent", lambda ctx, _: CatalogPage(ctx, ListingKind.RENTAL)),
    Route("/rent/list", lambda ctx, _: ListingFormPage(ctx, ListingKind.RENTAL)),
    Route("/sell", lambda ctx, _: ListingFormPage(ctx, ListingKind.SALE)),
    Route("/account", lambda ctx, _: AccountPage(ctx)),
    Route("/my-properties", lambda ctx, _: MyPropertiesPage(ctx)),
    Route("/auth", lambda ctx, _: AuthPage(ctx)),
    Route(
        "/property/{id}/{kind}",
        lambda ctx, params: PropertyDetailsPage(ctx, params["id"], ListingKind(params["kind"]))
    ),
    Route("/developer", lambda ctx, _: StaticPage(ctx, "Developer")),
)


def resolve(path: str) -> Tuple[Optional[Route], Dict[str, str]]:
    """Route matching a path, with its parameters; (None, {}) when nothing matches."""
    normalized = path.rstrip("/") or "/"
    for route in ROUTES:
        params = route.match(normalized)
        if params is not None:
            if "kind" in params and params["kind"] not in (ListingKind.SALE.value, ListingKind.RENTAL.value):
                continue
            return route, params
    return None, {}


class Application:
    """
    Composition root: wires store, session, guard, toasts and pages.

    `page` is None while a protected route waits for the session to resolve;
    `pending_path` then names the route that will render.
    """

    def __init__(self, store: RemoteStore):
        self.store = store
        self.session = AuthSession(store)
        self.guard = RouteGuard(self.session)
        self.toasts = ToastQueue()
        self.context = PageContext(
            store=store,
            session=self.session,
            toasts=self.toasts,
            navigate=self.navigate,
        )
        self.page: Optional[Page] = None
        self.path: Optional[str] = None
        self.pending_path: Optional[str] = None
        self.history: List[str] = []
        self.session.subscribe(self._on_session_change)

    @property
    def is_showing_placeholder(self) -> bool:
        return self.page is None and self.pending_path is not None

    async def start(self, initial_path: str = "/") -> None:
        """Navigate to the initial route, then resolve the stored session."""
        await self.navigate(initial_path)
        await self.session.initialize()

    async def navigate(self, path: str) -> None:
        decision = self.guard.decide(path)

        if decision.outcome is GuardOutcome.REDIRECT:
            logger.info(f"Redirecting {path} -> {decision.redirect_to}")
            await self.navigate(decision.redirect_to)
            return

        self._unmount()
        self.path = path
        self.history.append(path)

        if decision.outcome is GuardOutcome.LOADING:
            self.pending_path = path
            return

        self.pending_path = None
        route, params = resolve(path)
        if route is None:
            logger.info(f"No route for {path}")
            self.page = StaticPage(self.context, "Page not found")
            return

        page = route.factory(self.context, params)
        self.page = page
        await page.load()

    def _unmount(self) -> None:
        if self.page is not None:
            self.page.unmount()
            self.page = None

    async def _on_session_change(self, session: AuthSession) -> None:
        if self.pending_path is not None and not session.is_loading:
            await self.navigate(self.pending_path)
        elif self.path and self.guard.is_protected(self.path) and not session.is_authenticated:
            await self.navigate(self.path)

    async def close(self) -> None:
        self._unmount()
        if isinstance(self.store, HttpRemoteStore):
            await self.store.aclose()


def create_app(config: Optional[Settings] = None) -> Application:
    """Application talking to the configured remote store, with the session kept on disk."""
    config = config or default_settings
    store = HttpRemoteStore(
        base_url=config.remote_store_url,
        timeout=config.remote_timeout_seconds,
        token_store=FileTokenStore(config.session_file),
    )
    return Application(store)
