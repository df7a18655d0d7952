"""
Process-wide authentication state.

AuthSession is the single writer of "who is signed in". It starts in
INITIALIZING while the stored session is resolved, then moves between
ANONYMOUS and AUTHENTICATED through sign_in, sign_up, sign_out and the
store's session-expiry event. Dependents subscribe and react; they never
change the state themselves.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Union
import asyncio
import inspect
import logging

from silver_estates.frontend.exceptions import AppError
from silver_estates.frontend.models import UserAccount
from silver_estates.frontend.store import AuthEvent, RemoteStore, StoreSession

logger = logging.getLogger(__name__)


class AuthState(str, Enum):
    INITIALIZING = "initializing"
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"


@dataclass(frozen=True)
class AuthResult:
    user: Optional[UserAccount] = None
    error: Optional[AppError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class SignUpResult:
    user: Optional[UserAccount] = None
    confirmation_required: bool = False
    error: Optional[AppError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


SessionListener = Callable[["AuthSession"], Union[None, Awaitable[None]]]


class AuthSession:
    """Tracks the signed-in user and notifies subscribers on every change."""

    def __init__(self, store: RemoteStore):
        self.store = store
        self._state = AuthState.INITIALIZING
        self._user: Optional[UserAccount] = None
        self._lock_instance: Optional[asyncio.Lock] = None
        self._listeners: List[SessionListener] = []
        self._unsubscribe_store = store.on_auth_state_change(self._on_store_event)

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def current_user(self) -> Optional[UserAccount]:
        return self._user

    @property
    def is_loading(self) -> bool:
        return self._state is AuthState.INITIALIZING

    @property
    def is_authenticated(self) -> bool:
        return self._state is AuthState.AUTHENTICATED

    @property
    def _lock(self) -> asyncio.Lock:
        # Created on first use so it belongs to the running loop
        if self._lock_instance is None:
            self._lock_instance = asyncio.Lock()
        return self._lock_instance

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Call listener after every state change. Returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def initialize(self) -> None:
        """Resolve the stored session; any failure leaves the session anonymous."""
        async with self._lock:
            try:
                session = await self.store.current_session()
            except AppError as e:
                logger.warning(f"Could not resolve stored session: {e}")
                session = None

            await self._transition(session.user if session else None)

    async def sign_in(self, email: str, password: str) -> AuthResult:
        async with self._lock:
            try:
                session = await self.store.sign_in(email, password)
            except AppError as e:
                logger.info(f"Sign-in failed for {email}: {e}")
                return AuthResult(error=e)

            await self._transition(session.user)
            return AuthResult(user=session.user)

    async def sign_up(
        self,
        email: str,
        password: str,
        full_name: str,
        phone: Optional[str] = None
    ) -> SignUpResult:
        """Create an account. Stays anonymous when the store requires email confirmation."""
        async with self._lock:
            try:
                outcome = await self.store.sign_up(
                    email,
                    password,
                    {"full_name": full_name, "phone_number": phone},
                )
            except AppError as e:
                logger.info(f"Sign-up failed for {email}: {e}")
                return SignUpResult(error=e)

            if outcome.session is not None:
                await self._transition(outcome.session.user)

            return SignUpResult(user=outcome.user, confirmation_required=outcome.confirmation_required)

    async def sign_out(self) -> None:
        """Invalidate the remote session. The local session ends even if the store call fails."""
        async with self._lock:
            try:
                await self.store.sign_out()
            except AppError as e:
                logger.warning(f"Remote sign-out failed, ending local session anyway: {e}")

            await self._transition(None)

    async def _on_store_event(self, event: AuthEvent, session: Optional[StoreSession]) -> None:
        # Sign-in and sign-out events echo our own operations
        if event is AuthEvent.SESSION_EXPIRED and self._state is AuthState.AUTHENTICATED:
            logger.info("Session expired")
            await self._transition(None)

    async def _transition(self, user: Optional[UserAccount]) -> None:
        previous = self._state
        self._user = user
        self._state = AuthState.AUTHENTICATED if user else AuthState.ANONYMOUS

        if previous is not self._state:
            logger.info(f"Auth state {previous.value} -> {self._state.value}")

        for listener in list(self._listeners):
            result = listener(self)
            if inspect.isawaitable(result):
                await result
