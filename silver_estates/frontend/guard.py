"""
Route guard over the authentication state.
"""

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Optional

from silver_estates.frontend.session import AuthSession, AuthState

AUTH_ROUTE = "/auth"

PROTECTED_ROUTES: FrozenSet[str] = frozenset({
    "/account",
    "/my-properties",
    "/sell",
    "/rent/list",
})


class GuardOutcome(str, Enum):
    LOADING = "loading"
    REDIRECT = "redirect"
    RENDER = "render"


@dataclass(frozen=True)
class GuardDecision:
    outcome: GuardOutcome
    redirect_to: Optional[str] = None


class RouteGuard:
    """
    Decides whether a view may render.

    While the session is still initializing a protected route shows a loading
    placeholder; redirecting then would bounce users whose stored session is valid.
    """

    def __init__(self, session: AuthSession, protected_routes: FrozenSet[str] = PROTECTED_ROUTES):
        self.session = session
        self.protected_routes = protected_routes

    def is_protected(self, path: str) -> bool:
        return path.rstrip("/") in self.protected_routes

    def decide(self, path: str) -> GuardDecision:
        if not self.is_protected(path):
            return GuardDecision(GuardOutcome.RENDER)

        state = self.session.state
        if state is AuthState.INITIALIZING:
            return GuardDecision(GuardOutcome.LOADING)
        if state is AuthState.ANONYMOUS:
            return GuardDecision(GuardOutcome.REDIRECT, redirect_to=AUTH_ROUTE)
        return GuardDecision(GuardOutcome.RENDER)
