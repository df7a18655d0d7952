"""
Remote store client.

`RemoteStore` is the only way the application core reaches persistence and
authentication. `HttpRemoteStore` talks to the remote store service over
httpx with a bounded timeout and maps its error envelope onto the
application error taxonomy.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional
import inspect
import json
import logging

import aiofiles
import httpx

from silver_estates.config import settings
from silver_estates.frontend.exceptions import (
    AppError,
    AuthError,
    NetworkError,
    NotFoundError,
    PermissionDeniedError,
    SessionExpiredError,
    ValidationError
)
from silver_estates.frontend.models import UserAccount

logger = logging.getLogger(__name__)


class AuthEvent(str, Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    SESSION_EXPIRED = "SESSION_EXPIRED"


@dataclass(frozen=True)
class StoreSession:
    access_token: str
    user: UserAccount
    expires_at: Optional[datetime] = None

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "StoreSession":
        expires_at = data.get("expires_at")
        return cls(
            access_token=data["access_token"],
            user=UserAccount.from_payload(data["user"]),
            expires_at=datetime.fromisoformat(expires_at.replace("Z", "+00:00")) if expires_at else None,
        )


@dataclass(frozen=True)
class SignUpOutcome:
    user: UserAccount
    session: Optional[StoreSession] = None

    @property
    def confirmation_required(self) -> bool:
        return self.session is None


AuthListener = Callable[[AuthEvent, Optional[StoreSession]], Optional[Awaitable[None]]]


class RemoteStore(ABC):
    """
    Table and auth operations of the hosted backend.

    Implementations raise the application error taxonomy: NetworkError,
    NotFoundError, ValidationError, AuthError and PermissionDeniedError.
    """

    def __init__(self):
        self._auth_listeners: List[AuthListener] = []

    @abstractmethod
    async def query(
        self,
        table: str,
        filters: Optional[Dict[str, Any]] = None,
        order: Optional[str] = None,
        limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """Rows matching equality filters; `order` is 'column' or 'column.desc'."""

    @abstractmethod
    async def get_by_id(self, table: str, record_id: str) -> Dict[str, Any]:
        """Raises NotFoundError when no row has the id."""

    @abstractmethod
    async def insert(self, table: str, record: Dict[str, Any]) -> Dict[str, Any]:
        ...

    @abstractmethod
    async def delete(self, table: str, record_id: str) -> None:
        ...

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> StoreSession:
        ...

    @abstractmethod
    async def sign_up(self, email: str, password: str, profile_fields: Dict[str, Any]) -> SignUpOutcome:
        ...

    @abstractmethod
    async def sign_out(self) -> None:
        ...

    @abstractmethod
    async def current_session(self) -> Optional[StoreSession]:
        ...

    def on_auth_state_change(self, listener: AuthListener) -> Callable[[], None]:
        """Register a listener for auth events. Returns a callable that unregisters it."""
        self._auth_listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._auth_listeners:
                self._auth_listeners.remove(listener)

        return unsubscribe

    async def _emit(self, event: AuthEvent, session: Optional[StoreSession] = None) -> None:
        logger.debug(f"Auth event {event.value}")
        for listener in list(self._auth_listeners):
            result = listener(event, session)
            if inspect.isawaitable(result):
                await result


class TokenStore(ABC):
    """Persists the access token between application runs."""

    @abstractmethod
    async def load(self) -> Optional[str]:
        ...

    @abstractmethod
    async def save(self, token: str) -> None:
        ...

    @abstractmethod
    async def clear(self) -> None:
        ...


class MemoryTokenStore(TokenStore):
    def __init__(self, token: Optional[str] = None):
        self._token = token

    async def load(self) -> Optional[str]:
        return self._token

    async def save(self, token: str) -> None:
        self._token = token

    async def clear(self) -> None:
        self._token = None


class FileTokenStore(TokenStore):
    """Token kept in a small JSON file, like a browser keeps it in local storage."""

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path or settings.session_file)

    async def load(self) -> Optional[str]:
        if not self.path.exists():
            return None

        try:
            async with aiofiles.open(self.path, "r", encoding="utf-8") as f:
                data = json.loads(await f.read())
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable session file {self.path}: {e}")
            return None

        return data.get("access_token")

    async def save(self, token: str) -> None:
        async with aiofiles.open(self.path, "w", encoding="utf-8") as f:
            await f.write(json.dumps({"access_token": token}))

    async def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()


class HttpRemoteStore(RemoteStore):
    """
    RemoteStore backed by the remote store service's HTTP API.

    Every request is bounded by `remote_timeout_seconds`; timeouts and
    transport failures raise NetworkError. A 401 on a request that carried a
    token means the session is gone: the token is dropped and
    SESSION_EXPIRED is emitted.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        token_store: Optional[TokenStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        super().__init__()
        self.base_url = (base_url or settings.remote_store_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.remote_timeout_seconds
        self.token_store = token_store or MemoryTokenStore()
        self._token: Optional[str] = None
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout),
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "HttpRemoteStore":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        send_token: bool = True,
        report_expiry: bool = True,
        **kwargs
    ) -> httpx.Response:
        headers = kwargs.pop("headers", {})
        sent_token = self._token if send_token else None
        if sent_token:
            headers["Authorization"] = f"Bearer {sent_token}"

        try:
            response = await self._client.request(method, path, headers=headers, **kwargs)
        except httpx.TimeoutException as e:
            logger.warning(f"{method} {path} timed out after {self.timeout}s")
            raise NetworkError(f"The remote store did not respond within {self.timeout} seconds") from e
        except httpx.TransportError as e:
            logger.warning(f"{method} {path} failed: {e}")
            raise NetworkError(f"Could not reach the remote store: {e}") from e

        if response.is_success:
            return response

        error = self._map_error(response)
        if response.status_code == 401 and sent_token:
            await self._drop_token()
            if report_expiry:
                await self._emit(AuthEvent.SESSION_EXPIRED, None)
            error = SessionExpiredError()

        logger.debug(f"{method} {path} -> {response.status_code} {error.code}: {error}")
        raise error

    @staticmethod
    def _map_error(response: httpx.Response) -> AppError:
        try:
            body = response.json()
        except ValueError:
            body = None
        # Gateways in front of the service may answer with any JSON shape
        envelope = body.get("error") if isinstance(body, dict) else None
        if not isinstance(envelope, dict):
            envelope = {}
        message = envelope.get("message") or response.reason_phrase or "Remote store error"
        code = envelope.get("code")
        status_code = response.status_code

        if status_code == 404:
            return NotFoundError(message, code=code)
        if status_code == 401:
            return AuthError(message, code=code)
        if status_code == 403:
            return PermissionDeniedError(message, code=code)
        if status_code in (400, 409, 422):
            return ValidationError(message, code=code)
        if status_code >= 500:
            return NetworkError(message, code=code)
        return AppError(message, code=code)

    async def _store_token(self, token: str) -> None:
        self._token = token
        await self.token_store.save(token)

    async def _drop_token(self) -> None:
        self._token = None
        await self.token_store.clear()

    async def query(
        self,
        table: str,
        filters: Optional[Dict[str, Any]] = None,
        order: Optional[str] = None,
        limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        params = {key: str(value) for key, value in (filters or {}).items()}
        if order:
            params["order"] = order
        if limit is not None:
            params["limit"] = str(limit)

        response = await self._request("GET", f"/tables/{table}", params=params)
        return response.json()

    async def get_by_id(self, table: str, record_id: str) -> Dict[str, Any]:
        response = await self._request("GET", f"/tables/{table}/{record_id}")
        return response.json()

    async def insert(self, table: str, record: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._request("POST", f"/tables/{table}", json=record)
        return response.json()

    async def delete(self, table: str, record_id: str) -> None:
        await self._request("DELETE", f"/tables/{table}/{record_id}")

    async def sign_in(self, email: str, password: str) -> StoreSession:
        response = await self._request(
            "POST",
            "/auth/sign-in",
            json={"email": email, "password": password},
            send_token=False,
        )
        session = StoreSession.from_payload(response.json())
        await self._store_token(session.access_token)
        await self._emit(AuthEvent.SIGNED_IN, session)
        return session

    async def sign_up(self, email: str, password: str, profile_fields: Dict[str, Any]) -> SignUpOutcome:
        payload = {"email": email, "password": password, **profile_fields}
        response = await self._request("POST", "/auth/sign-up", json=payload, send_token=False)
        data = response.json()

        session = StoreSession.from_payload(data["session"]) if data.get("session") else None
        outcome = SignUpOutcome(user=UserAccount.from_payload(data["user"]), session=session)

        if session is not None:
            await self._store_token(session.access_token)
            await self._emit(AuthEvent.SIGNED_IN, session)
        return outcome

    async def sign_out(self) -> None:
        """Revoke the remote session. The local token is dropped even when the call fails."""
        try:
            if self._token:
                await self._request("POST", "/auth/sign-out", report_expiry=False)
        finally:
            await self._drop_token()
            await self._emit(AuthEvent.SIGNED_OUT, None)

    async def current_session(self) -> Optional[StoreSession]:
        """
        Resolve the persisted token to a session.
        A rejected token is discarded and reported as no session.
        """
        if self._token is None:
            self._token = await self.token_store.load()
        if not self._token:
            return None

        try:
            response = await self._request("GET", "/auth/session", report_expiry=False)
        except AuthError:
            logger.info("Stored session is no longer valid")
            return None

        return StoreSession.from_payload(response.json())
