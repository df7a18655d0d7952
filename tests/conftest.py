"""
Test configuration and fixtures.
Provides an in-memory database per test, an HTTP client against the service,
an in-memory remote store for the application core, and test data factories.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "testing")

import asyncio
import uuid
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Dict, List, Optional, Tuple

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from silver_estates.database import create_tables, get_db
from silver_estates.frontend.exceptions import AuthError, NotFoundError, PermissionDeniedError, ValidationError
from silver_estates.frontend.models import ListingKind, UserAccount
from silver_estates.frontend.session import AuthSession
from silver_estates.frontend.store import AuthEvent, RemoteStore, SignUpOutcome, StoreSession
from silver_estates.main import app
from silver_estates.models.user import User
from silver_estates.repositories.user import ProfileRepository, UserRepository
from silver_estates.services.auth import AuthService
from silver_estates.services.listing import ListingService


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "testpassword123"


@pytest.fixture
async def db_engine():
    """Fresh in-memory database with every table created."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False}
    )
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker:
    return async_sessionmaker(bind=db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def override_db(session_factory):
    """Route the service's database dependency to the test database."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield
    app.dependency_overrides.clear()


@pytest.fixture
async def async_client(override_db) -> AsyncGenerator[httpx.AsyncClient, None]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


# Repository and service fixtures
@pytest.fixture
def user_repository(db_session: AsyncSession) -> UserRepository:
    return UserRepository(db_session)


@pytest.fixture
def auth_service(db_session: AsyncSession) -> AuthService:
    return AuthService(db_session)


@pytest.fixture
def listing_service(db_session: AsyncSession) -> ListingService:
    return ListingService(db_session)


# Test data factories
class UserFactory:
    """Factory for creating test accounts."""

    @staticmethod
    async def create_user(
        db_session: AsyncSession,
        email: str = None,
        password: str = TEST_PASSWORD,
        full_name: str = "Test User",
        email_confirmed: bool = True
    ) -> User:
        """Create a user and its profile in the database."""
        user = await UserRepository(db_session).create_user({
            "email": email or f"test{uuid.uuid4().hex[:8]}@example.com",
            "password": password,
            "email_confirmed": email_confirmed,
        })
        await ProfileRepository(db_session).create({
            "id": user.id,
            "full_name": full_name,
            "phone_number": "+91 98765 43210",
            "city": "Jabalpur",
        })
        return user


class ListingFactory:
    """Factory for listing payloads and records."""

    @staticmethod
    def sale_payload(**overrides) -> Dict[str, Any]:
        payload = {
            "title": "Modern 3BHK Villa",
            "description": "Corner plot with a garden",
            "price": 8_500_000,
            "property_type": "villa",
            "bedrooms": 3,
            "bathrooms": 2,
            "area": 1800,
            "location": "Napier Town, Jabalpur",
            "images": [],
        }
        payload.update(overrides)
        return payload

    @staticmethod
    def rental_payload(**overrides) -> Dict[str, Any]:
        payload = {
            "title": "Furnished 2BHK Apartment",
            "monthly_rent": 18_000,
            "security_deposit": 36_000,
            "property_type": "apartment",
            "bedrooms": 2,
            "bathrooms": 2,
            "parking": 1,
            "furnished": "semi",
            "available_from": "2026-11-01",
            "lease_duration": "11months",
            "location": "Wright Town, Jabalpur",
            "amenities": ["Lift", "Power Backup"],
        }
        payload.update(overrides)
        return payload

    @staticmethod
    def record(kind: ListingKind, owner_id: str = None, **overrides) -> Dict[str, Any]:
        """A row as the remote store returns it."""
        payload = ListingFactory.sale_payload() if kind is ListingKind.SALE else ListingFactory.rental_payload()
        now = datetime.now(timezone.utc).isoformat()
        payload.update({
            "id": str(uuid.uuid4()),
            "user_id": owner_id or str(uuid.uuid4()),
            "created_at": now,
            "updated_at": now,
        })
        payload.update(overrides)
        return payload


@pytest.fixture
async def test_user(db_session: AsyncSession) -> User:
    return await UserFactory.create_user(db_session, email="owner@example.com", full_name="Asha Verma")


@pytest.fixture
async def other_user(db_session: AsyncSession) -> User:
    return await UserFactory.create_user(db_session, email="neighbour@example.com", full_name="Ravi Kumar")


async def bearer_headers(auth_service: AuthService, user: User) -> Dict[str, str]:
    issued = await auth_service.sign_in(user.email, TEST_PASSWORD)
    return {"Authorization": f"Bearer {issued.access_token}"}


@pytest.fixture
async def auth_headers(auth_service: AuthService, test_user: User) -> Dict[str, str]:
    return await bearer_headers(auth_service, test_user)


@pytest.fixture
async def other_auth_headers(auth_service: AuthService, other_user: User) -> Dict[str, str]:
    return await bearer_headers(auth_service, other_user)


# Application core fixtures
class FakeRemoteStore(RemoteStore):
    """
    In-memory remote store.

    `fail(operation, error)` makes the next call of an operation raise;
    `hold(operation)` makes the next call wait until the returned event is set.
    """

    def __init__(self, require_confirmation: bool = False):
        super().__init__()
        self.tables: Dict[str, List[Dict[str, Any]]] = {
            "profiles": [],
            "sale_properties": [],
            "rental_properties": [],
        }
        self.accounts: Dict[str, Tuple[str, UserAccount]] = {}
        self.session: Optional[StoreSession] = None
        self.require_confirmation = require_confirmation
        self.failures: Dict[str, Exception] = {}
        self.gates: Dict[str, asyncio.Event] = {}
        self.calls: List[str] = []

    def fail(self, operation: str, error: Exception) -> None:
        self.failures[operation] = error

    def hold(self, operation: str) -> asyncio.Event:
        event = asyncio.Event()
        self.gates[operation] = event
        return event

    async def _enter(self, operation: str) -> None:
        self.calls.append(operation)
        gate = self.gates.pop(operation, None)
        if gate is not None:
            await gate.wait()
        error = self.failures.pop(operation, None)
        if error is not None:
            raise error

    def add_account(self, email: str, password: str = TEST_PASSWORD, full_name: str = "Test User") -> UserAccount:
        account = UserAccount(id=str(uuid.uuid4()), email=email, display_name=full_name, email_confirmed=True)
        self.accounts[email] = (password, account)
        return account

    def add_listing(self, kind: ListingKind, owner_id: str = None, **fields) -> Dict[str, Any]:
        record = ListingFactory.record(kind, owner_id=owner_id, **fields)
        self.tables[kind.table].append(record)
        return record

    async def expire_session(self) -> None:
        self.session = None
        await self._emit(AuthEvent.SESSION_EXPIRED, None)

    async def query(self, table, filters=None, order=None, limit=None):
        await self._enter("query")
        rows = [
            dict(row) for row in self.tables[table]
            if all(str(row.get(key)) == str(value) for key, value in (filters or {}).items())
        ]
        if order:
            column, _, direction = order.partition(".")
            rows.sort(key=lambda row: row.get(column) or "", reverse=direction == "desc")
        return rows[:limit] if limit else rows

    async def get_by_id(self, table, record_id):
        await self._enter("get_by_id")
        for row in self.tables[table]:
            if row["id"] == record_id:
                return dict(row)
        raise NotFoundError(f"Row not found with ID: {record_id}")

    async def insert(self, table, record):
        await self._enter("insert")
        if self.session is None:
            raise AuthError("Authentication token required")
        created = ListingFactory.record(
            ListingKind.SALE if table == "sale_properties" else ListingKind.RENTAL
        )
        created = {key: created[key] for key in ("id", "created_at", "updated_at")}
        created.update(record)
        self.tables[table].append(created)
        return dict(created)

    async def delete(self, table, record_id):
        await self._enter("delete")
        for row in self.tables[table]:
            if row["id"] == record_id:
                if self.session is None or row["user_id"] != self.session.user.id:
                    raise PermissionDeniedError()
                self.tables[table].remove(row)
                return
        raise NotFoundError(f"Row not found with ID: {record_id}")

    async def sign_in(self, email, password):
        await self._enter("sign_in")
        stored = self.accounts.get(email)
        if stored is None or stored[0] != password:
            raise AuthError("Invalid login credentials", code="INVALID_CREDENTIALS")
        self.session = StoreSession(access_token=uuid.uuid4().hex, user=stored[1])
        await self._emit(AuthEvent.SIGNED_IN, self.session)
        return self.session

    async def sign_up(self, email, password, profile_fields):
        await self._enter("sign_up")
        if email in self.accounts:
            raise ValidationError("User already registered", code="CONFLICT")
        account = UserAccount(
            id=str(uuid.uuid4()),
            email=email,
            display_name=profile_fields.get("full_name"),
            phone=profile_fields.get("phone_number"),
        )
        self.accounts[email] = (password, account)
        if self.require_confirmation:
            return SignUpOutcome(user=account)

        self.session = StoreSession(access_token=uuid.uuid4().hex, user=account)
        await self._emit(AuthEvent.SIGNED_IN, self.session)
        return SignUpOutcome(user=account, session=self.session)

    async def sign_out(self):
        await self._enter("sign_out")
        self.session = None
        await self._emit(AuthEvent.SIGNED_OUT, None)

    async def current_session(self):
        await self._enter("current_session")
        return self.session


@pytest.fixture
def fake_store() -> FakeRemoteStore:
    return FakeRemoteStore()


@pytest.fixture
def owner_account(fake_store: FakeRemoteStore) -> UserAccount:
    return fake_store.add_account("owner@example.com", full_name="Asha Verma")


@pytest.fixture
def auth_session(fake_store: FakeRemoteStore) -> AuthSession:
    return AuthSession(fake_store)


@pytest.fixture
async def signed_in_session(auth_session: AuthSession, owner_account: UserAccount) -> AuthSession:
    await auth_session.initialize()
    result = await auth_session.sign_in(owner_account.email, TEST_PASSWORD)
    assert result.ok
    return auth_session
