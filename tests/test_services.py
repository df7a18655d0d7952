"""
Tests for service layer classes.
Tests authentication and table access rules independently of HTTP.
"""

import pytest
import uuid

from silver_estates.config import settings
from silver_estates.schemas.auth import SignUpRequest
from silver_estates.services.auth import AuthService
from silver_estates.services.listing import ListingService
from silver_estates.utils.auth import create_confirmation_token
from silver_estates.utils.exceptions import (
    ConflictError,
    EmailNotConfirmedError,
    ForbiddenError,
    InvalidCredentialsError,
    InvalidTokenError,
    ListingOwnershipError,
    NotFoundError,
    PrivateRowError,
    ReadOnlyTableError,
    UnauthorizedError,
    UnknownTableError,
    ValidationError
)
from tests.conftest import ListingFactory, TEST_PASSWORD, UserFactory


class TestAuthService:
    """Test AuthService functionality."""

    @pytest.mark.asyncio
    async def test_sign_up_pending_confirmation(self, auth_service: AuthService):
        """Test sign-up while email confirmation is required."""
        user, profile, issued = await auth_service.sign_up(SignUpRequest(
            email="new@example.com",
            password="secret123",
            full_name="  Meera Shah ",
            phone_number=""
        ))

        assert issued is None
        assert user.email_confirmed is False
        assert profile.id == user.id
        assert profile.full_name == "Meera Shah"
        assert profile.phone_number is None

    @pytest.mark.asyncio
    async def test_sign_up_without_confirmation(self, auth_service: AuthService, monkeypatch):
        monkeypatch.setattr(settings, "auth_require_email_confirmation", False)

        user, _, issued = await auth_service.sign_up(SignUpRequest(
            email="new@example.com",
            password="secret123",
            full_name="Meera Shah"
        ))

        assert user.email_confirmed is True
        assert issued is not None
        assert issued.login_session.user_id == user.id

        resolved_user, _, _ = await auth_service.resolve_session(issued.access_token)
        assert resolved_user.id == user.id

    @pytest.mark.asyncio
    async def test_sign_up_duplicate(self, auth_service: AuthService, test_user):
        with pytest.raises(ConflictError, match="User already registered"):
            await auth_service.sign_up(SignUpRequest(
                email=test_user.email,
                password="secret123",
                full_name="Someone"
            ))

    @pytest.mark.asyncio
    async def test_sign_in(self, auth_service: AuthService, test_user):
        issued = await auth_service.sign_in(test_user.email, TEST_PASSWORD)

        assert issued.user.id == test_user.id
        assert issued.profile.full_name == "Asha Verma"
        assert issued.login_session.is_active is True

        response = issued.to_response()
        assert response.token_type == "bearer"
        assert response.user.email == test_user.email

    @pytest.mark.asyncio
    async def test_sign_in_invalid_credentials(self, auth_service: AuthService, test_user):
        with pytest.raises(InvalidCredentialsError):
            await auth_service.sign_in(test_user.email, "wrongpassword")

        with pytest.raises(InvalidCredentialsError):
            await auth_service.sign_in("nobody@example.com", TEST_PASSWORD)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("email,password,message", [
        ("", TEST_PASSWORD, "Email is required"),
        ("   ", TEST_PASSWORD, "Email is required"),
        ("owner@example.com", "", "Password is required"),
    ])
    async def test_sign_in_blank_fields(self, auth_service: AuthService, email, password, message):
        with pytest.raises(ValidationError, match=message):
            await auth_service.sign_in(email, password)

    @pytest.mark.asyncio
    async def test_sign_in_unconfirmed(self, auth_service: AuthService, db_session):
        user = await UserFactory.create_user(db_session, email_confirmed=False)

        with pytest.raises(EmailNotConfirmedError):
            await auth_service.sign_in(user.email, TEST_PASSWORD)

    @pytest.mark.asyncio
    async def test_each_sign_in_opens_its_own_session(self, auth_service: AuthService, test_user):
        first = await auth_service.sign_in(test_user.email, TEST_PASSWORD)
        second = await auth_service.sign_in(test_user.email, TEST_PASSWORD)

        await auth_service.sign_out(first.access_token)

        with pytest.raises(InvalidTokenError, match="revoked"):
            await auth_service.resolve_session(first.access_token)
        user, _, _ = await auth_service.resolve_session(second.access_token)
        assert user.id == test_user.id

    @pytest.mark.asyncio
    async def test_sign_out_with_unusable_token(self, auth_service: AuthService):
        await auth_service.sign_out("garbage")

    @pytest.mark.asyncio
    async def test_confirmation_token_is_not_an_access_token(self, auth_service: AuthService, test_user):
        token = create_confirmation_token(test_user.id, test_user.email)

        with pytest.raises(InvalidTokenError):
            await auth_service.resolve_session(token)


class TestListingService:
    """Test ListingService access rules."""

    @pytest.mark.asyncio
    async def test_insert_sets_owner(self, listing_service: ListingService, test_user):
        row = await listing_service.insert("sale_properties", ListingFactory.sale_payload(), test_user)

        assert row["user_id"] == str(test_user.id)
        assert row["price"] == 8_500_000

    @pytest.mark.asyncio
    async def test_insert_for_other_user(self, listing_service: ListingService, test_user, other_user):
        payload = ListingFactory.sale_payload(user_id=str(other_user.id))

        with pytest.raises(ForbiddenError, match="another user"):
            await listing_service.insert("sale_properties", payload, test_user)

    @pytest.mark.asyncio
    async def test_insert_invalid_row(self, listing_service: ListingService, test_user):
        payload = ListingFactory.rental_payload(monthly_rent="lots")

        with pytest.raises(ValidationError) as exc_info:
            await listing_service.insert("rental_properties", payload, test_user)

        assert exc_info.value.field_errors[0]["field"] == "monthly_rent"

    @pytest.mark.asyncio
    async def test_profiles_read_only(self, listing_service: ListingService, test_user):
        with pytest.raises(ReadOnlyTableError):
            await listing_service.insert("profiles", {"full_name": "X"}, test_user)

        with pytest.raises(ReadOnlyTableError):
            await listing_service.delete("profiles", str(test_user.id), test_user)

    @pytest.mark.asyncio
    async def test_profiles_scoped_to_reader(self, listing_service: ListingService, test_user, other_user):
        rows = await listing_service.query("profiles", current_user=test_user)

        assert [row["id"] for row in rows] == [str(test_user.id)]

    @pytest.mark.asyncio
    async def test_profiles_refused_to_anonymous(self, listing_service: ListingService, test_user):
        with pytest.raises(UnauthorizedError):
            await listing_service.query("profiles")

        with pytest.raises(UnauthorizedError):
            await listing_service.get("profiles", str(test_user.id))

    @pytest.mark.asyncio
    async def test_profiles_refused_across_users(self, listing_service: ListingService, test_user, other_user):
        with pytest.raises(PrivateRowError):
            await listing_service.query("profiles", filters={"id": str(test_user.id)}, current_user=other_user)

        with pytest.raises(PrivateRowError):
            await listing_service.get("profiles", str(test_user.id), current_user=other_user)

    @pytest.mark.asyncio
    async def test_unknown_table(self, listing_service: ListingService):
        with pytest.raises(UnknownTableError):
            await listing_service.query("users")

    @pytest.mark.asyncio
    async def test_query_filters_by_raw_strings(self, listing_service: ListingService, test_user, other_user):
        await listing_service.insert("rental_properties", ListingFactory.rental_payload(parking=2), test_user)
        await listing_service.insert("rental_properties", ListingFactory.rental_payload(parking=0), other_user)

        rows = await listing_service.query(
            "rental_properties",
            filters={"user_id": str(test_user.id), "parking": "2"}
        )

        assert len(rows) == 1
        assert rows[0]["parking"] == 2

    @pytest.mark.asyncio
    async def test_query_limit_is_capped(self, listing_service: ListingService, test_user, monkeypatch):
        monkeypatch.setattr(settings, "max_query_limit", 2)
        for _ in range(3):
            await listing_service.insert("sale_properties", ListingFactory.sale_payload(), test_user)

        assert len(await listing_service.query("sale_properties", limit=50)) == 2
        assert len(await listing_service.query("sale_properties")) == 2

    @pytest.mark.asyncio
    async def test_get_missing(self, listing_service: ListingService):
        with pytest.raises(NotFoundError, match="Row not found"):
            await listing_service.get("sale_properties", str(uuid.uuid4()))

    @pytest.mark.asyncio
    async def test_delete_by_owner(self, listing_service: ListingService, test_user):
        row = await listing_service.insert("sale_properties", ListingFactory.sale_payload(), test_user)

        await listing_service.delete("sale_properties", row["id"], test_user)

        assert await listing_service.query("sale_properties") == []

    @pytest.mark.asyncio
    async def test_delete_by_non_owner(self, listing_service: ListingService, test_user, other_user):
        row = await listing_service.insert("sale_properties", ListingFactory.sale_payload(), test_user)

        with pytest.raises(ListingOwnershipError, match="You don't own this property"):
            await listing_service.delete("sale_properties", row["id"], other_user)

        assert len(await listing_service.query("sale_properties")) == 1
