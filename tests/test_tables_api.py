"""
Tests for the table endpoints of the remote store service.
"""

import uuid

import pytest

from tests.conftest import ListingFactory

API = "/api/v1/tables"


async def create_listing(client, headers, table="sale_properties", **fields):
    payload = ListingFactory.sale_payload(**fields) if table == "sale_properties" \
        else ListingFactory.rental_payload(**fields)
    response = await client.post(f"{API}/{table}", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestInsert:
    """Test listing inserts."""

    @pytest.mark.asyncio
    async def test_insert_sale_listing(self, async_client, auth_headers, test_user):
        response = await async_client.post(
            f"{API}/sale_properties",
            json=ListingFactory.sale_payload(),
            headers=auth_headers
        )

        assert response.status_code == 201
        data = response.json()
        assert data["id"]
        assert data["user_id"] == str(test_user.id)
        assert data["price"] == 8_500_000
        assert data["area"] == 1800
        assert data["images"] == []
        assert data["created_at"]

    @pytest.mark.asyncio
    async def test_insert_rental_listing(self, async_client, auth_headers):
        data = await create_listing(async_client, auth_headers, "rental_properties")

        assert data["monthly_rent"] == 18_000
        assert data["security_deposit"] == 36_000
        assert data["available_from"] == "2026-11-01"
        assert data["amenities"] == ["Lift", "Power Backup"]
        assert data["furnished"] == "semi"

    @pytest.mark.asyncio
    async def test_insert_requires_authentication(self, async_client):
        response = await async_client.post(f"{API}/sale_properties", json=ListingFactory.sale_payload())

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHORIZED"

    @pytest.mark.asyncio
    async def test_insert_for_another_user_is_forbidden(self, async_client, auth_headers, other_user):
        response = await async_client.post(
            f"{API}/sale_properties",
            json=ListingFactory.sale_payload(user_id=str(other_user.id)),
            headers=auth_headers
        )

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "FORBIDDEN"

    @pytest.mark.asyncio
    async def test_insert_with_own_user_id(self, async_client, auth_headers, test_user):
        data = await create_listing(async_client, auth_headers, user_id=str(test_user.id))
        assert data["user_id"] == str(test_user.id)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("overrides", [
        {"price": 0},
        {"price": -100},
        {"title": "   "},
        {"property_type": ""},
        {"unknown_column": "x"},
    ])
    async def test_insert_rejects_invalid_rows(self, async_client, auth_headers, overrides):
        response = await async_client.post(
            f"{API}/sale_properties",
            json=ListingFactory.sale_payload(**overrides),
            headers=auth_headers
        )

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["details"]

    @pytest.mark.asyncio
    async def test_missing_price(self, async_client, auth_headers):
        payload = ListingFactory.sale_payload()
        del payload["price"]

        response = await async_client.post(f"{API}/sale_properties", json=payload, headers=auth_headers)

        assert response.status_code == 422
        assert any(detail["field"] == "price" for detail in response.json()["error"]["details"])

    @pytest.mark.asyncio
    async def test_invalid_furnished_choice(self, async_client, auth_headers):
        response = await async_client.post(
            f"{API}/rental_properties",
            json=ListingFactory.rental_payload(furnished="partly"),
            headers=auth_headers
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_profiles_are_read_only(self, async_client, auth_headers, test_user):
        response = await async_client.post(
            f"{API}/profiles",
            json={"id": str(test_user.id), "full_name": "Someone Else"},
            headers=auth_headers
        )

        assert response.status_code == 403
        assert "read-only" in response.json()["error"]["message"]

    @pytest.mark.asyncio
    async def test_non_json_body_rejected(self, async_client, auth_headers):
        response = await async_client.post(
            f"{API}/sale_properties",
            content=b"title=x",
            headers={**auth_headers, "Content-Type": "application/x-www-form-urlencoded"}
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "BAD_REQUEST"


class TestQuery:
    """Test table queries."""

    @pytest.mark.asyncio
    async def test_query_is_public(self, async_client, auth_headers):
        await create_listing(async_client, auth_headers)

        response = await async_client.get(f"{API}/sale_properties")

        assert response.status_code == 200
        assert len(response.json()) == 1

    @pytest.mark.asyncio
    async def test_equality_filters(self, async_client, auth_headers, other_auth_headers, test_user):
        await create_listing(async_client, auth_headers, title="Villa A", property_type="villa")
        await create_listing(async_client, auth_headers, title="Flat A", property_type="apartment")
        await create_listing(async_client, other_auth_headers, title="Villa B", property_type="villa")

        mine = await async_client.get(f"{API}/sale_properties", params={"user_id": str(test_user.id)})
        villas = await async_client.get(f"{API}/sale_properties", params={"property_type": "villa"})
        both = await async_client.get(
            f"{API}/sale_properties",
            params={"user_id": str(test_user.id), "property_type": "villa"}
        )

        assert sorted(row["title"] for row in mine.json()) == ["Flat A", "Villa A"]
        assert sorted(row["title"] for row in villas.json()) == ["Villa A", "Villa B"]
        assert [row["title"] for row in both.json()] == ["Villa A"]

    @pytest.mark.asyncio
    async def test_integer_filter(self, async_client, auth_headers):
        await create_listing(async_client, auth_headers, title="Two", bedrooms=2)
        await create_listing(async_client, auth_headers, title="Four", bedrooms=4)

        response = await async_client.get(f"{API}/sale_properties", params={"bedrooms": "4"})

        assert [row["title"] for row in response.json()] == ["Four"]

    @pytest.mark.asyncio
    async def test_order_and_limit(self, async_client, auth_headers):
        for title, price in (("Mid", 6_000_000), ("Low", 3_000_000), ("High", 20_000_000)):
            await create_listing(async_client, auth_headers, title=title, price=price)

        descending = await async_client.get(f"{API}/sale_properties", params={"order": "price.desc"})
        ascending = await async_client.get(f"{API}/sale_properties", params={"order": "price", "limit": 2})

        assert [row["title"] for row in descending.json()] == ["High", "Mid", "Low"]
        assert [row["title"] for row in ascending.json()] == ["Low", "Mid"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("params", [
        {"no_such_column": "x"},
        {"order": "no_such_column.desc"},
        {"order": "price.sideways"},
        {"user_id": "not-a-uuid"},
        {"bedrooms": "many"},
        {"limit": 0},
    ])
    async def test_invalid_query(self, async_client, params):
        response = await async_client.get(f"{API}/sale_properties", params=params)

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_unknown_table(self, async_client):
        response = await async_client.get(f"{API}/houses")

        assert response.status_code == 404
        assert response.json()["error"]["message"] == "Table not found with ID: houses"

    @pytest.mark.asyncio
    async def test_profile_visible_to_its_owner(self, async_client, auth_headers, test_user, other_user):
        response = await async_client.get(f"{API}/profiles", headers=auth_headers)

        assert response.status_code == 200
        rows = response.json()
        assert [row["id"] for row in rows] == [str(test_user.id)]
        assert rows[0]["full_name"] == "Asha Verma"

        row = await async_client.get(f"{API}/profiles/{test_user.id}", headers=auth_headers)
        assert row.status_code == 200

    @pytest.mark.asyncio
    async def test_anonymous_profile_reads_refused(self, async_client, test_user):
        listing = await async_client.get(f"{API}/profiles")
        single = await async_client.get(f"{API}/profiles/{test_user.id}")

        for response in (listing, single):
            assert response.status_code == 401
            assert response.json()["error"]["code"] == "UNAUTHORIZED"

    @pytest.mark.asyncio
    async def test_other_users_profile_refused(self, async_client, other_auth_headers, test_user):
        listing = await async_client.get(
            f"{API}/profiles",
            params={"id": str(test_user.id)},
            headers=other_auth_headers
        )
        single = await async_client.get(f"{API}/profiles/{test_user.id}", headers=other_auth_headers)

        for response in (listing, single):
            assert response.status_code == 403
            assert "Asha Verma" not in response.text


class TestGetAndDelete:
    """Test fetching and deleting single rows."""

    @pytest.mark.asyncio
    async def test_get_by_id(self, async_client, auth_headers):
        created = await create_listing(async_client, auth_headers, "rental_properties")

        response = await async_client.get(f"{API}/rental_properties/{created['id']}")

        assert response.status_code == 200
        assert response.json() == created

    @pytest.mark.asyncio
    @pytest.mark.parametrize("row_id", [str(uuid.uuid4()), "not-a-uuid"])
    async def test_get_missing_row(self, async_client, row_id):
        response = await async_client.get(f"{API}/sale_properties/{row_id}")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_owner_deletes_listing(self, async_client, auth_headers):
        created = await create_listing(async_client, auth_headers)

        response = await async_client.delete(f"{API}/sale_properties/{created['id']}", headers=auth_headers)
        assert response.status_code == 204

        after = await async_client.get(f"{API}/sale_properties/{created['id']}")
        assert after.status_code == 404

    @pytest.mark.asyncio
    async def test_non_owner_cannot_delete(self, async_client, auth_headers, other_auth_headers):
        created = await create_listing(async_client, auth_headers)

        response = await async_client.delete(
            f"{API}/sale_properties/{created['id']}",
            headers=other_auth_headers
        )

        assert response.status_code == 403
        assert response.json()["error"]["message"] == "You don't own this property"
        still_there = await async_client.get(f"{API}/sale_properties/{created['id']}")
        assert still_there.status_code == 200

    @pytest.mark.asyncio
    async def test_delete_missing_row(self, async_client, auth_headers):
        response = await async_client.delete(f"{API}/sale_properties/{uuid.uuid4()}", headers=auth_headers)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_requires_authentication(self, async_client, auth_headers):
        created = await create_listing(async_client, auth_headers)

        response = await async_client.delete(f"{API}/sale_properties/{created['id']}")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_profiles_cannot_be_deleted(self, async_client, auth_headers, test_user):
        response = await async_client.delete(f"{API}/profiles/{test_user.id}", headers=auth_headers)
        assert response.status_code == 403


class TestServiceEnvelope:
    """Test cross-cutting response behaviour."""

    @pytest.mark.asyncio
    async def test_request_id_is_echoed(self, async_client):
        response = await async_client.get(f"{API}/houses", headers={"X-Request-ID": "abc123"})

        assert response.headers["X-Request-ID"] == "abc123"
        assert response.json()["error"]["request_id"] == "abc123"

    @pytest.mark.asyncio
    async def test_unknown_route(self, async_client):
        response = await async_client.get("/api/v1/nowhere")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "HTTP_404"

    @pytest.mark.asyncio
    async def test_health(self, async_client, monkeypatch):
        async def connected():
            return True

        monkeypatch.setattr("silver_estates.main.check_database_connection", connected)

        response = await async_client.get("/health")

        assert response.status_code == 200
        assert response.json()["database"] == "connected"

    @pytest.mark.asyncio
    async def test_health_without_database(self, async_client, monkeypatch):
        async def unreachable():
            return False

        monkeypatch.setattr("silver_estates.main.check_database_connection", unreachable)

        response = await async_client.get("/health")

        assert response.status_code == 503
        assert response.json()["error"]["code"] == "SERVICE_UNAVAILABLE"
