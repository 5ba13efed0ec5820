"""Tests for the companion HTTP API."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from src.errors import StorefrontAPIError

CUSTOMER_ID = "64b7f0c2a1b2c3d4e5f60718"
CLAIM_ID = "64b7f0c2a1b2c3d4e5f6aaaa"
NOTIFICATION_ID = "64b7f0c2a1b2c3d4e5f6bbbb"
UNREAD_PATH = f"/jomfood/notifications/customer/{CUSTOMER_ID}/unread-count"


def _claim(status: str = "active") -> dict:
    return {"_id": CLAIM_ID, "deal_id": "64b7f0c2a1b2c3d4e5f60001", "status": status}


@pytest.mark.asyncio
async def test_root_and_health(client):
    root = await client.get("/")
    health = await client.get("/health")

    assert root.json() == {"message": "Hello World"}
    assert health.status_code == 200
    assert health.json()["redis"] == "connected"


@pytest.mark.asyncio
async def test_deals_list_fetches_once_then_serves_cache(client, storefront_client):
    storefront_client.add(
        "GET",
        "/jomfood-deals/active",
        {
            "data": {
                "deals": [{"_id": "d1"}],
                "pagination": {"current_page": 1, "total_pages": 2},
            }
        },
        {"data": {"deals": [{"_id": "d2"}], "pagination": {"current_page": 2, "total_pages": 2}}},
    )
    params = {"sort_by": "nearest", "latitude": "1.23", "longitude": "103.4", "radius_km": "20"}

    first = await client.get("/deals", params=params)
    second = await client.get("/deals", params=params)

    assert first.status_code == 200
    assert first.json()["fetched"] is True
    assert second.json()["fetched"] is False
    assert first.json()["filters"] == {
        "lat": "1.23",
        "lng": "103.4",
        "radius_km": "20",
        "sort_by": "nearest",
    }
    assert len(storefront_client.calls) == 1

    more = await client.post("/deals/next", params=params)
    body = more.json()
    assert [deal["_id"] for deal in body["items"]] == ["d1", "d2"]
    assert body["has_next"] is False


@pytest.mark.asyncio
async def test_language_query_does_not_leak_into_later_requests(
    client, storefront_client, collection
):
    storefront_client.add(
        "GET",
        "/jomfood-deals/active",
        {"data": {"deals": [{"_id": "d1"}], "pagination": {"current_page": 1, "total_pages": 1}}},
    )

    await client.get("/deals")
    await client.get("/deals", params={"lang": "malay", "is_hot_deal": "true"})
    plain = await client.get("/deals")

    assert plain.json()["fetched"] is False
    calls = storefront_client.calls_to("GET", "/jomfood-deals/active")
    assert len(calls) == 2
    assert "lang=en" in calls[0][1]
    assert "lang=malay" in calls[1][1]
    assert collection.context.language_code == "en"

    await client.post("/deals/refresh")
    assert "lang=en" in storefront_client.calls[-1][1]


@pytest.mark.asyncio
async def test_invalid_filters_return_422(client, storefront_client):
    response = await client.get("/deals", params={"min_price": "400", "max_price": "10"})

    assert response.status_code == 422
    assert response.json()["error"] == "InvalidFilterError"
    assert storefront_client.calls == []


@pytest.mark.asyncio
async def test_backend_failure_returns_502(client, storefront_client):
    storefront_client.add(
        "GET",
        "/jomfood-deals/active",
        StorefrontAPIError("offline", code="NETWORK_ERROR"),
    )

    response = await client.get("/deals")

    assert response.status_code == 502


@pytest.mark.asyncio
async def test_claim_history_and_transitions(client, storefront_client):
    storefront_client.add(
        "GET",
        "/jomfood-deals/claims/history",
        {"data": {"claims": [_claim()], "pagination": {"has_next": False}}},
    )
    storefront_client.add(
        "POST",
        f"/jomfood-deals/claims/{CLAIM_ID}/cancel",
        {"data": _claim("cancelled")},
    )

    history = await client.get("/claims/history", params={"customer_id": CUSTOMER_ID})
    assert history.json()["claims"][0]["id"] == CLAIM_ID

    cancelled = await client.post(f"/claims/{CLAIM_ID}/cancel")
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "cancelled"

    again = await client.post(f"/claims/{CLAIM_ID}/cancel")
    assert again.status_code == 409

    later = (datetime.now(UTC) + timedelta(days=1)).isoformat()
    rescheduled = await client.post(
        f"/claims/{CLAIM_ID}/reschedule",
        json={"preferred_datetime": later},
    )
    assert rescheduled.status_code == 409


@pytest.mark.asyncio
async def test_unknown_and_malformed_claims(client):
    unknown = await client.post(f"/claims/{CLAIM_ID}/cancel")
    malformed = await client.post("/claims/abc/cancel")

    assert unknown.status_code == 404
    assert malformed.status_code == 422
    assert malformed.json()["code"] == "INVALID_CLAIM_ID"


@pytest.mark.asyncio
async def test_notification_push_read_and_navigation(client, storefront_client, state_store):
    storefront_client.add("GET", UNREAD_PATH, {"data": {"unreadCount": 2}}, {"data": {"unreadCount": 1}})
    storefront_client.add(
        "PATCH",
        f"/jomfood/notifications/customer/{NOTIFICATION_ID}/read",
        {"success": True},
    )
    params = {"customer_id": CUSTOMER_ID}

    pushed = await client.post(
        "/notifications/push",
        params=params,
        json={"message": {"data": {"type": "deal", "dealId": "d7"}}, "opened": True},
    )
    assert pushed.json()["unread_count"] == 2

    navigation = await client.get("/notifications/pending-navigation", params=params)
    assert navigation.json()["target"] == {"screen": "deal_detail", "deal_id": "d7"}
    empty = await client.get("/notifications/pending-navigation", params=params)
    assert empty.json()["target"] is None

    read = await client.post(f"/notifications/{NOTIFICATION_ID}/read", params=params)
    assert read.json()["unread_count"] == 1

    state = await state_store.fetch(CUSTOMER_ID)
    assert state is not None
    assert state.unread_count == 1


@pytest.mark.asyncio
async def test_notification_state_requires_valid_customer(client):
    response = await client.get("/notifications/state", params={"customer_id": "nope"})

    assert response.status_code == 422
