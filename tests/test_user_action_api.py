"""HTTP surface of /v1/user-actions."""
from __future__ import annotations

import pytest
from sqlalchemy.exc import OperationalError

from app.main import app
from app.models.user_action import ActionType
from app.routers.v1.user_action import get_user_action_service
from app.services.auth import create_jwt
from app.services.store_service import StoreService
from app.services.user_action_service import UserActionService
from tests.factories import add_actions

pytestmark = pytest.mark.asyncio


def bearer(user_id: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_jwt(user_id)}"}


async def test_health(client) -> None:
    res = await client.get("/health")
    assert res.status_code == 200
    assert res.json()["ok"] is True


async def test_record_anonymous_action_from_body(client, seed) -> None:
    res = await client.post(
        "/v1/user-actions",
        json={
            "action_type": "search",
            "store_id": seed["store"].id,
            "metadata": {"search_query": "shoes"},
            "user_id": "not-a-uuid",
        },
        headers={"User-Agent": "shop-app/2.1", "X-Forwarded-For": "198.51.100.4, 10.0.0.1"},
    )
    assert res.status_code == 200
    body = res.json()
    assert body["user_id"] is None
    assert body["anonymous_user_id"] == "anon-not-a-uuid"
    assert body["metadata"] == {"search_query": "shoes"}
    assert body["store_id"] == seed["store"].id
    assert body["ip_address"] == "198.51.100.4"
    assert body["user_agent"] == "shop-app/2.1"


async def test_record_uses_bearer_identity(client, seed) -> None:
    res = await client.post(
        "/v1/user-actions",
        json={"action_type": "product_view", "product_id": "SHOE-1", "user_id": "ignored"},
        headers=bearer(seed["customer"].id),
    )
    assert res.status_code == 200
    assert res.json()["user_id"] == seed["customer"].id
    assert res.json()["store_id"] == seed["store"].id


async def test_owner_action_is_suppressed(client, seed) -> None:
    res = await client.post(
        "/v1/user-actions",
        json={"action_type": "product_view", "store_id": seed["store"].id},
        headers=bearer(seed["owner"].id),
    )
    assert res.status_code == 200
    assert res.json() is None


async def test_record_without_actor_returns_null(client, seed) -> None:
    res = await client.post("/v1/user-actions", json={"action_type": "home_page_visit"})
    assert res.status_code == 200
    assert res.json() is None


async def test_invalid_bearer_is_treated_as_anonymous_visitor(client, seed) -> None:
    res = await client.post(
        "/v1/user-actions",
        json={"action_type": "map_open", "user_id": "device-1"},
        headers={"Authorization": "Bearer garbage"},
    )
    assert res.status_code == 200
    assert res.json()["anonymous_user_id"] == "anon-device-1"


async def test_unknown_action_type_is_rejected(client, seed) -> None:
    res = await client.post("/v1/user-actions", json={"action_type": "teleport", "user_id": "x"})
    assert res.status_code == 422


async def test_record_search_endpoint(client, seed) -> None:
    res = await client.post(
        "/v1/user-actions/search",
        json={"store_id": seed["store"].id, "search_query": "wool", "user_id": "anon-abc"},
    )
    assert res.status_code == 200
    body = res.json()
    assert body["action_type"] == "search"
    assert body["metadata"] == {"search_query": "wool"}
    assert body["anonymous_user_id"] == "anon-abc"


async def test_my_actions_require_auth(client, seed) -> None:
    assert (await client.get("/v1/user-actions/me")).status_code == 401
    assert (await client.get("/v1/user-actions/me/stats")).status_code == 401
    res = await client.get("/v1/user-actions/me", headers={"Authorization": "Bearer nope"})
    assert res.status_code == 401


async def test_my_actions_and_stats(client, session, seed) -> None:
    customer_id = seed["customer"].id
    await add_actions(session, 2, action_type=ActionType.PRODUCT_VIEW, user_id=customer_id)
    await add_actions(session, 1, action_type=ActionType.PHONE_CLICK, user_id=customer_id)

    res = await client.get("/v1/user-actions/me", params={"limit": 2}, headers=bearer(customer_id))
    assert res.status_code == 200
    assert res.json()["total"] == 3
    assert len(res.json()["data"]) == 2

    stats = await client.get("/v1/user-actions/me/stats", headers=bearer(customer_id))
    assert {s["action_type"]: s["count"] for s in stats.json()} == {"product_view": 2, "phone_click": 1}


async def test_store_analytics_for_owner(client, session, seed) -> None:
    store_id = seed["store"].id
    await add_actions(session, 3, action_type=ActionType.PRODUCT_VIEW, store_id=store_id)
    await add_actions(session, 2, action_type=ActionType.WHATSAPP_CLICK, store_id=store_id)

    res = await client.get(f"/v1/user-actions/store/{store_id}", headers=bearer(seed["owner"].id))
    assert res.status_code == 200
    body = res.json()
    assert body["summary"] == {"total_actions": 5, "product_views": 3, "favorites": 0, "contacts": 2}
    assert len(body["breakdown"]) == 10
    assert body["pageSize"] == 7
    assert body["totalPages"] == 1
    assert len(body["recentActions"]) == 5


@pytest.mark.parametrize("who, status", [("manager", 200), ("clerk", 200), ("customer", 403), ("other_owner", 403)])
async def test_store_analytics_access(client, seed, who, status) -> None:
    res = await client.get(f"/v1/user-actions/store/{seed['store'].id}", headers=bearer(seed[who].id))
    assert res.status_code == status


async def test_store_analytics_rejects_unknown_search_type(client, seed) -> None:
    res = await client.get(
        f"/v1/user-actions/store/{seed['store'].id}",
        params={"search_type": "zip_code", "search_value": "1"},
        headers=bearer(seed["owner"].id),
    )
    assert res.status_code == 422


async def test_product_and_user_history(client, session, seed) -> None:
    customer_id = seed["customer"].id
    await add_actions(
        session, 2, action_type=ActionType.PRODUCT_VIEW, user_id=customer_id,
        product_id="SOCK-1", action_metadata={"a": 1},
    )

    product = await client.get("/v1/user-actions/product/SOCK-1", headers=bearer(seed["owner"].id))
    user = await client.get(f"/v1/user-actions/user/{customer_id}", headers=bearer(seed["owner"].id))

    assert product.json()["total"] == 2
    assert product.json()["data"][0]["metadata"] == {"a": 1}
    assert user.json()["total"] == 2


async def test_store_analytics_role_lookup_failure_is_500(client, session, seed) -> None:
    class FailingStores(StoreService):
        async def get_user_store_role(self, user_id, store_id):
            raise OperationalError("SELECT", {}, Exception("server has gone away"))

    app.dependency_overrides[get_user_action_service] = lambda: UserActionService(
        session, stores=FailingStores(session)
    )
    try:
        res = await client.get(f"/v1/user-actions/store/{seed['store'].id}", headers=bearer(seed["owner"].id))
    finally:
        app.dependency_overrides.pop(get_user_action_service, None)

    assert res.status_code == 500
    assert res.json()["detail"] == "Failed to check store access"


async def test_path_ids_win_over_same_named_query_filters(client, session, seed) -> None:
    store_id = seed["store"].id
    await add_actions(session, 2, action_type=ActionType.PRODUCT_VIEW, store_id=store_id, product_id="SHOE-1")

    store = await client.get(
        f"/v1/user-actions/store/{store_id}",
        params={"store_id": "somewhere-else"},
        headers=bearer(seed["owner"].id),
    )
    product = await client.get(
        "/v1/user-actions/product/SHOE-1",
        params={"product_id": "SOCK-1"},
        headers=bearer(seed["owner"].id),
    )

    assert store.status_code == 200
    assert store.json()["total"] == 2
    assert product.status_code == 200
    # the query filter narrows within the path product
    assert product.json()["total"] == 0


async def test_huge_paging_values_do_not_error(client, session, seed) -> None:
    store_id = seed["store"].id
    await add_actions(session, 2, action_type=ActionType.SEARCH, store_id=store_id)

    store = await client.get(
        f"/v1/user-actions/store/{store_id}",
        params={"page": str(10**20)},
        headers=bearer(seed["owner"].id),
    )
    product = await client.get(
        "/v1/user-actions/product/SHOE-1",
        params={"offset": str(10**20)},
        headers=bearer(seed["owner"].id),
    )

    assert store.status_code == 200
    assert store.json()["recentActions"] == []
    assert product.status_code == 200
    assert product.json()["data"] == []


async def test_overlong_product_id_is_rejected(client, seed) -> None:
    res = await client.post(
        "/v1/user-actions",
        json={"action_type": "product_view", "product_id": "P" * 51, "user_id": "device-1"},
    )
    assert res.status_code == 422
