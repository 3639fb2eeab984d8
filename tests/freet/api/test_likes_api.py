"""HTTP tests for ``/api/likes``."""

from __future__ import annotations

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_create_then_add_is_idempotent(
    api_client: AsyncClient, registered, posted
) -> None:
    freet_id, user_id = posted["hello"], registered["bob"]

    created = await api_client.post("/api/likes", json={"freetId": freet_id})
    assert created.status_code == 201
    body = created.json()
    assert body["message"] == "Your like was created successfully."
    assert body["like"]["freet"] == freet_id
    assert body["like"]["users"] == []

    for _ in range(2):
        response = await api_client.put(
            "/api/likes/add", json={"freetId": freet_id, "userId": user_id}
        )
        assert response.status_code == 200
        assert response.json()["like"]["users"] == [user_id]


@pytest.mark.asyncio
async def test_second_create_conflicts(api_client: AsyncClient, posted) -> None:
    await api_client.post("/api/likes", json={"freetId": posted["hello"]})

    response = await api_client.post("/api/likes", json={"freetId": posted["hello"]})

    assert response.status_code == 409
    assert list(response.json()["error"]) == ["likeExists"]


@pytest.mark.asyncio
async def test_create_for_unknown_freet(api_client: AsyncClient) -> None:
    response = await api_client.post("/api/likes", json={"freetId": "0000aaaa"})

    assert response.status_code == 404
    assert "freetNotFound" in response.json()["error"]


@pytest.mark.asyncio
async def test_remove_absent_user_leaves_set_unchanged(
    api_client: AsyncClient, registered, posted
) -> None:
    freet_id = posted["news"]
    await api_client.post("/api/likes", json={"freetId": freet_id})
    await api_client.put(
        "/api/likes/add", json={"freetId": freet_id, "userId": registered["alice"]}
    )

    response = await api_client.put(
        "/api/likes/remove", json={"freetId": freet_id, "userId": registered["carol"]}
    )

    assert response.status_code == 200
    assert response.json()["like"]["users"] == [registered["alice"]]


@pytest.mark.asyncio
async def test_add_to_missing_like_is_not_found(
    api_client: AsyncClient, registered, posted
) -> None:
    response = await api_client.put(
        "/api/likes/add", json={"freetId": posted["hello"], "userId": registered["bob"]}
    )

    assert response.status_code == 404
    assert "likeNotFound" in response.json()["error"]


@pytest.mark.asyncio
async def test_read_filters(api_client: AsyncClient, registered, posted) -> None:
    for freet_id in posted.values():
        await api_client.post("/api/likes", json={"freetId": freet_id})
    await api_client.put(
        "/api/likes/add", json={"freetId": posted["news"], "userId": "carol"}
    )

    everything = await api_client.get("/api/likes")
    single = await api_client.get("/api/likes", params={"freetId": posted["news"]})
    by_user = await api_client.get("/api/likes", params={"userId": "carol"})

    assert everything.status_code == 200
    assert {like["freet"] for like in everything.json()} == set(posted.values())
    assert single.json()["users"] == [registered["carol"]]
    assert [like["freet"] for like in by_user.json()] == [posted["news"]]


@pytest.mark.asyncio
async def test_delete_like(api_client: AsyncClient, posted) -> None:
    await api_client.post("/api/likes", json={"freetId": posted["hello"]})

    deleted = await api_client.delete(f"/api/likes/{posted['hello']}")
    missing = await api_client.get("/api/likes", params={"freetId": posted["hello"]})
    again = await api_client.delete(f"/api/likes/{posted['hello']}")

    assert deleted.status_code == 200
    assert deleted.json() == {"message": "Your like was deleted successfully."}
    assert missing.status_code == 404
    assert again.status_code == 404


@pytest.mark.asyncio
async def test_malformed_identifier_is_validation_failure(api_client: AsyncClient) -> None:
    response = await api_client.post("/api/likes", json={"freetId": "not an id!"})

    assert response.status_code == 400
    assert "validationFailure" in response.json()["error"]
