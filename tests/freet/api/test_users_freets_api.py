"""HTTP tests for users, freets and the app-level plumbing."""

from __future__ import annotations

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_health(api_client: AsyncClient) -> None:
    response = await api_client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_request_id_is_echoed_or_generated(api_client: AsyncClient) -> None:
    echoed = await api_client.get("/health", headers={"X-Request-ID": "req-123"})
    generated = await api_client.get("/health")

    assert echoed.headers["X-Request-ID"] == "req-123"
    assert generated.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_register_and_lookup_user(api_client: AsyncClient) -> None:
    created = await api_client.post("/api/users", json={"username": "dana"})

    assert created.status_code == 201
    assert created.json()["message"] == "Your account was created successfully."
    user = created.json()["user"]
    assert user["username"] == "dana"

    by_name = await api_client.get("/api/users/dana")
    by_id = await api_client.get(f"/api/users/{user['_id']}")
    assert by_name.json()["_id"] == user["_id"]
    assert by_id.json()["username"] == "dana"


@pytest.mark.asyncio
async def test_duplicate_username(api_client: AsyncClient, registered) -> None:
    response = await api_client.post("/api/users", json={"username": "alice"})

    assert response.status_code == 409
    assert "usernameTaken" in response.json()["error"]


@pytest.mark.asyncio
async def test_unknown_user(api_client: AsyncClient) -> None:
    response = await api_client.get("/api/users/ghost")

    assert response.status_code == 404
    assert "userNotFound" in response.json()["error"]


@pytest.mark.asyncio
async def test_list_and_read_freets(api_client: AsyncClient, registered, posted) -> None:
    by_bob = await api_client.get("/api/freets", params={"author": "bob"})
    single = await api_client.get(f"/api/freets/{posted['hello']}")
    everything = await api_client.get("/api/freets")

    assert [freet["_id"] for freet in by_bob.json()] == [posted["news"]]
    assert single.json()["author"] == registered["alice"]
    assert single.json()["content"] == "hello world"
    assert len(everything.json()) == 2


@pytest.mark.asyncio
async def test_freet_content_is_validated(api_client: AsyncClient, registered) -> None:
    response = await api_client.post(
        "/api/freets", json={"authorId": registered["alice"], "content": "x" * 141}
    )

    assert response.status_code == 400
    assert "validationFailure" in response.json()["error"]


@pytest.mark.asyncio
async def test_delete_freet_cascades_into_relationships(
    api_client: AsyncClient, registered, posted
) -> None:
    freet_id = posted["hello"]
    await api_client.post("/api/likes", json={"freetId": freet_id})
    await api_client.put("/api/likes/add", json={"freetId": freet_id, "userId": "bob"})
    await api_client.post("/api/refreets", json={"freetId": freet_id})
    circle = (
        await api_client.post("/api/circles", json={"name": "Friends", "owner": "alice"})
    ).json()["circle"]
    await api_client.put("/api/circles/addFreet", json={"id": circle["_id"], "freetId": freet_id})
    # Warm the read caches so the cascade has something to invalidate.
    await api_client.get("/api/likes")
    await api_client.get("/api/circles")

    deleted = await api_client.delete(f"/api/freets/{freet_id}")

    assert deleted.status_code == 200
    assert deleted.json() == {"message": "Your freet was deleted successfully."}
    assert (await api_client.get(f"/api/freets/{freet_id}")).status_code == 404
    assert (await api_client.get("/api/likes")).json() == []
    assert (await api_client.get("/api/refreets", params={"freetId": freet_id})).status_code == 404
    circles = (await api_client.get("/api/circles")).json()
    assert circles[0]["freets"] == []
