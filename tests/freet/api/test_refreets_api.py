"""HTTP tests for ``/api/refreets``; same contract as likes, own envelope key."""

from __future__ import annotations

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_refreet_lifecycle(api_client: AsyncClient, registered, posted) -> None:
    freet_id = posted["news"]

    created = await api_client.post("/api/refreets", json={"freetId": freet_id})
    added = await api_client.put(
        "/api/refreets/add", json={"freetId": freet_id, "userId": registered["alice"]}
    )
    removed = await api_client.put(
        "/api/refreets/remove", json={"freetId": freet_id, "userId": registered["alice"]}
    )

    assert created.status_code == 201
    assert "refreet" in created.json()
    assert added.json()["refreet"]["users"] == [registered["alice"]]
    assert added.json()["message"] == "Your refreet was updated successfully."
    assert removed.json()["refreet"]["users"] == []


@pytest.mark.asyncio
async def test_likes_and_refreets_are_independent(api_client: AsyncClient, posted) -> None:
    await api_client.post("/api/refreets", json={"freetId": posted["hello"]})

    like_lookup = await api_client.get("/api/likes", params={"freetId": posted["hello"]})
    refreet_conflict = await api_client.post("/api/refreets", json={"freetId": posted["hello"]})

    assert like_lookup.status_code == 404
    assert refreet_conflict.status_code == 409
    assert "refreetExists" in refreet_conflict.json()["error"]
