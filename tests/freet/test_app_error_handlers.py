"""Tests asserting ``freet.main`` exception handlers render the error envelope."""

from __future__ import annotations

import json

import pytest
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.exc import TimeoutError as SQLAlchemyTimeoutError
from starlette.datastructures import Headers

import freet.main as freet_main
from freet.errors import AlreadyMember, Forbidden, NotFound
from freet.schemas.error import ErrorResponse
from freet.utils.request_context import clear_request_id, set_request_id


def _build_request(path: str = "/resource") -> Request:
    """Create a minimal ``Request`` suitable for invoking handlers."""

    scope = {
        "type": "http",
        "method": "GET",
        "path": path,
        "headers": Headers().raw,
    }
    return Request(scope)


def _body(response) -> dict:
    return json.loads(response.body.decode())


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("exc", "expected_status", "expected_tag"),
    [
        (NotFound("Like for freet F1 does not exist.", tag="likeNotFound"), 404, "likeNotFound"),
        (AlreadyMember("bob is already a member."), 409, "alreadyMember"),
        (Forbidden("nope", tag="ownerNotRemovable"), 403, "ownerNotRemovable"),
    ],
)
async def test_domain_errors_keep_status_and_tag(exc, expected_status, expected_tag) -> None:
    response = await freet_main.freet_error_handler(_build_request("/api/likes"), exc)

    assert response.status_code == expected_status
    assert _body(response) == {"error": {expected_tag: exc.message}}


@pytest.mark.asyncio
async def test_validation_exception_handler_uses_builder(monkeypatch) -> None:
    """The request validation handler delegates to the helper utility."""

    token = set_request_id("req-1")
    exc = RequestValidationError(
        [{"loc": ["body", "freetId"], "msg": "String should match pattern", "input": "x y"}]
    )
    called: dict[str, object] = {}

    def fake_builder(**kwargs):
        called["kwargs"] = kwargs
        return ErrorResponse(error={"validationFailure": "stubbed"})

    monkeypatch.setattr(freet_main, "build_validation_error_response", fake_builder)

    try:
        response = await freet_main.validation_exception_handler(
            _build_request("/api/likes"), exc
        )
    finally:
        clear_request_id(token)

    (detail,) = called["kwargs"]["errors"]
    assert detail.field == "body.freetId"
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert _body(response) == {"error": {"validationFailure": "stubbed"}}


@pytest.mark.asyncio
async def test_database_connection_exception_handler() -> None:
    token = set_request_id("req-2")
    exc = DBAPIError("statement", {}, Exception("boom"))

    try:
        response = await freet_main.database_connection_exception_handler(
            _build_request("/db"), exc
        )
    finally:
        clear_request_id(token)

    assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
    assert list(_body(response)["error"]) == ["databaseError"]


@pytest.mark.asyncio
async def test_integrity_error_maps_to_conflict() -> None:
    exc = IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))

    response = await freet_main.database_integrity_exception_handler(
        _build_request("/api/likes"), exc
    )

    assert response.status_code == status.HTTP_409_CONFLICT
    assert list(_body(response)["error"]) == ["integrityError"]


@pytest.mark.asyncio
async def test_timeout_error_maps_to_gateway_timeout() -> None:
    response = await freet_main.database_timeout_exception_handler(
        _build_request(), SQLAlchemyTimeoutError("pool exhausted")
    )

    assert response.status_code == status.HTTP_504_GATEWAY_TIMEOUT
    assert list(_body(response)["error"]) == ["timeoutError"]


@pytest.mark.asyncio
async def test_generic_exception_handler_hides_details() -> None:
    response = await freet_main.generic_exception_handler(
        _build_request(), RuntimeError("secret internals")
    )

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert _body(response) == {
        "error": {"internalError": "An unexpected error occurred: RuntimeError"}
    }


def test_sanitize_database_url_masks_password() -> None:
    assert (
        freet_main._sanitize_database_url("postgresql+psycopg://app:hunter2@db:5432/freet")
        == "postgresql+psycopg://app:***@db:5432/freet"
    )
    assert freet_main._sanitize_database_url("sqlite+aiosqlite:///./data/freet.db") == (
        "sqlite+aiosqlite:///./data/freet.db"
    )


def test_combine_origins_deduplicates() -> None:
    combined = freet_main._combine_origins(
        ["http://localhost:3000/", "http://localhost:3000"], ["https://freet.example"]
    )

    assert combined == ["http://localhost:3000", "https://freet.example"]
