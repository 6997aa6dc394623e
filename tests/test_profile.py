from __future__ import annotations

import uuid
from datetime import UTC, datetime
from types import SimpleNamespace
from typing import Any
from unittest.mock import MagicMock

import pytest
from httpx import AsyncClient
from sqlalchemy.dialects import postgresql

from app.routes import profile as profile_routes
from app.services.profile_service import ProfileService


def _profile_obj(user_id: str, document: dict[str, Any]) -> SimpleNamespace:
    now = datetime(2026, 10, 19, 9, 0, tzinfo=UTC)
    return SimpleNamespace(
        id=uuid.UUID("22222222-2222-2222-2222-222222222222"),
        user_id=user_id,
        document=document,
        created_at=now,
        updated_at=now,
    )


@pytest.mark.asyncio
async def test_update_profile_returns_merged_document(
    client: AsyncClient,
    auth_headers: dict[str, str],
    auth_user_id: str,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    seen: dict[str, Any] = {}

    async def fake_update(self: ProfileService, user_id: str, fields: dict[str, Any]) -> object:
        seen["user_id"] = user_id
        seen["fields"] = fields
        return _profile_obj(user_id, {"farmName": "Green Acres", "location": "Nakuru", **fields})

    monkeypatch.setattr(ProfileService, "update_profile", fake_update)

    response = await client.put(
        "/api/profile/update",
        json={"farmSize": 12.5, "crops": ["maize", "beans"]},
        headers=auth_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Profile updated successfully"
    profile = body["farmProfile"]
    assert profile["userId"] == auth_user_id
    assert profile["farmName"] == "Green Acres"
    assert profile["farmSize"] == 12.5
    assert profile["crops"] == ["maize", "beans"]
    assert profile["id"] == "22222222-2222-2222-2222-222222222222"
    assert seen == {"user_id": auth_user_id, "fields": {"farmSize": 12.5, "crops": ["maize", "beans"]}}


@pytest.mark.asyncio
async def test_update_profile_without_existing_profile_returns_null(
    client: AsyncClient,
    auth_headers: dict[str, str],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    async def fake_update(self: ProfileService, user_id: str, fields: dict[str, Any]) -> None:
        return None

    monkeypatch.setattr(ProfileService, "update_profile", fake_update)

    response = await client.put("/api/profile/update", json={"location": "Eldoret"}, headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == {"message": "Profile updated successfully", "farmProfile": None}


@pytest.mark.asyncio
async def test_update_profile_persistence_failure_includes_details_outside_production(
    client: AsyncClient,
    auth_headers: dict[str, str],
    fake_db_session: Any,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    async def failing_update(self: ProfileService, user_id: str, fields: dict[str, Any]) -> None:
        raise RuntimeError("connection reset")

    monkeypatch.setattr(ProfileService, "update_profile", failing_update)

    response = await client.put("/api/profile/update", json={"location": "Eldoret"}, headers=auth_headers)

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "connection reset"
    assert "RuntimeError" in body["details"]
    fake_db_session.rollback.assert_awaited()


@pytest.mark.asyncio
async def test_update_profile_persistence_failure_hides_details_in_production(
    client: AsyncClient,
    auth_headers: dict[str, str],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    async def failing_update(self: ProfileService, user_id: str, fields: dict[str, Any]) -> None:
        raise RuntimeError("connection reset")

    monkeypatch.setattr(ProfileService, "update_profile", failing_update)
    monkeypatch.setattr(profile_routes, "get_settings", lambda: SimpleNamespace(is_production=True))

    response = await client.put("/api/profile/update", json={"location": "Eldoret"}, headers=auth_headers)

    assert response.status_code == 500
    assert response.json() == {"error": "connection reset"}


@pytest.mark.asyncio
async def test_update_profile_rejects_non_object_body(client: AsyncClient, auth_headers: dict[str, str]) -> None:
    response = await client.put("/api/profile/update", json=["not", "an", "object"], headers=auth_headers)
    assert response.status_code == 400
    assert response.json() == {"error": "Request body must be a JSON object"}


@pytest.mark.asyncio
async def test_update_profile_unreadable_body_is_server_error(client: AsyncClient, auth_headers: dict[str, str]) -> None:
    response = await client.put(
        "/api/profile/update",
        content=b"{not json",
        headers={**auth_headers, "Content-Type": "application/json"},
    )
    assert response.status_code == 500
    assert response.json()["error"]


@pytest.mark.asyncio
async def test_service_update_issues_single_merge_statement(fake_db_session: Any) -> None:
    stored = _profile_obj("user-1", {"farmName": "Green Acres", "location": "Eldoret"})
    result = MagicMock()
    result.scalar_one_or_none.return_value = stored
    fake_db_session.execute.return_value = result

    service = ProfileService(fake_db_session)
    profile = await service.update_profile("user-1", {"location": "Eldoret", "userId": "someone-else"})

    assert profile is stored
    fake_db_session.execute.assert_awaited_once()
    stmt = fake_db_session.execute.await_args.args[0]
    sql = str(stmt.compile(dialect=postgresql.dialect()))
    assert sql.startswith("UPDATE farm_profiles SET")
    assert "farm_profiles.document ||" in sql
    assert "RETURNING" in sql


@pytest.mark.asyncio
async def test_service_update_returns_none_when_no_profile(fake_db_session: Any) -> None:
    result = MagicMock()
    result.scalar_one_or_none.return_value = None
    fake_db_session.execute.return_value = result

    assert await ProfileService(fake_db_session).update_profile("missing-user", {"a": 1}) is None


def test_writable_fields_drops_record_owned_keys() -> None:
    fields = {
        "_id": "x",
        "id": "y",
        "userId": "intruder",
        "user_id": "intruder",
        "createdAt": "2020-01-01",
        "farmName": "Green Acres",
    }
    assert ProfileService.writable_fields(fields) == {"farmName": "Green Acres"}


def test_serialize_flattens_document() -> None:
    profile = _profile_obj("user-1", {"farmName": "Green Acres", "userId": "stale"})
    data = ProfileService.serialize(profile)  # type: ignore[arg-type]
    assert data["farmName"] == "Green Acres"
    assert data["userId"] == "user-1"
    assert data["createdAt"] == "2026-10-19T09:00:00+00:00"
