"""Shared pytest fixtures — async test client, DB session stub, scorer stubs."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from app.auth.jwt import create_access_token
from app.database import get_db
from app.main import app
from app.services.scoring import ScoreOutcome, get_scorer


class FakeAsyncSession:
	def __init__(self) -> None:
		self.commit = AsyncMock()
		self.rollback = AsyncMock()
		self.close = AsyncMock()
		self.execute = AsyncMock()


class FakeRedis:
	def __init__(self) -> None:
		self._counter: dict[str, int] = {}
		self.incr = AsyncMock(side_effect=self._incr)
		self.expire = AsyncMock(return_value=True)
		self.ping = AsyncMock(return_value=True)

	async def _incr(self, key: str) -> int:
		value = self._counter.get(key, 0) + 1
		self._counter[key] = value
		return value


class FakeScorer:
	"""Records the arguments it was called with and replays a canned outcome."""

	def __init__(self, stdout: str = "92.5", stderr: str = "", returncode: int = 0) -> None:
		self.outcome = ScoreOutcome(returncode=returncode, stdout=stdout, stderr=stderr)
		self.calls: list[list[str]] = []

	async def score(self, args: list[str]) -> ScoreOutcome:
		self.calls.append(list(args))
		return self.outcome


@pytest.fixture
def fake_db_session() -> FakeAsyncSession:
	"""A lightweight async-session stub for dependency overrides in API tests."""
	return FakeAsyncSession()


@pytest.fixture
def fake_redis() -> FakeRedis:
	return FakeRedis()


@pytest.fixture
def fake_scorer() -> FakeScorer:
	return FakeScorer()


@pytest.fixture
async def client(
	fake_db_session: FakeAsyncSession,
	fake_scorer: FakeScorer,
) -> AsyncGenerator[AsyncClient, None]:
	"""HTTPX async client with lifespan disabled, DB and scorer dependencies mocked."""

	async def override_get_db() -> AsyncGenerator[Any, None]:
		yield fake_db_session

	app.dependency_overrides[get_db] = override_get_db
	app.dependency_overrides[get_scorer] = lambda: fake_scorer
	app.state.redis = None
	original_lifespan = app.router.lifespan_context

	@asynccontextmanager
	async def noop_lifespan(_: Any) -> AsyncGenerator[None, None]:
		yield

	app.router.lifespan_context = noop_lifespan

	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://test") as test_client:
		yield test_client

	app.router.lifespan_context = original_lifespan
	app.dependency_overrides.clear()
	app.state.redis = None


@pytest.fixture
def auth_user_id() -> str:
	return "64f1c2a9e4b0a1b2c3d4e5f6"


@pytest.fixture
def access_token(auth_user_id: str) -> str:
	return create_access_token(auth_user_id, expires_minutes=30)


@pytest.fixture
def auth_headers(access_token: str) -> dict[str, str]:
	return {"Authorization": f"Bearer {access_token}"}


@pytest.fixture
def valid_inputs() -> dict[str, Any]:
	return {
		"soil_ph": 6.5,
		"soil_moisture": 40,
		"temperature_c": 25,
		"rainfall_mm": 100,
		"crop_type": "1",
		"fertilizer_usage_kg": 50,
		"pesticide_usage_kg": 20,
		"crop_yield_ton": 60,
	}
