"""Redis-backed rate limiting middleware."""

from __future__ import annotations

from datetime import UTC, datetime

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.config import get_settings

LIMITED_ROUTES: frozenset[tuple[str, str]] = frozenset(
	{("POST", "/api/sustainability/predict")}
)


def client_identity(request: Request) -> str:
	"""Peer address of the connection.

	Forwarding headers are ignored here; behind a proxy, run uvicorn with
	``--proxy-headers`` and ``--forwarded-allow-ips`` so the peer address is
	rewritten only for trusted hops.
	"""
	if request.client is not None:
		return request.client.host
	return "anonymous"


class RateLimitMiddleware(BaseHTTPMiddleware):
	"""Per-client quota limiter for the scoring endpoint, backed by Redis counters."""

	async def dispatch(self, request: Request, call_next):  # type: ignore[override]
		if (request.method, request.url.path.rstrip("/")) not in LIMITED_ROUTES:
			return await call_next(request)

		redis_client = getattr(request.app.state, "redis", None)
		if redis_client is None:
			return await call_next(request)

		quota = get_settings().rate_limit_predict_per_minute
		identity = client_identity(request)
		minute_bucket = datetime.now(UTC).strftime("%Y%m%d%H%M")
		key = f"ratelimit:predict:{identity}:{minute_bucket}"
		current = await redis_client.incr(key)
		if current == 1:
			await redis_client.expire(key, 65)

		if current > quota:
			return JSONResponse(
				status_code=429,
				content={"error": "Rate limit exceeded"},
			)

		return await call_next(request)
