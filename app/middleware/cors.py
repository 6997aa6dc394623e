"""Fixed CORS header policy for public, browser-facing routes."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

PREDICT_CORS_HEADERS: dict[str, str] = {
	"Access-Control-Allow-Origin": "*",
	"Access-Control-Allow-Methods": "POST, OPTIONS",
	"Access-Control-Allow-Headers": "Content-Type, Authorization",
}


class FixedCORSMiddleware(BaseHTTPMiddleware):
	"""Stamp the same CORS header set on every response under the given prefixes.

	Error responses produced by exception handlers and by inner middleware
	pass through here too, so no branch can leave the headers off.
	"""

	def __init__(
		self,
		app: ASGIApp,
		path_prefixes: Iterable[str],
		headers: Mapping[str, str] = PREDICT_CORS_HEADERS,
	) -> None:
		super().__init__(app)
		self.path_prefixes = tuple(path_prefixes)
		self.headers = dict(headers)

	async def dispatch(self, request: Request, call_next):  # type: ignore[override]
		response = await call_next(request)
		if request.url.path.startswith(self.path_prefixes):
			for name, value in self.headers.items():
				response.headers[name] = value
		return response
