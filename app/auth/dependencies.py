"""Authentication dependencies."""

from __future__ import annotations

import logging

from fastapi import Request

from app.auth.jwt import AuthError, decode_token, token_subject

_logger = logging.getLogger("agrosustain.auth")


def _bearer_token(auth_header: str) -> str:
	parts = auth_header.split()
	if len(parts) != 2 or parts[0].lower() != "bearer":
		raise AuthError(code="token_malformed", detail="Invalid token")
	return parts[1]


async def get_current_user_id(request: Request) -> str:
	auth_header = request.headers.get("authorization")
	if not auth_header:
		raise AuthError(code="token_missing", detail="No authorization token provided")

	try:
		token = _bearer_token(auth_header)
		return token_subject(decode_token(token))
	except AuthError as exc:
		_logger.info("auth_rejected", extra={"code": exc.code, "path": request.url.path})
		raise
