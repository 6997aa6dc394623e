"""JWT token creation and validation."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt

from app.config import get_settings


@dataclass(slots=True)
class AuthError(Exception):
	"""Structured authentication error for consistent mapping at the edge."""

	code: str
	detail: str
	status_code: int = 401


def _settings() -> Any:
	return get_settings()


def create_access_token(subject: str, expires_minutes: int | None = None) -> str:
	settings = _settings()
	ttl = expires_minutes or settings.jwt_access_token_expire_minutes
	now = datetime.now(UTC)
	claims: dict[str, Any] = {
		"sub": subject,
		"typ": "access",
		"iat": int(now.timestamp()),
		"exp": int((now + timedelta(minutes=ttl)).timestamp()),
	}
	return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict[str, Any]:
	"""Verify signature and expiry, returning the raw claims."""
	settings = _settings()
	try:
		payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
	except ExpiredSignatureError as exc:
		raise AuthError(code="token_expired", detail="Invalid token") from exc
	except JWTError as exc:
		raise AuthError(code="token_invalid", detail="Invalid token") from exc

	if not isinstance(payload, dict):
		raise AuthError(code="token_invalid", detail="Invalid token")
	return payload


def token_subject(payload: dict[str, Any]) -> str:
	"""Return the user identifier carried by a decoded token.

	Tokens minted here carry ``sub``; tokens from the legacy login flow carry
	``id``. Either is accepted.
	"""
	for claim in ("sub", "id"):
		value = payload.get(claim)
		if isinstance(value, (str, int)) and not isinstance(value, bool) and str(value):
			return str(value)
	raise AuthError(code="token_subject_missing", detail="Invalid token")
