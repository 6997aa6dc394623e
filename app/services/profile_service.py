"""Farm profile persistence."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func, literal, update
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.profile import FarmProfile

_logger = logging.getLogger("agrosustain.profile")

# Keys owned by the record itself; a request body can never overwrite them.
RESERVED_KEYS: frozenset[str] = frozenset(
	{"id", "_id", "user_id", "userId", "created_at", "createdAt", "updated_at", "updatedAt"}
)


class ProfileService:
	"""Service for merge-updating per-user farm profiles."""

	def __init__(self, db: AsyncSession):
		self.db = db

	async def update_profile(self, user_id: str, fields: dict[str, Any]) -> FarmProfile | None:
		"""Merge ``fields`` into the user's profile document in one statement.

		Top-level keys present in ``fields`` replace the stored values; all other
		stored keys are kept. Returns ``None`` when the user has no profile.
		"""
		changes = self.writable_fields(fields)
		stmt = (
			update(FarmProfile)
			.where(FarmProfile.user_id == user_id)
			.values(
				document=FarmProfile.document.op("||", return_type=JSONB)(literal(changes, type_=JSONB)),
				updated_at=func.now(),
			)
			.returning(FarmProfile)
		)
		row = await self.db.execute(stmt)
		profile = row.scalar_one_or_none()
		if profile is None:
			_logger.info("profile_update_no_match", extra={"user_id": user_id})
			return None

		_logger.info(
			"profile_updated",
			extra={"user_id": user_id, "fields": sorted(changes)},
		)
		return profile

	@staticmethod
	def writable_fields(fields: dict[str, Any]) -> dict[str, Any]:
		return {key: value for key, value in fields.items() if key not in RESERVED_KEYS}

	@staticmethod
	def serialize(profile: FarmProfile) -> dict[str, Any]:
		document = dict(profile.document or {})
		document.update(
			{
				"id": str(profile.id),
				"userId": profile.user_id,
				"createdAt": profile.created_at.isoformat() if profile.created_at else None,
				"updatedAt": profile.updated_at.isoformat() if profile.updated_at else None,
			}
		)
		return document
