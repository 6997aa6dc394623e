"""Farm profile routes."""

from __future__ import annotations

import logging
import traceback
from typing import Any

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user_id
from app.config import get_settings
from app.database import get_db
from app.services.profile_service import ProfileService

router = APIRouter(prefix="/profile", tags=["profile"])
_logger = logging.getLogger("agrosustain.profile")


def _error_response(exc: Exception) -> JSONResponse:
	content: dict[str, Any] = {"error": str(exc) or "Failed to update profile"}
	if not get_settings().is_production:
		content["details"] = "".join(traceback.format_exception(exc))
	return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


@router.put("/update")
async def update_profile(
	request: Request,
	user_id: str = Depends(get_current_user_id),
	db: AsyncSession = Depends(get_db),
) -> Any:
	service = ProfileService(db)
	try:
		body = await request.json()
		if not isinstance(body, dict):
			return JSONResponse(
				status_code=status.HTTP_400_BAD_REQUEST,
				content={"error": "Request body must be a JSON object"},
			)
		profile = await service.update_profile(user_id, body)
	except Exception as exc:
		_logger.exception("profile_update_failed", extra={"user_id": user_id})
		await db.rollback()
		return _error_response(exc)

	return {
		"message": "Profile updated successfully",
		"farmProfile": service.serialize(profile) if profile is not None else None,
	}
