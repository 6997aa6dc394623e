"""Sustainability score prediction routes."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, Response, status

from app.schemas.sustainability import ErrorResponse, SustainabilityPrediction
from app.services.scoring import Scorer, get_scorer
from app.services.sustainability_service import PredictionError, SustainabilityService

router = APIRouter(prefix="/sustainability", tags=["sustainability"])
_logger = logging.getLogger("agrosustain.sustainability")


@router.options("/predict", include_in_schema=False)
async def predict_preflight() -> Response:
	return Response(status_code=status.HTTP_200_OK)


@router.post(
	"/predict",
	response_model=SustainabilityPrediction,
	responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def predict_sustainability(
	request: Request,
	scorer: Scorer = Depends(get_scorer),
) -> SustainabilityPrediction:
	service = SustainabilityService(scorer)
	try:
		body = await request.json()
		return await service.predict(body)
	except PredictionError:
		raise
	except Exception as exc:
		_logger.exception("sustainability_predict_failed")
		raise PredictionError(str(exc) or "Failed to predict sustainability score") from exc
