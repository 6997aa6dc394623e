"""Pydantic schemas for the sustainability prediction endpoint."""

from __future__ import annotations

from pydantic import BaseModel, Field


class SustainabilityPrediction(BaseModel):
	score: float
	rating: str
	recommendations: list[str] = Field(default_factory=list)


class ErrorResponse(BaseModel):
	error: str
	details: str | None = None
