"""Sustainability prediction: input checks, scorer call and score interpretation."""

from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from app.schemas.sustainability import SustainabilityPrediction
from app.services.scoring import Scorer, ScoreOutcome, ScoringError

_logger = logging.getLogger("agrosustain.sustainability")

# Order matters: it is the positional argument order of the scoring program
# and the order in which missing fields are reported.
REQUIRED_FIELDS: dict[str, str] = {
	"soil_ph": "Soil pH",
	"soil_moisture": "Soil Moisture",
	"temperature_c": "Temperature",
	"rainfall_mm": "Rainfall",
	"crop_type": "Crop Type",
	"fertilizer_usage_kg": "Fertilizer Usage",
	"pesticide_usage_kg": "Pesticide Usage",
	"crop_yield_ton": "Crop Yield",
}

RATING_BANDS: tuple[tuple[float, str], ...] = (
	(90.0, "Excellent"),
	(80.0, "Very Good"),
	(70.0, "Good"),
	(60.0, "Fair"),
)
LOWEST_RATING = "Needs Improvement"

PH_ADVICE = "Consider soil pH adjustment for optimal crop growth"
MOISTURE_ADVICE = "Implement better irrigation practices to maintain soil moisture"
FERTILIZER_ADVICE = "Consider reducing chemical fertilizer usage and adopt organic alternatives"
PESTICIDE_ADVICE = "Look into integrated pest management and organic pest control"
YIELD_ADVICE = "Consider crop rotation and soil enrichment to improve yield"

_LEADING_FLOAT = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)
# Numeric string grammar of the web client: signed decimals and Infinity,
# unsigned 0x/0o/0b integers. No digit separators, no "inf" or "nan".
_DECIMAL_STRING = re.compile(r"[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|Infinity)", re.ASCII)
_RADIX_STRING = re.compile(r"0([xX][0-9a-fA-F]+|[oO][0-7]+|[bB][01]+)", re.ASCII)
_RADIX_BASES = {"x": 16, "o": 8, "b": 2}


@dataclass(slots=True)
class PredictionError(Exception):
	"""A terminal prediction failure, mapped to ``{"error": message}`` at the edge."""

	message: str
	status_code: int = 500


def find_missing_fields(body: Any) -> list[str]:
	"""Labels of required fields that are absent, ``None`` or ``""``, in field order."""
	if not isinstance(body, dict):
		return list(REQUIRED_FIELDS.values())
	return [
		label
		for field, label in REQUIRED_FIELDS.items()
		if body.get(field) is None or body.get(field) == ""
	]


def _int_to_float(value: int) -> float:
	try:
		return float(value)
	except OverflowError:
		return math.inf if value > 0 else -math.inf


def parse_numeric_string(text: str) -> float | None:
	"""Parse ``text`` as a number; blank strings are zero."""
	text = text.strip()
	if not text:
		return 0.0
	radix = _RADIX_STRING.fullmatch(text)
	if radix is not None:
		digits = radix.group(1)
		return _int_to_float(int(digits[1:], _RADIX_BASES[digits[0].lower()]))
	if _DECIMAL_STRING.fullmatch(text) is None:
		return None
	return float(text.replace("Infinity", "inf"))


def coerce_number(value: Any) -> float | None:
	if isinstance(value, bool):
		return float(value)
	if isinstance(value, int):
		number = _int_to_float(value)
	elif isinstance(value, float):
		number = value
	elif isinstance(value, str):
		number = parse_numeric_string(value)
		if number is None:
			return None
	else:
		return None
	if math.isnan(number):
		return None
	return number


def coerce_values(body: dict[str, Any]) -> dict[str, float]:
	values: dict[str, float] = {}
	for field in REQUIRED_FIELDS:
		number = coerce_number(body[field])
		if number is None:
			raise PredictionError("All fields must be valid numbers", status_code=400)
		values[field] = number
	return values


def format_argument(value: float) -> str:
	"""Render a number the way the scoring program expects it on its command line.

	Shortest round-trip digits, positional between 1e-6 and 1e21 and
	``<d>[.<ddd>]e<sign><exp>`` outside that range (``40``, ``0.000001``,
	``1e-7``, ``1e+21``).
	"""
	if math.isinf(value):
		return "Infinity" if value > 0 else "-Infinity"
	if value == 0:
		return "0"
	sign, digit_tuple, exponent = Decimal(repr(value)).normalize().as_tuple()
	digits = "".join(str(digit) for digit in digit_tuple)
	size = len(digits)
	point = exponent + size
	if size <= point <= 21:
		body = digits + "0" * (point - size)
	elif 0 < point <= 21:
		body = f"{digits[:point]}.{digits[point:]}"
	elif -6 < point <= 0:
		body = "0." + "0" * -point + digits
	else:
		mantissa = digits[0] + (f".{digits[1:]}" if size > 1 else "")
		body = f"{mantissa}e{'+' if point > 0 else '-'}{abs(point - 1)}"
	return ("-" if sign else "") + body


def parse_score(stdout: str) -> float | None:
	"""Leading numeric prefix of the trimmed output, or ``None`` when there is none."""
	match = _LEADING_FLOAT.match(stdout.strip())
	if match is None:
		return None
	score = float(match.group(0))
	return score if math.isfinite(score) else None


def extract_error_message(stderr: str) -> str:
	try:
		parsed = json.loads(stderr)
	except ValueError:
		return stderr
	if isinstance(parsed, dict) and parsed.get("error"):
		return str(parsed["error"])
	return stderr


def get_rating(score: float) -> str:
	for threshold, label in RATING_BANDS:
		if score >= threshold:
			return label
	return LOWEST_RATING


def get_recommendations(values: dict[str, float]) -> list[str]:
	recommendations: list[str] = []
	if values["soil_ph"] < 6.0 or values["soil_ph"] > 7.5:
		recommendations.append(PH_ADVICE)
	if values["soil_moisture"] < 30:
		recommendations.append(MOISTURE_ADVICE)
	if values["fertilizer_usage_kg"] > 70:
		recommendations.append(FERTILIZER_ADVICE)
	if values["pesticide_usage_kg"] > 50:
		recommendations.append(PESTICIDE_ADVICE)
	if values["crop_yield_ton"] < 50:
		recommendations.append(YIELD_ADVICE)
	return recommendations


class SustainabilityService:
	"""Validates a prediction request, runs the scorer and shapes its result."""

	def __init__(self, scorer: Scorer):
		self.scorer = scorer

	async def predict(self, body: Any) -> SustainabilityPrediction:
		missing = find_missing_fields(body)
		if missing:
			raise PredictionError(
				f"Missing or invalid values for: {', '.join(missing)}",
				status_code=400,
			)

		values = coerce_values(body)
		args = [format_argument(values[field]) for field in REQUIRED_FIELDS]

		try:
			outcome = await self.scorer.score(args)
		except ScoringError as exc:
			raise PredictionError(str(exc)) from exc

		score = self.interpret(outcome)
		return SustainabilityPrediction(
			score=score,
			rating=get_rating(score),
			recommendations=get_recommendations(values),
		)

	@staticmethod
	def interpret(outcome: ScoreOutcome) -> float:
		error = extract_error_message(outcome.stderr) if outcome.stderr else ""
		if outcome.returncode != 0 or error:
			_logger.warning(
				"scorer_reported_failure",
				extra={"returncode": outcome.returncode, "error": error},
			)
			raise PredictionError(error or "Prediction failed")

		score = parse_score(outcome.stdout)
		if score is None:
			_logger.warning("scorer_output_invalid", extra={"stdout": outcome.stdout[:200]})
			raise PredictionError("Invalid prediction result")
		return score
