"""Bridge to the external sustainability scoring program.

The model itself lives outside this service. A scorer hands it the eight
positional feature arguments and reports back exactly what it produced: exit
code, standard output and standard error. Interpreting that output is the
sustainability service's job.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import httpx

from app.config import ScoringBackend, get_settings

_logger = logging.getLogger("agrosustain.scoring")


class ScoringError(RuntimeError):
	"""Raised when the scorer cannot be run to completion."""


class ScoringTimeout(ScoringError):
	"""Raised when the scorer does not finish within the configured timeout."""


@dataclass(frozen=True, slots=True)
class ScoreOutcome:
	returncode: int
	stdout: str
	stderr: str


class Scorer(Protocol):
	async def score(self, args: list[str]) -> ScoreOutcome: ...


def _scorer_timing(backend: str, start: float, ok: bool, error: str | None = None) -> None:
	extra = {
		"backend": backend,
		"duration_ms": round((time.perf_counter() - start) * 1000.0, 2),
		"ok": ok,
		"error": error,
	}
	if ok:
		_logger.info("scorer_call", extra=extra)
	else:
		_logger.error("scorer_call_failed", extra=extra)


def resolve_script_path(script_path: str) -> Path:
	path = Path(script_path)
	if path.is_absolute():
		return path
	repo_root = Path(__file__).resolve().parents[2]
	return (repo_root / path).resolve()


class SubprocessScorer:
	"""Run ``<interpreter> <script> <arg1> ... <argN>`` and capture both streams."""

	def __init__(self, interpreter: str, script_path: Path | str, timeout_seconds: float | None = None):
		self.interpreter = interpreter
		self.script_path = Path(script_path)
		self.timeout_seconds = timeout_seconds

	async def score(self, args: list[str]) -> ScoreOutcome:
		start = time.perf_counter()
		try:
			process = await asyncio.create_subprocess_exec(
				self.interpreter,
				str(self.script_path),
				*args,
				stdout=asyncio.subprocess.PIPE,
				stderr=asyncio.subprocess.PIPE,
			)
		except OSError as exc:
			_scorer_timing("subprocess", start, False, str(exc))
			raise ScoringError(f"Failed to start scoring program: {exc}") from exc

		try:
			stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout_seconds)
		except TimeoutError as exc:
			await self._kill(process)
			_scorer_timing("subprocess", start, False, "timeout")
			raise ScoringTimeout("Prediction timed out") from exc
		except asyncio.CancelledError:
			await self._kill(process)
			raise

		returncode = process.returncode if process.returncode is not None else -1
		_scorer_timing("subprocess", start, returncode == 0, None if returncode == 0 else f"exit code {returncode}")
		return ScoreOutcome(
			returncode=returncode,
			stdout=stdout.decode("utf-8", errors="replace"),
			stderr=stderr.decode("utf-8", errors="replace"),
		)

	@staticmethod
	async def _kill(process: asyncio.subprocess.Process) -> None:
		if process.returncode is None:
			process.kill()
		await process.wait()


class HttpScorer:
	"""Call a model-serving endpoint and map its reply onto a process-style outcome.

	Expected replies: ``{"score": <number>}`` on success, ``{"error": "..."}``
	(any status) on failure.
	"""

	def __init__(self, url: str, timeout_seconds: float | None = None, transport: httpx.AsyncBaseTransport | None = None):
		self.url = url
		self.timeout_seconds = timeout_seconds
		self.transport = transport

	async def score(self, args: list[str]) -> ScoreOutcome:
		start = time.perf_counter()
		try:
			async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self.transport) as client:
				response = await client.post(self.url, json={"features": args})
		except httpx.TimeoutException as exc:
			_scorer_timing("http", start, False, "timeout")
			raise ScoringTimeout("Prediction timed out") from exc
		except httpx.HTTPError as exc:
			_scorer_timing("http", start, False, str(exc))
			raise ScoringError(f"Scoring service unreachable: {exc}") from exc

		try:
			payload = response.json()
		except ValueError:
			payload = None

		if response.is_success and isinstance(payload, dict) and "score" in payload:
			_scorer_timing("http", start, True)
			return ScoreOutcome(returncode=0, stdout=str(payload["score"]), stderr="")

		if isinstance(payload, dict) and payload.get("error"):
			error = str(payload["error"])
		else:
			error = response.text or f"Scoring service returned HTTP {response.status_code}"
		_scorer_timing("http", start, False, error)
		return ScoreOutcome(returncode=1, stdout="", stderr=error)


def get_scorer() -> Scorer:
	settings = get_settings()
	if settings.scoring_backend == ScoringBackend.http:
		return HttpScorer(settings.scoring_url, settings.scoring_timeout_seconds)
	return SubprocessScorer(
		settings.scoring_interpreter,
		resolve_script_path(settings.scoring_script_path),
		settings.scoring_timeout_seconds,
	)
