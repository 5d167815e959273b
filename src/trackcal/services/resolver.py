"""Meal resolution: free text to a validated entry via an LLM."""

import asyncio
import json
import logging
import re
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field, StrictInt, ValidationError

from trackcal.domain.entries import FoodEntry
from trackcal.domain.results import (
    Err,
    FailureCause,
    Ok,
    ResolutionError,
    ResolutionErrorKind,
)

_logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(
    r"^```[A-Za-z0-9_-]*\s*\n?(?P<body>.*?)\n?\s*```$", re.DOTALL
)


class MealClientError(Exception):
    """Raised by meal clients when the extraction call fails."""

    default_cause = FailureCause.NETWORK

    def __init__(self, message: str, cause: FailureCause | None = None) -> None:
        super().__init__(message)
        self.cause = cause or self.default_cause


class MealClientTransientError(MealClientError):
    """Failure that may succeed on retry (connection, timeout, 429, 5xx)."""


class MealClientPermanentError(MealClientError):
    """Failure that will not succeed on retry (bad key, bad request)."""

    default_cause = FailureCause.BAD_REQUEST


class MealClient(Protocol):
    """Interface for LLM structured meal extraction."""

    async def complete(self, *, credential: str, prompt: str) -> str:
        """Return the raw text the model produced for the prompt."""


class MealEstimate(BaseModel):
    """Strict shape of the model's JSON answer."""

    model_config = ConfigDict(extra="forbid")

    food_name: str = Field(min_length=1)
    calories: StrictInt = Field(ge=0)
    protein: StrictInt = Field(ge=0)


def build_prompt(description: str) -> str:
    """Return the extraction instruction for a meal description."""
    return (
        f"Analyze food: '{description.strip()}'. "
        "Estimate the total calories and grams of protein. "
        "Return ONLY a JSON object, with no surrounding prose or markdown: "
        '{"food_name": "string", "calories": int, "protein": int}'
    )


def strip_code_fence(text: str) -> str:
    """Remove a Markdown code fence wrapped around the model output."""
    cleaned = text.strip()
    match = _FENCE_RE.match(cleaned)
    if match:
        return match.group("body").strip()
    return cleaned


def parse_estimate(text: str) -> MealEstimate:
    """Parse and validate the model output.

    Raises ValueError subclasses, or RecursionError for very deeply nested JSON.
    """
    payload = json.loads(strip_code_fence(text))
    estimate = MealEstimate.model_validate(payload)
    if not estimate.food_name.strip():
        raise ValueError("food_name is blank")
    return estimate


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class MealResolver:
    """Turns meal descriptions into entries, never raising on failure."""

    client: MealClient
    timeout_seconds: float = 20.0
    clock: Callable[[], int] = field(default=_now_ms)

    async def resolve(
        self, description: str, credential: str
    ) -> Ok[FoodEntry] | Err[ResolutionError]:
        """Resolve a description into an unsaved entry."""
        if not description or not description.strip():
            return Err(
                ResolutionError(
                    kind=ResolutionErrorKind.BLANK_INPUT,
                    cause=FailureCause.BLANK_INPUT,
                )
            )
        if not credential or not credential.strip():
            return self._fail(FailureCause.MISSING_CREDENTIAL, "no credential set")

        prompt = build_prompt(description)
        try:
            async with asyncio.timeout(self.timeout_seconds):
                text = await self.client.complete(credential=credential, prompt=prompt)
        except TimeoutError:
            return self._fail(
                FailureCause.TIMEOUT,
                f"no answer within {self.timeout_seconds}s",
                kind=ResolutionErrorKind.TIMEOUT,
            )
        except MealClientError as exc:
            kind = (
                ResolutionErrorKind.TIMEOUT
                if exc.cause is FailureCause.TIMEOUT
                else ResolutionErrorKind.FAILED
            )
            return self._fail(exc.cause, str(exc), kind=kind)
        except Exception as exc:
            _logger.exception("Meal client raised an unexpected error")
            return self._fail(FailureCause.NETWORK, str(exc))

        if not text or not text.strip():
            return self._fail(FailureCause.EMPTY_RESPONSE, "model returned no text")
        try:
            estimate = parse_estimate(text)
        except (json.JSONDecodeError, RecursionError) as exc:
            return self._fail(FailureCause.MALFORMED_OUTPUT, str(exc))
        except (ValidationError, ValueError) as exc:
            return self._fail(FailureCause.INVALID_FIELDS, str(exc))

        return Ok(
            FoodEntry(
                id=None,
                name=estimate.food_name.strip(),
                calories=estimate.calories,
                protein=estimate.protein,
                timestamp=self.clock(),
            )
        )

    def _fail(
        self,
        cause: FailureCause,
        detail: str,
        kind: ResolutionErrorKind = ResolutionErrorKind.FAILED,
    ) -> Err[ResolutionError]:
        error = ResolutionError(kind=kind, cause=cause, detail=detail)
        _logger.warning(
            "Meal resolution failed: %s",
            detail,
            extra={"cause": cause.value, "retryable": error.retryable},
        )
        return Err(error)
