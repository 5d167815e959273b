"""OpenAI-compatible chat completions client for meal extraction."""

from collections.abc import Callable
from dataclasses import dataclass
from http import HTTPStatus

import openai
from openai import AsyncOpenAI

from trackcal.domain.results import FailureCause
from trackcal.services.resolver import (
    MealClient,
    MealClientError,
    MealClientPermanentError,
    MealClientTransientError,
)

GEMINI_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"


@dataclass
class OpenAIMealClient(MealClient):
    """Meal client backed by the OpenAI SDK.

    The credential is supplied per call, so a short-lived SDK client is built
    for each request. SDK retries are disabled; retry policy belongs to the
    caller.
    """

    model: str
    client_factory: Callable[[str], AsyncOpenAI]

    @classmethod
    def create(
        cls,
        model: str,
        base_url: str | None = GEMINI_OPENAI_BASE_URL,
        timeout_seconds: float = 20.0,
    ) -> "OpenAIMealClient":
        """Create a meal client for an OpenAI-compatible endpoint."""

        def factory(credential: str) -> AsyncOpenAI:
            return AsyncOpenAI(
                api_key=credential,
                base_url=base_url,
                timeout=timeout_seconds,
                max_retries=0,
            )

        return cls(model=model, client_factory=factory)

    async def complete(self, *, credential: str, prompt: str) -> str:
        """Send the prompt and return the model's text."""
        client = self.client_factory(credential)
        try:
            response = await client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=0,
            )
        except openai.APIError as exc:
            raise _translate_error(exc) from exc
        finally:
            await client.close()

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise MealClientPermanentError(
                "model returned an empty response", FailureCause.EMPTY_RESPONSE
            )
        return content


def _translate_error(exc: openai.APIError) -> MealClientError:
    """Map SDK errors onto transient and permanent meal client errors."""
    if isinstance(exc, openai.APITimeoutError):
        return MealClientTransientError(str(exc), FailureCause.TIMEOUT)
    if isinstance(exc, openai.APIConnectionError):
        return MealClientTransientError(str(exc), FailureCause.NETWORK)
    if isinstance(exc, openai.RateLimitError):
        return MealClientTransientError(str(exc), FailureCause.RATE_LIMITED)
    if isinstance(exc, openai.AuthenticationError | openai.PermissionDeniedError):
        return MealClientPermanentError(str(exc), FailureCause.AUTHENTICATION)
    if isinstance(exc, openai.APIStatusError):
        if exc.status_code >= HTTPStatus.INTERNAL_SERVER_ERROR:
            return MealClientTransientError(str(exc), FailureCause.SERVER_ERROR)
        # Gemini answers an invalid key with 400 rather than 401.
        if "api key" in str(exc).lower():
            return MealClientPermanentError(str(exc), FailureCause.AUTHENTICATION)
        return MealClientPermanentError(str(exc), FailureCause.BAD_REQUEST)
    return MealClientPermanentError(str(exc), FailureCause.MALFORMED_OUTPUT)
