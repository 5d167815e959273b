"""Tests for meal resolution."""

import asyncio

import pytest

from tests.conftest import CHICKEN_RESPONSE, FakeMealClient
from trackcal.domain.entries import FoodEntry
from trackcal.domain.results import (
    Err,
    FailureCause,
    Ok,
    ResolutionErrorKind,
)
from trackcal.services.resolver import (
    MealClientPermanentError,
    MealClientTransientError,
    MealResolver,
    build_prompt,
    strip_code_fence,
)


def _resolver(client: FakeMealClient, timeout_seconds: float = 5.0) -> MealResolver:
    return MealResolver(
        client=client, timeout_seconds=timeout_seconds, clock=lambda: 1_700_000_000_000
    )


def test_resolve_parses_fenced_json() -> None:
    client = FakeMealClient(response=CHICKEN_RESPONSE)

    result = asyncio.run(_resolver(client).resolve("grilled chicken breast", "key"))

    assert result == Ok(
        FoodEntry(
            id=None,
            name="Grilled Chicken Breast",
            calories=284,
            protein=53,
            timestamp=1_700_000_000_000,
        )
    )
    credential, prompt = client.calls[0]
    assert credential == "key"
    assert "grilled chicken breast" in prompt


@pytest.mark.parametrize("description", ["", "   ", "\n\t"])
def test_blank_input_makes_no_call(description: str) -> None:
    client = FakeMealClient()

    result = asyncio.run(_resolver(client).resolve(description, "key"))

    assert isinstance(result, Err)
    assert result.error.kind is ResolutionErrorKind.BLANK_INPUT
    assert client.calls == []


def test_missing_credential_makes_no_call() -> None:
    client = FakeMealClient()

    result = asyncio.run(_resolver(client).resolve("toast", ""))

    assert isinstance(result, Err)
    assert result.error.kind is ResolutionErrorKind.FAILED
    assert result.error.cause is FailureCause.MISSING_CREDENTIAL
    assert client.calls == []


def test_authentication_failure_is_permanent() -> None:
    client = FakeMealClient(
        error=MealClientPermanentError("invalid key", FailureCause.AUTHENTICATION)
    )

    result = asyncio.run(_resolver(client).resolve("toast", "bad-key"))

    assert isinstance(result, Err)
    assert result.error.kind is ResolutionErrorKind.FAILED
    assert result.error.cause is FailureCause.AUTHENTICATION
    assert not result.error.retryable


def test_network_failure_is_retryable() -> None:
    client = FakeMealClient(error=MealClientTransientError("connection reset"))

    result = asyncio.run(_resolver(client).resolve("toast", "key"))

    assert isinstance(result, Err)
    assert result.error.cause is FailureCause.NETWORK
    assert result.error.retryable


def test_client_timeout_surfaces_as_timeout_kind() -> None:
    client = FakeMealClient(
        error=MealClientTransientError("read timeout", FailureCause.TIMEOUT)
    )

    result = asyncio.run(_resolver(client).resolve("toast", "key"))

    assert isinstance(result, Err)
    assert result.error.kind is ResolutionErrorKind.TIMEOUT


def test_slow_client_is_cut_off_by_timeout() -> None:
    class SlowClient(FakeMealClient):
        async def complete(self, *, credential: str, prompt: str) -> str:
            await asyncio.sleep(10)
            return CHICKEN_RESPONSE

    resolver = _resolver(SlowClient(), timeout_seconds=0.01)

    result = asyncio.run(resolver.resolve("x", "k"))

    assert isinstance(result, Err)
    assert result.error.kind is ResolutionErrorKind.TIMEOUT
    assert result.error.cause is FailureCause.TIMEOUT
    assert result.error.retryable


def test_unexpected_client_exception_is_contained() -> None:
    client = FakeMealClient(error=RuntimeError("boom"))

    result = asyncio.run(_resolver(client).resolve("toast", "key"))

    assert isinstance(result, Err)
    assert result.error.kind is ResolutionErrorKind.FAILED


@pytest.mark.parametrize(
    ("response", "cause"),
    [
        ("", FailureCause.EMPTY_RESPONSE),
        ("I think that is about 300 calories.", FailureCause.MALFORMED_OUTPUT),
        ("[" * 100_000 + "]" * 100_000, FailureCause.MALFORMED_OUTPUT),
        ('{"food_name": "Toast", "calories": 80}', FailureCause.INVALID_FIELDS),
        (
            '{"food_name": "Toast", "calories": -1, "protein": 3}',
            FailureCause.INVALID_FIELDS,
        ),
        (
            '{"food_name": "Toast", "calories": 80.5, "protein": 3}',
            FailureCause.INVALID_FIELDS,
        ),
        (
            '{"food_name": "Toast", "calories": "80", "protein": 3}',
            FailureCause.INVALID_FIELDS,
        ),
        (
            '{"food_name": "  ", "calories": 80, "protein": 3}',
            FailureCause.INVALID_FIELDS,
        ),
        (
            '{"food_name": "Toast", "calories": 80, "protein": 3, "fat": 1}',
            FailureCause.INVALID_FIELDS,
        ),
        ("[1, 2, 3]", FailureCause.INVALID_FIELDS),
    ],
)
def test_invalid_model_output_fails(response: str, cause: FailureCause) -> None:
    client = FakeMealClient(response=response)

    result = asyncio.run(_resolver(client).resolve("toast", "key"))

    assert isinstance(result, Err)
    assert result.error.kind is ResolutionErrorKind.FAILED
    assert result.error.cause is cause
    assert not result.error.retryable


def test_unfenced_json_is_accepted() -> None:
    client = FakeMealClient(
        response='  {"food_name": "Apple", "calories": 95, "protein": 0}  '
    )

    result = asyncio.run(_resolver(client).resolve("an apple", "key"))

    assert isinstance(result, Ok)
    assert result.value.name == "Apple"
    assert result.value.protein == 0


def test_strip_code_fence_variants() -> None:
    assert strip_code_fence('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fence('```\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fence('```json {"a": 1}```') == '{"a": 1}'
    assert strip_code_fence('{"a": 1}') == '{"a": 1}'


def test_build_prompt_is_deterministic_and_json_only() -> None:
    prompt = build_prompt("  two eggs ")

    assert prompt == build_prompt("two eggs")
    assert "'two eggs'" in prompt
    assert "ONLY a JSON object" in prompt
    assert '"food_name"' in prompt
