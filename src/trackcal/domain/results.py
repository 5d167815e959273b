"""Explicit success/failure outcomes returned across service boundaries."""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome carrying a value."""

    value: T

    def is_ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err(Generic[E]):
    """Failed outcome carrying an error value."""

    error: E

    def is_ok(self) -> bool:
        return False


class ResolutionErrorKind(str, Enum):
    """What the caller sees when a meal description cannot be resolved."""

    BLANK_INPUT = "blank_input"
    FAILED = "failed"
    TIMEOUT = "timeout"


class FailureCause(str, Enum):
    """Underlying reason a resolution failed, kept for telemetry."""

    BLANK_INPUT = "blank_input"
    MISSING_CREDENTIAL = "missing_credential"
    NETWORK = "network"
    TIMEOUT = "timeout"
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    AUTHENTICATION = "authentication"
    BAD_REQUEST = "bad_request"
    EMPTY_RESPONSE = "empty_response"
    MALFORMED_OUTPUT = "malformed_output"
    INVALID_FIELDS = "invalid_fields"


_RETRYABLE_CAUSES = frozenset(
    {
        FailureCause.NETWORK,
        FailureCause.TIMEOUT,
        FailureCause.RATE_LIMITED,
        FailureCause.SERVER_ERROR,
    }
)


@dataclass(frozen=True)
class ResolutionError:
    """Failure to turn a meal description into an entry."""

    kind: ResolutionErrorKind
    cause: FailureCause
    detail: str = ""

    @property
    def retryable(self) -> bool:
        """Return True when retrying the same request may succeed."""
        return self.cause in _RETRYABLE_CAUSES


@dataclass(frozen=True)
class PersistenceError:
    """Failure to durably complete a store mutation."""

    operation: str
    detail: str = ""
