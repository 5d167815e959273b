"""Domain models for derived nutrition statistics."""

from dataclasses import dataclass
from datetime import date
from enum import Enum


class DayStatus(str, Enum):
    """Goal consistency classification for a single day."""

    EMPTY = "empty"
    MET_BOTH = "met_both"
    MET_ONE = "met_one"
    MET_NONE = "met_none"


@dataclass(frozen=True)
class Goals:
    """Daily calorie and protein targets."""

    calories: int
    protein: int


@dataclass(frozen=True)
class DailyTotals:
    """Summed macros for one local day."""

    calories: int
    protein: int


@dataclass(frozen=True)
class DailyProgress:
    """Today's totals measured against the goals."""

    totals: DailyTotals
    goals: Goals
    calories_remaining: int
    calorie_fraction: float


@dataclass(frozen=True)
class DayBucket:
    """Aggregated entries for one local calendar day."""

    day: date
    start_ms: int
    end_ms: int
    calories: int
    protein: int
    entry_count: int
    status: DayStatus
