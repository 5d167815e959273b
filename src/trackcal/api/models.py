"""Pydantic models for the HTTP API."""

from datetime import date

from pydantic import BaseModel, Field

from trackcal.domain.entries import FoodEntry
from trackcal.domain.stats import DailyProgress, DayBucket, DayStatus


class AddEntryRequest(BaseModel):
    """Free-text meal to resolve and log."""

    description: str
    credential: str | None = None


class EntryModel(BaseModel):
    """Logged food entry."""

    id: int
    name: str
    calories: int
    protein: int
    timestamp: int

    @classmethod
    def from_entry(cls, entry: FoodEntry) -> "EntryModel":
        return cls(
            id=entry.id or 0,
            name=entry.name,
            calories=entry.calories,
            protein=entry.protein,
            timestamp=entry.timestamp,
        )


class TodayModel(BaseModel):
    """Today's progress and logs."""

    calories: int
    protein: int
    calorie_goal: int
    protein_goal: int
    calories_remaining: int
    calorie_fraction: float
    entries: list[EntryModel]

    @classmethod
    def from_progress(
        cls, progress: DailyProgress, entries: list[FoodEntry]
    ) -> "TodayModel":
        return cls(
            calories=progress.totals.calories,
            protein=progress.totals.protein,
            calorie_goal=progress.goals.calories,
            protein_goal=progress.goals.protein,
            calories_remaining=progress.calories_remaining,
            calorie_fraction=progress.calorie_fraction,
            entries=[EntryModel.from_entry(entry) for entry in entries],
        )


class DayBucketModel(BaseModel):
    """One day of the weekly consistency strip."""

    day: date
    calories: int
    protein: int
    entry_count: int
    status: DayStatus

    @classmethod
    def from_bucket(cls, bucket: DayBucket) -> "DayBucketModel":
        return cls(
            day=bucket.day,
            calories=bucket.calories,
            protein=bucket.protein,
            entry_count=bucket.entry_count,
            status=bucket.status,
        )


class GoalSettingsModel(BaseModel):
    """Goals as returned to clients; the credential is never echoed."""

    calorie_goal: int
    protein_goal: int
    has_credential: bool


class UpdateGoalSettingsRequest(BaseModel):
    """New goals and credential."""

    calorie_goal: int = Field(gt=0)
    protein_goal: int = Field(gt=0)
    credential: str = ""
