"""Ledger facade composing the store, resolver and aggregation."""

import logging
import time
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass, field
from zoneinfo import ZoneInfo

from trackcal.domain.entries import FoodEntry, Snapshot
from trackcal.domain.results import (
    Err,
    Ok,
    PersistenceError,
    ResolutionError,
)
from trackcal.domain.stats import DailyProgress, DayBucket
from trackcal.services import aggregation
from trackcal.services.entries import EntryStore
from trackcal.services.goals import GoalSettingsService
from trackcal.services.resolver import MealResolver

_logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class LedgerService:
    """Entry point for logging meals and reading progress."""

    store: EntryStore
    resolver: MealResolver
    goals: GoalSettingsService
    timezone: ZoneInfo
    clock: Callable[[], int] = field(default=_now_ms)

    def entries(self) -> AsyncIterator[Snapshot]:
        """Return a live stream of ordered entry snapshots."""
        return self.store.observe_all()

    async def add_from_text(
        self, description: str, credential: str
    ) -> Ok[FoodEntry] | Err[ResolutionError] | Err[PersistenceError]:
        """Resolve a description and persist the entry on success."""
        resolved = await self.resolver.resolve(description, credential)
        if isinstance(resolved, Err):
            return resolved
        stored = await self.store.insert(resolved.value)
        if isinstance(stored, Ok):
            _logger.info(
                "Logged entry: id=%s calories=%s protein=%s",
                stored.value.id,
                stored.value.calories,
                stored.value.protein,
            )
        return stored

    async def add_from_text_with_saved_credential(
        self, description: str
    ) -> Ok[FoodEntry] | Err[ResolutionError] | Err[PersistenceError]:
        """Resolve a description using the stored credential."""
        return await self.add_from_text(description, self.goals.get_credential())

    async def remove(self, entry: FoodEntry) -> Ok[None] | Err[PersistenceError]:
        """Delete an entry."""
        if entry.id is None:
            return Ok(None)
        return await self.store.delete(entry.id)

    async def remove_by_id(self, entry_id: int) -> Ok[None] | Err[PersistenceError]:
        """Delete an entry by id."""
        return await self.store.delete(entry_id)

    def today(self, now_ms: int | None = None) -> list[FoodEntry]:
        """Return today's entries, newest first."""
        return aggregation.todays_entries(
            self.store.snapshot(), self._now(now_ms), self.timezone
        )

    def progress(self, now_ms: int | None = None) -> DailyProgress:
        """Return today's totals against the stored goals."""
        return aggregation.daily_progress(
            self.store.snapshot(),
            self._now(now_ms),
            self.timezone,
            self.goals.get_goals(),
        )

    def week(self, now_ms: int | None = None) -> list[DayBucket]:
        """Return the seven-day consistency buckets, oldest first."""
        return aggregation.weekly_buckets(
            self.store.snapshot(),
            self._now(now_ms),
            self.timezone,
            self.goals.get_goals(),
        )

    def _now(self, now_ms: int | None) -> int:
        return self.clock() if now_ms is None else now_ms
