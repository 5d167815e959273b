"""Shared test fixtures."""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest

from trackcal.config import Settings
from trackcal.containers import AppContainer
from trackcal.domain.entries import FoodEntry
from trackcal.services.entries import (
    EntryRepository,
    EntryRepositoryError,
    EntryStore,
)
from trackcal.services.goals import GoalSettingsRepository, GoalSettingsService
from trackcal.services.ledger import LedgerService
from trackcal.services.resolver import MealClient, MealResolver

CHICKEN_RESPONSE = (
    "```json\n"
    '{"food_name":"Grilled Chicken Breast","calories":284,"protein":53}\n'
    "```"
)

UTC_ZONE = ZoneInfo("UTC")


def ms(moment: datetime) -> int:
    """Return epoch milliseconds for an aware datetime."""
    return int(moment.timestamp() * 1000)


def make_entry(
    timestamp: int,
    calories: int = 100,
    protein: int = 10,
    name: str = "Snack",
    entry_id: int | None = None,
) -> FoodEntry:
    return FoodEntry(
        id=entry_id,
        name=name,
        calories=calories,
        protein=protein,
        timestamp=timestamp,
    )


@dataclass
class InMemoryEntryRepository(EntryRepository):
    """In-memory entry repository for tests."""

    rows: dict[int, tuple[int, FoodEntry]] = field(default_factory=dict)
    next_id: int = 1
    next_seq: int = 1

    def upsert_entry(self, entry: FoodEntry) -> FoodEntry:
        if entry.needs_id:
            entry = entry.with_id(self.next_id)
        assert entry.id is not None
        self.next_id = max(self.next_id, entry.id + 1)
        existing = self.rows.get(entry.id)
        seq = existing[0] if existing else self.next_seq
        if existing is None:
            self.next_seq += 1
        self.rows[entry.id] = (seq, entry)
        return entry

    def delete_entry(self, entry_id: int) -> None:
        self.rows.pop(entry_id, None)

    def list_entries(self) -> list[FoodEntry]:
        ordered = sorted(self.rows.values(), key=lambda row: row[0])
        entries = [entry for _seq, entry in ordered]
        return sorted(entries, key=lambda entry: entry.timestamp, reverse=True)


@dataclass
class FailingEntryRepository(InMemoryEntryRepository):
    """Repository whose writes or reads fail after being switched on."""

    fail_writes: bool = False
    fail_reads: bool = False

    def upsert_entry(self, entry: FoodEntry) -> FoodEntry:
        if self.fail_writes:
            raise EntryRepositoryError("disk full")
        return super().upsert_entry(entry)

    def delete_entry(self, entry_id: int) -> None:
        if self.fail_writes:
            raise EntryRepositoryError("disk full")
        super().delete_entry(entry_id)

    def list_entries(self) -> list[FoodEntry]:
        if self.fail_reads:
            raise OSError("read failed")
        return super().list_entries()


@dataclass
class InMemoryGoalSettingsRepository(GoalSettingsRepository):
    """In-memory settings repository for tests."""

    values: dict[str, str] = field(default_factory=dict)

    def get_value(self, key: str) -> str | None:
        return self.values.get(key)

    def set_values(self, values: dict[str, str]) -> None:
        self.values.update(values)


@dataclass
class FakeMealClient(MealClient):
    """Fake meal client returning a fixed answer or raising an error."""

    response: str = CHICKEN_RESPONSE
    error: Exception | None = None
    calls: list[tuple[str, str]] = field(default_factory=list)

    async def complete(self, *, credential: str, prompt: str) -> str:
        self.calls.append((credential, prompt))
        if self.error is not None:
            raise self.error
        return self.response


FIXED_NOW = ms(datetime(2024, 5, 15, 12, 0, tzinfo=UTC_ZONE))


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        storage_backend="sqlite",
        sqlite_path=str(tmp_path / "trackcal.db"),
        timezone="UTC",
    )


@pytest.fixture
def entry_repository() -> InMemoryEntryRepository:
    return InMemoryEntryRepository()


@pytest.fixture
def meal_client() -> FakeMealClient:
    return FakeMealClient()


@pytest.fixture
def goal_settings_service() -> GoalSettingsService:
    return GoalSettingsService(InMemoryGoalSettingsRepository())


@pytest.fixture
def container(
    settings: Settings,
    entry_repository: InMemoryEntryRepository,
    meal_client: FakeMealClient,
    goal_settings_service: GoalSettingsService,
) -> AppContainer:
    entry_store = EntryStore(entry_repository)
    meal_resolver = MealResolver(client=meal_client, clock=lambda: FIXED_NOW)
    ledger_service = LedgerService(
        store=entry_store,
        resolver=meal_resolver,
        goals=goal_settings_service,
        timezone=UTC_ZONE,
        clock=lambda: FIXED_NOW,
    )
    return AppContainer(
        settings=settings,
        entry_store=entry_store,
        meal_resolver=meal_resolver,
        goal_settings_service=goal_settings_service,
        ledger_service=ledger_service,
    )
