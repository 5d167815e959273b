"""Supabase repositories for food entries and goal settings."""

from dataclasses import dataclass

from supabase import Client

from trackcal.domain.entries import FoodEntry
from trackcal.services.entries import EntryRepository, EntryRepositoryError
from trackcal.services.goals import GoalSettingsRepository


@dataclass
class SupabaseEntryRepository(EntryRepository):
    """Supabase implementation for food entries."""

    client: Client

    def upsert_entry(self, entry: FoodEntry) -> FoodEntry:
        """Insert or replace an entry and return the stored row."""
        payload: dict[str, object] = {
            "name": entry.name,
            "calories": entry.calories,
            "protein": entry.protein,
            "timestamp": entry.timestamp,
        }
        table = self.client.table("food_entries")
        if entry.needs_id:
            response = table.insert(payload).execute()
        else:
            payload["id"] = entry.id
            response = table.upsert(payload, on_conflict="id").execute()
        if not response.data:
            raise EntryRepositoryError("Failed to store food entry")
        return _parse_entry(response.data[0])

    def delete_entry(self, entry_id: int) -> None:
        """Delete an entry by id."""
        self.client.table("food_entries").delete().eq("id", entry_id).execute()

    def list_entries(self) -> list[FoodEntry]:
        """Return all entries, newest first, ties by id."""
        response = (
            self.client.table("food_entries")
            .select("id, name, calories, protein, timestamp")
            .order("timestamp", desc=True)
            .order("id", desc=False)
            .execute()
        )
        return [_parse_entry(row) for row in response.data or []]


@dataclass
class SupabaseGoalSettingsRepository(GoalSettingsRepository):
    """Supabase key/value table for goal settings."""

    client: Client

    def get_value(self, key: str) -> str | None:
        """Return the stored value for a key."""
        response = (
            self.client.table("goal_settings")
            .select("value")
            .eq("key", key)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return response.data[0].get("value")

    def set_values(self, values: dict[str, str]) -> None:
        """Upsert several settings."""
        rows = [{"key": key, "value": value} for key, value in values.items()]
        self.client.table("goal_settings").upsert(rows, on_conflict="key").execute()


def _parse_entry(row: dict[str, object]) -> FoodEntry:
    return FoodEntry(
        id=int(row["id"]),
        name=str(row.get("name", "")),
        calories=int(row.get("calories", 0)),
        protein=int(row.get("protein", 0)),
        timestamp=int(row.get("timestamp", 0)),
    )
