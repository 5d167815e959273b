"""Domain models for logged food entries."""

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class FoodEntry:
    """One logged food item with its macros."""

    id: int | None
    name: str
    calories: int
    protein: int
    timestamp: int

    @property
    def needs_id(self) -> bool:
        """Return True when the store must assign a new id."""
        return not self.id

    def with_id(self, entry_id: int) -> "FoodEntry":
        """Return a copy carrying the given id."""
        return replace(self, id=entry_id)


Snapshot = tuple[FoodEntry, ...]
