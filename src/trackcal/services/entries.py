"""Entry store with serialized mutations and live full-snapshot queries."""

import asyncio
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Protocol

from trackcal.domain.entries import FoodEntry, Snapshot
from trackcal.domain.results import Err, Ok, PersistenceError

_logger = logging.getLogger(__name__)


class EntryRepository(Protocol):
    """Persistence interface for food entries."""

    def upsert_entry(self, entry: FoodEntry) -> FoodEntry:
        """Insert or replace an entry by id and return the stored entry."""

    def delete_entry(self, entry_id: int) -> None:
        """Delete an entry by id; missing ids are ignored."""

    def list_entries(self) -> list[FoodEntry]:
        """Return all entries, newest first, ties in insertion order."""


class EntryRepositoryError(Exception):
    """Raised by repositories when storage cannot complete an operation."""


@dataclass
class EntryStore:
    """Owns all entries and notifies subscribers after every mutation."""

    repository: EntryRepository
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False)
    _subscribers: set[asyncio.Queue[Snapshot]] = field(
        default_factory=set, init=False
    )
    _snapshot: Snapshot | None = field(default=None, init=False)

    def snapshot(self) -> Snapshot:
        """Return the current ordered snapshot."""
        if self._snapshot is None:
            self._snapshot = tuple(self.repository.list_entries())
        return self._snapshot

    def read(self) -> Ok[Snapshot] | Err[PersistenceError]:
        """Return the current snapshot, reporting storage failures as a value."""
        try:
            return Ok(self.snapshot())
        except Exception as exc:
            _logger.exception("Entry list failed")
            return Err(PersistenceError(operation="list", detail=str(exc)))

    async def insert(self, entry: FoodEntry) -> Ok[FoodEntry] | Err[PersistenceError]:
        """Upsert an entry, assigning an id when it has none."""
        async with self._lock:
            # No awaits below: a mutation is applied and published as a unit.
            try:
                stored = self.repository.upsert_entry(entry)
            except Exception as exc:
                self._snapshot = None
                _logger.exception("Entry insert failed: id=%s", entry.id)
                return Err(PersistenceError(operation="insert", detail=str(exc)))
            self._refresh()
            return Ok(stored)

    async def delete(self, entry_id: int) -> Ok[None] | Err[PersistenceError]:
        """Delete an entry by id; deleting a missing id succeeds."""
        async with self._lock:
            try:
                self.repository.delete_entry(entry_id)
            except Exception as exc:
                self._snapshot = None
                _logger.exception("Entry delete failed: id=%s", entry_id)
                return Err(PersistenceError(operation="delete", detail=str(exc)))
            self._refresh()
            return Ok(None)

    async def observe_all(self) -> AsyncIterator[Snapshot]:
        """Yield the current snapshot, then a fresh one after each mutation.

        A subscriber that falls behind only keeps the newest snapshot.
        """
        queue: asyncio.Queue[Snapshot] = asyncio.Queue(maxsize=1)
        queue.put_nowait(self.snapshot())
        self._subscribers.add(queue)
        try:
            while True:
                yield await queue.get()
        finally:
            self._subscribers.discard(queue)

    @property
    def subscriber_count(self) -> int:
        """Return the number of live subscriptions."""
        return len(self._subscribers)

    def _refresh(self) -> None:
        # The mutation is already durable; a failed read only delays the emission.
        try:
            self._snapshot = tuple(self.repository.list_entries())
        except Exception:
            self._snapshot = None
            _logger.exception("Entry reload failed after a committed mutation")
            return
        self._publish(self._snapshot)

    def _publish(self, snapshot: Snapshot) -> None:
        for queue in self._subscribers:
            if queue.full():
                queue.get_nowait()
            queue.put_nowait(snapshot)
