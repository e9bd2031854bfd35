"""TTL cache for nutrition lookup results."""

from collections import OrderedDict
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol

from nutri_coach.domain.nutrition import NutritionRecord


class LookupCache(Protocol):
    """Cache of lookup results keyed by query text."""

    def get(self, query: str) -> list[NutritionRecord] | None:
        """Return cached records for a query, or None on a miss."""

    def put(self, query: str, records: list[NutritionRecord], ttl_seconds: int) -> None:
        """Store records for a query for ``ttl_seconds``."""


@dataclass
class _Entry:
    records: list[NutritionRecord]
    expires_at: datetime


class InMemoryLookupCache(LookupCache):
    """Bounded in-process cache; the oldest entry is evicted when full."""

    def __init__(self, max_entries: int = 512) -> None:
        self.max_entries = max_entries
        self._entries: OrderedDict[str, _Entry] = OrderedDict()

    def get(self, query: str) -> list[NutritionRecord] | None:
        key = _normalize(query)
        entry = self._entries.get(key)
        if entry is None:
            return None
        if datetime.now(tz=UTC) >= entry.expires_at:
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return list(entry.records)

    def put(self, query: str, records: list[NutritionRecord], ttl_seconds: int) -> None:
        key = _normalize(query)
        expires_at = datetime.now(tz=UTC) + timedelta(seconds=ttl_seconds)
        self._entries[key] = _Entry(records=list(records), expires_at=expires_at)
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def __len__(self) -> int:
        return len(self._entries)


def _normalize(query: str) -> str:
    return " ".join(query.lower().split())
