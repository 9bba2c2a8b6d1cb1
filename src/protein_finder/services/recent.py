"""Best-effort bookkeeping of recently viewed restaurants."""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Protocol
from uuid import UUID

logger = logging.getLogger(__name__)


class RecentRestaurantsRepository(Protocol):
    """Key-value slot holding a visitor's recently viewed restaurant ids."""

    def get_ids(self, visitor_id: UUID) -> list[str]:
        """Return the stored ids, most recent first."""

    def set_ids(self, visitor_id: UUID, restaurant_ids: list[str]) -> None:
        """Replace the stored ids."""


@dataclass
class _RecentSlot:
    restaurant_ids: list[str]
    expires_at: datetime


@dataclass
class InMemoryRecentRestaurantsRepository(RecentRestaurantsRepository):
    """Process-local storage used when no external store is configured.

    Slots expire after ``ttl_seconds`` without a read or write.
    """

    ttl_seconds: int = 7 * 24 * 60 * 60
    _slots: dict[UUID, _RecentSlot] = field(default_factory=dict)

    def get_ids(self, visitor_id: UUID) -> list[str]:
        """Return a copy of the stored ids."""
        now = datetime.now(tz=UTC)
        self._evict_expired(now)
        slot = self._slots.get(visitor_id)
        if slot is None:
            return []
        slot.expires_at = now + timedelta(seconds=self.ttl_seconds)
        return list(slot.restaurant_ids)

    def set_ids(self, visitor_id: UUID, restaurant_ids: list[str]) -> None:
        """Store a copy of the ids."""
        now = datetime.now(tz=UTC)
        self._evict_expired(now)
        self._slots[visitor_id] = _RecentSlot(
            restaurant_ids=list(restaurant_ids),
            expires_at=now + timedelta(seconds=self.ttl_seconds),
        )

    def _evict_expired(self, now: datetime) -> None:
        expired = [
            visitor_id
            for visitor_id, slot in self._slots.items()
            if now >= slot.expires_at
        ]
        for visitor_id in expired:
            self._slots.pop(visitor_id, None)


@dataclass
class RecentRestaurantsService:
    """Tracks the last few restaurants a visitor opened.

    Storage errors are logged and discarded: reads fall back to an empty
    list and writes are not retried.
    """

    repository: RecentRestaurantsRepository
    limit: int = 3

    def list_ids(self, visitor_id: UUID) -> list[str]:
        """Return the visitor's recent restaurant ids, most recent first."""
        try:
            stored = self.repository.get_ids(visitor_id)
        except Exception:
            logger.exception(
                "Failed to read recent restaurants", extra={"visitor_id": visitor_id}
            )
            return []
        return [rid for rid in stored if rid][: self.limit]

    def record_visit(self, visitor_id: UUID, restaurant_id: str) -> list[str]:
        """Move the restaurant to the front of the visitor's list."""
        current = self.list_ids(visitor_id)
        updated = [restaurant_id, *(rid for rid in current if rid != restaurant_id)]
        updated = updated[: self.limit]
        self._write(visitor_id, updated)
        return updated

    def remove(self, visitor_id: UUID, restaurant_id: str) -> list[str]:
        """Drop a restaurant from the visitor's list."""
        updated = [rid for rid in self.list_ids(visitor_id) if rid != restaurant_id]
        self._write(visitor_id, updated)
        return updated

    def _write(self, visitor_id: UUID, restaurant_ids: list[str]) -> None:
        try:
            self.repository.set_ids(visitor_id, restaurant_ids)
        except Exception:
            logger.exception(
                "Failed to store recent restaurants", extra={"visitor_id": visitor_id}
            )
