"""Per-browser-session cart registry."""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from uuid import UUID

from protein_finder.services.cart import CartStore


@dataclass
class _SessionEntry:
    cart: CartStore
    expires_at: datetime


@dataclass
class CartSessions:
    """In-memory carts keyed by session id with a sliding expiry."""

    ttl_seconds: int
    _entries: dict[UUID, _SessionEntry] = field(default_factory=dict)

    def get_cart(self, session_id: UUID) -> CartStore:
        """Return the session's cart, creating an empty one when missing or expired."""
        now = datetime.now(tz=UTC)
        self._evict_expired(now)
        entry = self._entries.get(session_id)
        if entry is None:
            entry = _SessionEntry(cart=CartStore(), expires_at=now)
            self._entries[session_id] = entry
        entry.expires_at = now + timedelta(seconds=self.ttl_seconds)
        return entry.cart

    def _evict_expired(self, now: datetime) -> None:
        expired = [
            key for key, entry in self._entries.items() if now >= entry.expires_at
        ]
        for key in expired:
            self._entries.pop(key, None)
