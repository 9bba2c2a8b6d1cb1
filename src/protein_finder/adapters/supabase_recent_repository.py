"""Supabase-backed storage for recently viewed restaurants."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from protein_finder.services.recent import RecentRestaurantsRepository


@dataclass
class SupabaseRecentRestaurantsRepository(RecentRestaurantsRepository):
    """Supabase implementation keyed by visitor id."""

    client: Client

    def get_ids(self, visitor_id: UUID) -> list[str]:
        """Return the stored ids, most recent first."""
        response = (
            self.client.table("recent_restaurants")
            .select("restaurant_ids")
            .eq("visitor_id", str(visitor_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return []
        stored = response.data[0].get("restaurant_ids") or []
        if not isinstance(stored, list):
            return []
        return [str(restaurant_id) for restaurant_id in stored]

    def set_ids(self, visitor_id: UUID, restaurant_ids: list[str]) -> None:
        """Upsert the visitor's row."""
        self.client.table("recent_restaurants").upsert(
            {
                "visitor_id": str(visitor_id),
                "restaurant_ids": restaurant_ids,
                "updated_at": datetime.now(tz=UTC).isoformat(),
            },
            on_conflict="visitor_id",
        ).execute()
