"""Read-only access to restaurants and their menus."""

from dataclasses import dataclass
from typing import Protocol

from protein_finder.domain.catalog import MenuItem, Restaurant, RestaurantMenu


class CatalogRepository(Protocol):
    """Source of the static catalog documents."""

    def list_restaurants(self) -> list[Restaurant]:
        """Return the restaurant index in catalog order."""

    def get_menu(self, restaurant_id: str) -> RestaurantMenu | None:
        """Return a restaurant's menu document, if it loaded."""


@dataclass
class CatalogService:
    """Lookups, search and grouping over the catalog."""

    repository: CatalogRepository
    popular_limit: int = 10
    suggestion_limit: int = 10

    def list_restaurants(self) -> list[Restaurant]:
        """Return all restaurants in catalog order."""
        return self.repository.list_restaurants()

    def get_restaurant(self, restaurant_id: str) -> Restaurant | None:
        """Return a restaurant by id, if present."""
        for restaurant in self.repository.list_restaurants():
            if restaurant.id == restaurant_id:
                return restaurant
        return None

    def get_menu(self, restaurant_id: str) -> RestaurantMenu | None:
        """Return the menu of a known restaurant."""
        if self.get_restaurant(restaurant_id) is None:
            return None
        return self.repository.get_menu(restaurant_id)

    def find_item(self, restaurant_id: str, item_key: str) -> MenuItem | None:
        """Return a menu item by id or name."""
        menu = self.get_menu(restaurant_id)
        if menu is None:
            return None
        for item in menu.items:
            if item.item_key == item_key:
                return item
        return None

    def search_restaurants(self, query: str | None) -> list[Restaurant]:
        """Case-insensitive substring search on restaurant names."""
        normalized = (query or "").strip().lower()
        if not normalized:
            return []
        matches = [
            restaurant
            for restaurant in self.repository.list_restaurants()
            if normalized in restaurant.name.lower()
        ]
        return matches[: self.suggestion_limit]

    def group_restaurants_by_letter(self) -> list[tuple[str, list[Restaurant]]]:
        """Alphabetical restaurants grouped by their first letter."""
        grouped: dict[str, list[Restaurant]] = {}
        ordered = sorted(
            self.repository.list_restaurants(), key=lambda r: r.name.lower()
        )
        for restaurant in ordered:
            grouped.setdefault(restaurant.name[:1].upper(), []).append(restaurant)
        return list(grouped.items())

    def resolve_restaurants(self, restaurant_ids: list[str]) -> list[Restaurant]:
        """Map ids to restaurants, dropping unknown ids."""
        resolved = []
        for restaurant_id in restaurant_ids:
            restaurant = self.get_restaurant(restaurant_id)
            if restaurant is not None:
                resolved.append(restaurant)
        return resolved

    def suggestions(self, query: str | None, recent_ids: list[str]) -> list[Restaurant]:
        """Search results, or recent then popular restaurants for a blank query."""
        if (query or "").strip():
            return self.search_restaurants(query)
        recent = self.resolve_restaurants(recent_ids)
        recent_set = {restaurant.id for restaurant in recent}
        popular = [
            restaurant
            for restaurant in self.repository.list_restaurants()
            if restaurant.id not in recent_set
        ]
        return recent + popular[: self.popular_limit]
