"""Catalog repository backed by static JSON documents."""

import logging
from dataclasses import dataclass
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from protein_finder.domain.catalog import Restaurant, RestaurantMenu
from protein_finder.services.catalog import CatalogRepository

DEFAULT_DATA_DIR = Path(__file__).resolve().parents[1] / "data"
INDEX_FILE = "index.json"

_RESTAURANT_INDEX = TypeAdapter(list[Restaurant])

logger = logging.getLogger(__name__)


@dataclass
class JsonCatalogRepository(CatalogRepository):
    """Catalog loaded wholesale from a data directory at startup."""

    restaurants: list[Restaurant]
    menus: dict[str, RestaurantMenu]

    @classmethod
    def load(cls, data_dir: Path | None = None) -> "JsonCatalogRepository":
        """Read the index and every menu document.

        The index must load. A menu that is missing or invalid is logged and
        its restaurant answers as "not found".
        """
        root = data_dir or DEFAULT_DATA_DIR
        restaurants = _RESTAURANT_INDEX.validate_json(
            (root / INDEX_FILE).read_text(encoding="utf-8")
        )
        menus: dict[str, RestaurantMenu] = {}
        for restaurant in restaurants:
            path = root / restaurant.menu_file
            try:
                menus[restaurant.id] = RestaurantMenu.model_validate_json(
                    path.read_text(encoding="utf-8")
                )
            except (OSError, ValidationError):
                logger.exception(
                    "Failed to load menu",
                    extra={"restaurant_id": restaurant.id, "path": str(path)},
                )
        logger.info(
            "Catalog loaded",
            extra={"restaurants": len(restaurants), "menus": len(menus)},
        )
        return cls(restaurants=restaurants, menus=menus)

    def list_restaurants(self) -> list[Restaurant]:
        """Return the restaurant index in file order."""
        return list(self.restaurants)

    def get_menu(self, restaurant_id: str) -> RestaurantMenu | None:
        """Return the loaded menu for a restaurant."""
        return self.menus.get(restaurant_id)
