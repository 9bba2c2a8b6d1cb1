"""Shared test fixtures."""

from dataclasses import dataclass, field
from uuid import UUID

import pytest

from protein_finder.config import Settings
from protein_finder.containers import AppContainer
from protein_finder.domain.catalog import (
    AddonKind,
    AddonOption,
    AppliesTo,
    CommonChange,
    MacroDelta,
    MenuItem,
    Nutrition,
    PortionType,
    Restaurant,
    RestaurantMenu,
    Variant,
)
from protein_finder.services.catalog import CatalogRepository, CatalogService
from protein_finder.services.recent import (
    InMemoryRecentRestaurantsRepository,
    RecentRestaurantsRepository,
    RecentRestaurantsService,
)
from protein_finder.services.sessions import CartSessions


def make_nutrition(
    calories: float,
    protein: float,
    carbs: float = 0,
    total_fat: float = 0,
    **optional: float,
) -> Nutrition:
    return Nutrition(
        calories=calories,
        protein=protein,
        carbs=carbs,
        total_fat=total_fat,
        **optional,
    )


def make_item(  # noqa: PLR0913
    item_id: str,
    calories: float,
    protein: float,
    category: str = "Entrees",
    portion_type: PortionType = PortionType.SINGLE,
    name: str | None = None,
) -> MenuItem:
    return MenuItem(
        id=item_id,
        name=name or item_id.replace("-", " ").title(),
        category=category,
        nutrition=make_nutrition(calories, protein),
        portion_type=portion_type,
    )


def burger_barn_menu() -> RestaurantMenu:
    """Small menu covering variants, add-ons and common changes."""
    return RestaurantMenu(
        items=[
            MenuItem(
                id="grilled-sandwich",
                name="Grilled Chicken Sandwich",
                category="Sandwiches",
                nutrition=make_nutrition(390, 28, 44, 12, sodium=770, fiber=4),
                addon_refs=[AddonKind.SAUCES],
            ),
            MenuItem(
                id="nuggets",
                name="Nuggets",
                categories=["Entrees", "Kids"],
                nutrition=make_nutrition(250, 27, 11, 11),
                default_variant_id="8ct",
                addon_refs=[AddonKind.SAUCES],
                variants=[
                    Variant(
                        id="5ct",
                        label="5 ct",
                        nutrition=make_nutrition(150, 16, 7, 7, sodium=500),
                        tags=["kids"],
                    ),
                    Variant(
                        id="8ct",
                        label="8 ct",
                        nutrition=make_nutrition(250, 27, 11, 11, sodium=1000),
                    ),
                    Variant(
                        id="30ct",
                        label="30 ct",
                        nutrition=make_nutrition(930, 100, 40, 41),
                        portion_type=PortionType.SHAREABLE,
                    ),
                ],
            ),
            MenuItem(
                id="cobb-salad",
                name="Cobb Salad",
                category="Salads",
                nutrition=make_nutrition(510, 40, 27, 27),
                addon_refs=[AddonKind.DRESSINGS],
            ),
            make_item("fries", 420, 5, category="Sides", portion_type=PortionType.SIDE),
            make_item(
                "lemonade", 220, 0, category="Drinks", portion_type=PortionType.DRINK
            ),
        ],
        addons={
            AddonKind.SAUCES: [
                AddonOption(name="Ranch", calories=140, carbs=1, fat=15, sodium=200),
                AddonOption(name="Honey Mustard", calories=50, carbs=11),
            ],
            AddonKind.DRESSINGS: [
                AddonOption(name="Light Italian", calories=25, carbs=3, fat=1.5),
            ],
        },
        common_changes=[
            CommonChange(
                id="no-bun",
                label="no bun → lettuce wrap",
                delta=MacroDelta(calories=-150, protein=-5, carbs=-28, fat=-2),
                applies_to=AppliesTo(categories=["Sandwiches"]),
            ),
            CommonChange(
                id="no-cheese",
                label="no cheese",
                delta=MacroDelta(calories=-60, protein=-4, fat=-5),
                applies_to=AppliesTo(categories=["Salads"]),
            ),
            CommonChange(
                id="everywhere",
                label="extra napkins",
                delta=MacroDelta(),
            ),
        ],
    )


def wrap_shack_menu() -> RestaurantMenu:
    return RestaurantMenu(
        items=[make_item("chicken-wrap", 350, 30, category="Wraps")],
    )


@dataclass
class InMemoryCatalogRepository(CatalogRepository):
    """In-memory catalog repository for tests."""

    restaurants: list[Restaurant] = field(default_factory=list)
    menus: dict[str, RestaurantMenu] = field(default_factory=dict)

    def list_restaurants(self) -> list[Restaurant]:
        return list(self.restaurants)

    def get_menu(self, restaurant_id: str) -> RestaurantMenu | None:
        return self.menus.get(restaurant_id)


@dataclass
class FailingRecentRestaurantsRepository(RecentRestaurantsRepository):
    """Recent restaurants storage that always fails."""

    calls: int = 0

    def get_ids(self, visitor_id: UUID) -> list[str]:
        self.calls += 1
        raise RuntimeError("storage unavailable")

    def set_ids(self, visitor_id: UUID, restaurant_ids: list[str]) -> None:
        self.calls += 1
        raise RuntimeError("storage unavailable")


@pytest.fixture
def settings() -> Settings:
    return Settings(supabase_url=None, supabase_service_key=None)


@pytest.fixture
def catalog_repository() -> InMemoryCatalogRepository:
    return InMemoryCatalogRepository(
        restaurants=[
            Restaurant(id="burger-barn", name="Burger Barn", menu_file="bb.json"),
            Restaurant(id="wrap-shack", name="Wrap Shack", menu_file="ws.json"),
            Restaurant(id="arbys", name="Arby's", menu_file="arbys.json"),
            Restaurant(id="ghost", name="Ghost Kitchen", menu_file="ghost.json"),
        ],
        menus={
            "burger-barn": burger_barn_menu(),
            "wrap-shack": wrap_shack_menu(),
            "arbys": RestaurantMenu(items=[make_item("roast-beef", 360, 23)]),
        },
    )


@pytest.fixture
def catalog_service(catalog_repository: InMemoryCatalogRepository) -> CatalogService:
    return CatalogService(catalog_repository)


@pytest.fixture
def menu() -> RestaurantMenu:
    return burger_barn_menu()


@pytest.fixture
def container(settings: Settings, catalog_service: CatalogService) -> AppContainer:
    return AppContainer(
        settings=settings,
        catalog_service=catalog_service,
        cart_sessions=CartSessions(ttl_seconds=settings.cart_session_ttl_seconds),
        recent_service=RecentRestaurantsService(
            repository=InMemoryRecentRestaurantsRepository(
                ttl_seconds=settings.cart_session_ttl_seconds
            ),
            limit=settings.recent_restaurants_limit,
        ),
    )
