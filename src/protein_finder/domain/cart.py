"""Domain models for the cart."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class Macros:
    """Calories and macronutrient grams."""

    calories: float = 0
    protein: float = 0
    carbs: float = 0
    fat: float = 0

    def __add__(self, other: "Macros") -> "Macros":
        return Macros(
            calories=self.calories + other.calories,
            protein=self.protein + other.protein,
            carbs=self.carbs + other.carbs,
            fat=self.fat + other.fat,
        )

    def scaled(self, factor: float) -> "Macros":
        """Return the macros multiplied by a quantity."""
        return Macros(
            calories=self.calories * factor,
            protein=self.protein * factor,
            carbs=self.carbs * factor,
            fat=self.fat * factor,
        )


EMPTY_MACROS = Macros()


@dataclass(frozen=True)
class CartLineItem:
    """One configured item in the cart with a per-unit macro snapshot."""

    id: UUID
    restaurant_id: str
    item_id: str
    name: str
    quantity: int
    macros_per_item: Macros
    variant_id: str | None = None
    variant_label: str | None = None
    addon_keys: tuple[str, ...] = ()
    common_change_ids: tuple[str, ...] = ()
    options_label: str | None = None
    customizations: tuple[str, ...] = ()

    @property
    def line_macros(self) -> Macros:
        """Macros of the whole line (per-unit snapshot times quantity)."""
        return self.macros_per_item.scaled(self.quantity)


@dataclass(frozen=True)
class CartState:
    """Immutable snapshot of a cart."""

    items: tuple[CartLineItem, ...] = ()
    last_added: CartLineItem | None = None
    last_added_at: datetime | None = None

    @property
    def item_count(self) -> int:
        """Total number of units across all lines."""
        return sum(item.quantity for item in self.items)

    @property
    def restaurant_ids(self) -> list[str]:
        """Distinct restaurant ids in first-seen order."""
        return list(dict.fromkeys(item.restaurant_id for item in self.items))

    def find(self, line_id: UUID) -> CartLineItem | None:
        """Return the line with the given id, if present."""
        for item in self.items:
            if item.id == line_id:
                return item
        return None


@dataclass(frozen=True)
class NutritionTotals:
    """Full nutrition label for the cart contents."""

    calories: float = 0
    protein: float = 0
    carbs: float = 0
    total_fat: float = 0
    optional: dict[str, float] = field(default_factory=dict)
