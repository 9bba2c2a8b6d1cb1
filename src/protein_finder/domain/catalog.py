"""Menu catalog models loaded from the static JSON documents."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CatalogModel(BaseModel):
    """Base for catalog records: camelCase JSON keys, immutable at runtime."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class PortionType(str, Enum):
    """How a menu item is portioned."""

    SINGLE = "single"
    COMBO = "combo"
    SHAREABLE = "shareable"
    ADDON = "addon"
    DRINK = "drink"
    SIDE = "side"
    DESSERT = "dessert"


class AddonKind(str, Enum):
    """Known add-on groups."""

    SAUCES = "sauces"
    DRESSINGS = "dressings"

    @property
    def heading(self) -> str:
        """Section heading shown above the options."""
        return self.value.capitalize()


class Restaurant(CatalogModel):
    """Entry of the restaurant index."""

    id: str
    name: str
    logo: str | None = None
    menu_file: str


class Nutrition(CatalogModel):
    """Nutrition facts for a single serving."""

    calories: float
    protein: float
    total_fat: float
    carbs: float
    sat_fat: float | None = None
    trans_fat: float | None = None
    cholesterol: float | None = None
    sodium: float | None = None
    fiber: float | None = None
    sugars: float | None = None


class Variant(CatalogModel):
    """Selectable portion or size of a menu item."""

    id: str
    label: str
    nutrition: Nutrition
    portion_type: PortionType | None = None
    is_default: bool = False
    categories: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)


class MenuItem(CatalogModel):
    """Menu item with base nutrition and optional variants."""

    id: str | None = None
    name: str
    category: str | None = None
    categories: list[str] = Field(default_factory=list)
    nutrition: Nutrition
    portion_type: PortionType = PortionType.SINGLE
    image: str | None = None
    variants: list[Variant] = Field(default_factory=list)
    default_variant_id: str | None = None
    addon_refs: list[AddonKind] = Field(default_factory=list)
    display_variant_id: str | None = None

    @property
    def item_key(self) -> str:
        """Stable key of the item within its menu."""
        return self.id or self.name

    @property
    def item_categories(self) -> list[str]:
        """Normalized section names the item belongs to."""
        raw = self.categories or ([self.category] if self.category else ["Other"])
        return [normalize_category(category) for category in raw]


class AddonOption(CatalogModel):
    """Optional extra with its own macro deltas."""

    name: str
    calories: float = 0
    protein: float = 0
    carbs: float = 0
    fat: float = 0
    image: str | None = None
    sat_fat: float | None = None
    trans_fat: float | None = None
    cholesterol: float | None = None
    sodium: float | None = None
    fiber: float | None = None
    sugars: float | None = None


NONE_ADDON = AddonOption(name="None", image="none")


class MacroDelta(CatalogModel):
    """Signed change of the four macros."""

    calories: float = 0
    protein: float = 0
    carbs: float = 0
    fat: float = 0


class AppliesTo(CatalogModel):
    """Applicability filter of a common change."""

    categories: list[str] = Field(default_factory=list)


class CommonChange(CatalogModel):
    """Predefined modification such as "no bun"."""

    id: str
    label: str
    delta: MacroDelta
    applies_to: AppliesTo | None = None


class RestaurantMenu(CatalogModel):
    """Menu document of a single restaurant."""

    items: list[MenuItem]
    addons: dict[AddonKind, list[AddonOption]] = Field(default_factory=dict)
    common_changes: list[CommonChange] = Field(default_factory=list)


def normalize_category(category: str) -> str:
    """Lower-case and trim a category name."""
    return category.strip().lower()
