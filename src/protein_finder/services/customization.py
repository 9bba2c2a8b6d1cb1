"""Customization math: variants, add-ons and common changes."""

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType

from protein_finder.domain.cart import Macros
from protein_finder.domain.catalog import (
    NONE_ADDON,
    AddonKind,
    AddonOption,
    CommonChange,
    MenuItem,
    Nutrition,
    RestaurantMenu,
    Variant,
    normalize_category,
)

OPTIONAL_NUTRIENTS = (
    "sat_fat",
    "trans_fat",
    "cholesterol",
    "sodium",
    "fiber",
    "sugars",
)


class CustomizationError(ValueError):
    """Raised when a requested selection does not match the menu."""


@dataclass(frozen=True)
class Selection:
    """Chosen variant, one add-on per group, and a set of common changes."""

    variant: Variant | None = None
    addons: Mapping[AddonKind, AddonOption] = field(
        default_factory=lambda: MappingProxyType({})
    )
    common_changes: tuple[CommonChange, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "addons", MappingProxyType(dict(self.addons)))

    def with_addon(self, kind: AddonKind, option: AddonOption | None) -> "Selection":
        """Replace the pick of a group; ``None`` or the "None" option clears it."""
        addons = dict(self.addons)
        if option is None or option.name == NONE_ADDON.name:
            addons.pop(kind, None)
        else:
            addons[kind] = option
        return replace(self, addons=addons)

    def toggle_common_change(self, change: CommonChange) -> "Selection":
        """Add the change if absent, remove it otherwise."""
        if any(selected.id == change.id for selected in self.common_changes):
            remaining = tuple(c for c in self.common_changes if c.id != change.id)
            return replace(self, common_changes=remaining)
        return replace(self, common_changes=(*self.common_changes, change))

    @property
    def addon_keys(self) -> tuple[str, ...]:
        """Sorted ``<group>:<option>`` pairs of the chosen add-ons."""
        keys = (f"{kind.value}:{option.name}" for kind, option in self.addons.items())
        return tuple(sorted(keys))

    @property
    def common_change_ids(self) -> tuple[str, ...]:
        return tuple(sorted(change.id for change in self.common_changes))


@dataclass(frozen=True)
class AddonSection:
    """Add-on group as offered for an item, "None" first."""

    kind: AddonKind
    title: str
    options: list[AddonOption]


@dataclass(frozen=True)
class CustomizationResult:
    """Effective nutrition of a configured item."""

    base: Nutrition
    delta: Macros
    nutrition: Nutrition

    @property
    def macros(self) -> Macros:
        return Macros(
            calories=self.nutrition.calories,
            protein=self.nutrition.protein,
            carbs=self.nutrition.carbs,
            fat=self.nutrition.total_fat,
        )

    @property
    def ratio(self) -> float:
        return calories_per_protein(self.nutrition.calories, self.nutrition.protein)


def calories_per_protein(calories: float, protein: float) -> float:
    """Calories per gram of protein; ``math.inf`` when there is no protein."""
    if not protein:
        return math.inf
    return calories / protein


def default_variant(item: MenuItem) -> Variant | None:
    """Resolve the variant shown for an item when nothing is selected."""
    if not item.variants:
        return None
    for preferred in (item.display_variant_id, item.default_variant_id):
        if preferred:
            for variant in item.variants:
                if variant.id == preferred:
                    return variant
    for variant in item.variants:
        if variant.is_default:
            return variant
    return item.variants[0]


def effective_nutrition(item: MenuItem) -> Nutrition:
    """Nutrition of the default variant, else of the item itself."""
    variant = default_variant(item)
    return variant.nutrition if variant else item.nutrition


def applicable_common_changes(
    item: MenuItem, changes: Iterable[CommonChange]
) -> list[CommonChange]:
    """Return common changes whose category filter matches the item."""
    item_categories = set(item.item_categories)
    applicable = []
    for change in changes:
        if change.applies_to is None or not change.applies_to.categories:
            continue
        if any(
            normalize_category(category) in item_categories
            for category in change.applies_to.categories
        ):
            applicable.append(change)
    return applicable


def addon_sections(item: MenuItem, menu: RestaurantMenu) -> list[AddonSection]:
    """Return the item's add-on groups sorted by calories with "None" prepended."""
    sections = []
    for kind in item.addon_refs:
        options = menu.addons.get(kind) or []
        if not options:
            continue
        ordered = sorted(options, key=lambda option: option.calories)
        sections.append(
            AddonSection(kind=kind, title=kind.heading, options=[NONE_ADDON, *ordered])
        )
    return sections


def resolve_selection(
    item: MenuItem,
    menu: RestaurantMenu,
    variant_id: str | None = None,
    addons: Mapping[str, str] | None = None,
    common_change_ids: Iterable[str] = (),
) -> Selection:
    """Validate a requested configuration against the menu."""
    if variant_id:
        variant = next((v for v in item.variants if v.id == variant_id), None)
        if variant is None:
            raise CustomizationError(f"Unknown variant '{variant_id}' for {item.name}")
    else:
        variant = default_variant(item)

    selection = Selection(variant=variant)
    for raw_kind, option_name in (addons or {}).items():
        try:
            kind = AddonKind(raw_kind)
        except ValueError as exc:
            raise CustomizationError(f"Unknown add-on group '{raw_kind}'") from exc
        if kind not in item.addon_refs:
            raise CustomizationError(f"{item.name} does not offer {kind.value}")
        if option_name == NONE_ADDON.name:
            continue
        option = next(
            (o for o in menu.addons.get(kind, []) if o.name == option_name), None
        )
        if option is None:
            raise CustomizationError(f"Unknown {kind.value} option '{option_name}'")
        selection = selection.with_addon(kind, option)

    available = {
        change.id: change
        for change in applicable_common_changes(item, menu.common_changes)
    }
    for change_id in dict.fromkeys(common_change_ids):
        change = available.get(change_id)
        if change is None:
            raise CustomizationError(
                f"Common change '{change_id}' does not apply to {item.name}"
            )
        selection = selection.toggle_common_change(change)
    return selection


def compute_customization(item: MenuItem, selection: Selection) -> CustomizationResult:
    """Compute base nutrition, the net delta and the effective nutrition."""
    base = selection.variant.nutrition if selection.variant else item.nutrition
    delta = Macros()
    for option in selection.addons.values():
        delta += Macros(
            calories=option.calories,
            protein=option.protein,
            carbs=option.carbs,
            fat=option.fat,
        )
    for change in selection.common_changes:
        delta += Macros(
            calories=change.delta.calories,
            protein=change.delta.protein,
            carbs=change.delta.carbs,
            fat=change.delta.fat,
        )

    updates: dict[str, float | None] = {
        "calories": base.calories + delta.calories,
        "protein": base.protein + delta.protein,
        "carbs": base.carbs + delta.carbs,
        "total_fat": base.total_fat + delta.fat,
    }
    for nutrient in OPTIONAL_NUTRIENTS:
        values = [getattr(base, nutrient)] + [
            getattr(option, nutrient) for option in selection.addons.values()
        ]
        defined = [value for value in values if value is not None]
        updates[nutrient] = sum(defined) if defined else None

    return CustomizationResult(
        base=base, delta=delta, nutrition=base.model_copy(update=updates)
    )


def options_label(selection: Selection) -> str | None:
    """Join the chosen add-on names, e.g. "Ranch + Honey Mustard"."""
    names = [option.name for option in selection.addons.values()]
    return " + ".join(names) if names else None


def format_common_change_label(label: str) -> str:
    """Shorten "no bun → lettuce wrap" to "No bun" for the cart."""
    first_segment = label.split("→")[0].strip()
    if not first_segment:
        return label
    return first_segment[0].upper() + first_segment[1:]


def customization_labels(selection: Selection) -> tuple[str, ...]:
    return tuple(
        format_common_change_label(change.label) for change in selection.common_changes
    )


def has_modifications(selection: Selection) -> bool:
    """True when any add-on or common change is selected."""
    return bool(selection.addons or selection.common_changes)
