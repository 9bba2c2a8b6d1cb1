"""Ranking, filtering and sectioning of menu items."""

import math
import re
from dataclasses import dataclass
from enum import Enum

from protein_finder.domain.catalog import (
    MenuItem,
    PortionType,
    Variant,
    normalize_category,
)
from protein_finder.services.customization import (
    calories_per_protein,
    effective_nutrition,
)


class SortOption(str, Enum):
    """Total orders offered for ranking."""

    HIGHEST_PROTEIN = "highest-protein"
    BEST_RATIO = "best-ratio"
    LOWEST_CALORIES = "lowest-calories"


class ViewOption(str, Enum):
    """Restaurant page views."""

    MENU = "menu"
    TOP = "top"


CATEGORY_PRIORITY_GROUPS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Entrees", ("entree", "entrees")),
    ("Burgers", ("burger", "burgers")),
    ("Sandwiches", ("sandwich", "sandwiches")),
    ("Chicken", ("wings", "wing", "tenders", "tender", "nuggets", "nugget")),
    ("Bowls & Plates", ("bowl", "bowls", "plate", "plates", "bowls & plates")),
    ("Salads", ("salad", "salads")),
    ("Wraps", ("wrap", "wraps")),
    ("Breakfast", ("breakfast",)),
    ("Kids", ("kid", "kids")),
    ("Sides", ("side", "sides")),
    ("Dipping Sauces", ("sauce", "sauces", "dipping sauce", "dipping sauces")),
    ("Dressings", ("dressing", "dressings")),
    ("Desserts", ("dessert", "desserts")),
    ("Drinks", ("drink", "drinks", "beverage", "beverages")),
)

_PRIORITY = {
    alias: index
    for index, (_, aliases) in enumerate(CATEGORY_PRIORITY_GROUPS)
    for alias in aliases
}
_HEADINGS = {
    alias: label for label, aliases in CATEGORY_PRIORITY_GROUPS for alias in aliases
}

ALWAYS_LOWEST_CALORIE_SECTIONS = frozenset(
    {
        "sauce",
        "sauces",
        "dipping sauce",
        "dipping sauces",
        "dressing",
        "dressings",
        "drink",
        "drinks",
        "treat",
        "treats",
    }
)

KIDS_TAG = "kids"


@dataclass(frozen=True)
class Filters:
    """Optional menu filters; zero or empty values are ignored."""

    protein_min: float | None = None
    calories_max: float | None = None
    query: str | None = None


@dataclass(frozen=True)
class MenuSection:
    """Category section of the menu view."""

    key: str
    heading: str
    anchor: str
    items: list[MenuItem]


@dataclass(frozen=True)
class TopPicks:
    """The three rankings of the macro ranking view."""

    highest_protein: list[MenuItem]
    best_ratio: list[MenuItem]
    lowest_calories: list[MenuItem]


@dataclass(frozen=True)
class FeaturedPick:
    label: str
    item: MenuItem


def row_key(item: MenuItem) -> str:
    """Key of a ranking row; expanded variants get ``<item>::<variant>``."""
    if item.display_variant_id:
        return f"{item.item_key}::{item.display_variant_id}"
    return item.item_key


def sort_items(items: list[MenuItem], sort: SortOption) -> list[MenuItem]:
    """Stable sort by the chosen order on each row's effective nutrition."""
    sort = SortOption(sort)
    if sort is SortOption.HIGHEST_PROTEIN:
        return sorted(items, key=lambda item: -effective_nutrition(item).protein)
    if sort is SortOption.BEST_RATIO:
        return sorted(items, key=_ratio)
    return sorted(items, key=lambda item: effective_nutrition(item).calories)


def _ratio(item: MenuItem) -> float:
    nutrition = effective_nutrition(item)
    return calories_per_protein(nutrition.calories, nutrition.protein)


def format_ratio(value: float) -> str | None:
    """Render a ratio as "N:1"; the no-protein sentinel has no label."""
    if math.isinf(value):
        return None
    return f"{math.floor(value + 0.5)}:1"


def expand_for_ranking(items: list[MenuItem]) -> list[MenuItem]:
    """Turn every variant into its own row."""
    rows: list[MenuItem] = []
    for item in items:
        if not item.variants or item.display_variant_id:
            rows.append(item)
            continue
        for variant in item.variants:
            rows.append(
                item.model_copy(
                    update={
                        "portion_type": variant.portion_type or item.portion_type,
                        "display_variant_id": variant.id,
                    }
                )
            )
    return rows


def rankable(
    rows: list[MenuItem],
    include_sides_drinks: bool = False,
    include_large_shareables: bool = False,
) -> list[MenuItem]:
    """Keep single portions, plus shareables and sides/drinks when asked."""
    allowed = {PortionType.SINGLE}
    if include_large_shareables:
        allowed.add(PortionType.SHAREABLE)
    if include_sides_drinks:
        allowed.update({PortionType.SIDE, PortionType.DRINK})
    return [row for row in rows if row.portion_type in allowed]


def apply_filters(items: list[MenuItem], filters: Filters) -> list[MenuItem]:
    """Drop items below the protein minimum, above the calorie cap or not matching."""
    query = (filters.query or "").strip().lower()
    kept = []
    for item in items:
        nutrition = effective_nutrition(item)
        if filters.protein_min and nutrition.protein < filters.protein_min:
            continue
        if filters.calories_max and nutrition.calories > filters.calories_max:
            continue
        if query and query not in item.name.lower():
            continue
        kept.append(item)
    return kept


def top_picks(
    items: list[MenuItem],
    include_sides_drinks: bool = False,
    include_large_shareables: bool = False,
    filters: Filters | None = None,
    limit: int | None = None,
) -> TopPicks:
    """Rank every rankable variant row three ways, filtering each row on its own."""
    rows = rankable(
        expand_for_ranking(items),
        include_sides_drinks=include_sides_drinks,
        include_large_shareables=include_large_shareables,
    )
    if filters is not None:
        rows = apply_filters(rows, filters)
    return TopPicks(
        highest_protein=sort_items(rows, SortOption.HIGHEST_PROTEIN)[:limit],
        best_ratio=sort_items(rows, SortOption.BEST_RATIO)[:limit],
        lowest_calories=sort_items(rows, SortOption.LOWEST_CALORIES)[:limit],
    )


def featured_picks(items: list[MenuItem]) -> list[FeaturedPick]:
    """Headline cards; "Best overall" is the best ratio item."""
    if not items:
        return []
    best_ratio = sort_items(items, SortOption.BEST_RATIO)[0]
    highest_protein = sort_items(items, SortOption.HIGHEST_PROTEIN)[0]
    return [
        FeaturedPick(label="Best overall", item=best_ratio),
        FeaturedPick(label="Best protein ratio", item=best_ratio),
        FeaturedPick(label="Highest protein", item=highest_protein),
    ]


def category_priority(category: str) -> int:
    """Index in the priority list; unknown categories sort after all known ones."""
    return _PRIORITY.get(normalize_category(category), len(CATEGORY_PRIORITY_GROUPS))


def category_heading(category: str) -> str:
    normalized = normalize_category(category)
    return _HEADINGS.get(normalized) or " ".join(
        word[:1].upper() + word[1:] for word in normalized.split(" ")
    )


def section_anchor(category: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", normalize_category(category))
    return f"menu-section-{slug}"


def ordered_sections(items: list[MenuItem]) -> list[str]:
    """Distinct section keys ordered by priority, then alphabetically."""
    keys: set[str] = set()
    for item in items:
        keys.update(item.item_categories)
        for variant in item.variants:
            keys.update(normalize_category(category) for category in variant.categories)
    return sorted(keys, key=lambda key: (category_priority(key), key))


def is_kids_section(section: str) -> bool:
    return normalize_category(section) in {"kid", "kids"}


def visible_variants(item: MenuItem, section: str) -> list[Variant]:
    """Variants of an item that belong in the given section."""
    item_categories = set(item.item_categories)
    visible = []
    for variant in item.variants:
        if variant.categories:
            if any(normalize_category(c) == section for c in variant.categories):
                visible.append(variant)
        elif section in item_categories:
            visible.append(variant)
    if is_kids_section(section):
        kids = [
            variant
            for variant in visible
            if any(normalize_category(tag) == KIDS_TAG for tag in variant.tags)
        ]
        if kids:
            return kids
    return visible


def menu_sections(items: list[MenuItem], sort: SortOption) -> list[MenuSection]:
    """Group items into ordered category sections, each sorted."""
    sections = []
    for key in ordered_sections(items):
        rows: list[MenuItem] = []
        for item in items:
            if not item.variants:
                if key in item.item_categories:
                    rows.append(item)
                continue
            variants = visible_variants(item, key)
            if not variants:
                continue
            rows.append(item.model_copy(update={"variants": variants}))
        if not rows:
            continue
        section_sort = (
            SortOption.LOWEST_CALORIES
            if key in ALWAYS_LOWEST_CALORIE_SECTIONS
            else sort
        )
        sections.append(
            MenuSection(
                key=key,
                heading=category_heading(key),
                anchor=section_anchor(key),
                items=sort_items(rows, section_sort),
            )
        )
    return sections
