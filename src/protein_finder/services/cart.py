"""Cart store with merge-by-configuration semantics and derived totals."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from uuid import UUID, uuid5

from protein_finder.domain.cart import (
    EMPTY_MACROS,
    CartLineItem,
    CartState,
    Macros,
    NutritionTotals,
)
from protein_finder.domain.catalog import MenuItem
from protein_finder.services.catalog import CatalogService
from protein_finder.services.customization import (
    OPTIONAL_NUTRIENTS,
    Selection,
    compute_customization,
    customization_labels,
    options_label,
)

CART_LINE_NAMESPACE = UUID("6f1c3a52-8d0e-4b8e-9a57-2f4d1e0c7b11")

CartListener = Callable[[CartState], None]

logger = logging.getLogger(__name__)


def line_identity(
    restaurant_id: str,
    item_id: str,
    variant_id: str | None,
    addon_keys: tuple[str, ...],
    common_change_ids: tuple[str, ...],
) -> UUID:
    """Deterministic id of a configuration; identical configurations collide."""
    key = "|".join(
        [
            restaurant_id,
            item_id,
            variant_id or "",
            ",".join(sorted(addon_keys)),
            ",".join(sorted(common_change_ids)),
        ]
    )
    return uuid5(CART_LINE_NAMESPACE, key)


def build_line(
    restaurant_id: str, item: MenuItem, selection: Selection, quantity: int = 1
) -> CartLineItem:
    """Snapshot the per-unit macros of a configured item as a cart line."""
    result = compute_customization(item, selection)
    variant = selection.variant
    return CartLineItem(
        id=line_identity(
            restaurant_id,
            item.item_key,
            variant.id if variant else None,
            selection.addon_keys,
            selection.common_change_ids,
        ),
        restaurant_id=restaurant_id,
        item_id=item.item_key,
        name=item.name,
        quantity=quantity,
        macros_per_item=result.macros,
        variant_id=variant.id if variant else None,
        variant_label=variant.label if variant else None,
        addon_keys=selection.addon_keys,
        common_change_ids=selection.common_change_ids,
        options_label=options_label(selection),
        customizations=customization_labels(selection),
    )


def compute_totals(items: tuple[CartLineItem, ...]) -> Macros:
    """Sum of per-unit macros times quantity over all lines."""
    total = EMPTY_MACROS
    for item in items:
        total += item.line_macros
    return total


@dataclass
class CartStore:
    """Holds the cart of one session; the only way to mutate it."""

    _state: CartState = field(default_factory=CartState)
    _listeners: list[CartListener] = field(default_factory=list)

    @property
    def state(self) -> CartState:
        """Current immutable snapshot."""
        return self._state

    def subscribe(self, listener: CartListener) -> Callable[[], None]:
        """Register a listener called with every new snapshot."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def add_item(self, entry: CartLineItem) -> CartLineItem:
        """Merge into the line with the same identity or append a new line."""
        if entry.quantity <= 0:
            raise ValueError("Cart quantity must be positive")
        items = list(self._state.items)
        for index, existing in enumerate(items):
            if existing.id == entry.id:
                added = replace(existing, quantity=existing.quantity + entry.quantity)
                items[index] = added
                break
        else:
            added = entry
            items.append(entry)
        self._set_state(
            CartState(
                items=tuple(items),
                last_added=added,
                last_added_at=datetime.now(tz=UTC),
            )
        )
        return added

    def remove_item(self, line_id: UUID) -> None:
        """Delete a line; unknown ids are ignored."""
        if self._state.find(line_id) is None:
            return
        items = tuple(item for item in self._state.items if item.id != line_id)
        self._set_state(replace(self._state, items=items))

    def update_quantity(self, line_id: UUID, quantity: int) -> None:
        """Set a line's quantity; zero or less removes the line."""
        if quantity <= 0:
            self.remove_item(line_id)
            return
        if self._state.find(line_id) is None:
            return
        items = tuple(
            replace(item, quantity=quantity) if item.id == line_id else item
            for item in self._state.items
        )
        self._set_state(replace(self._state, items=items))

    def reconfigure_item(self, line_id: UUID, entry: CartLineItem) -> None:
        """Swap a line's configuration, keeping its quantity and position."""
        current = self._state.find(line_id)
        if current is None:
            return
        updated = replace(entry, quantity=current.quantity)
        if updated.id != line_id and self._state.find(updated.id) is not None:
            items = tuple(
                replace(item, quantity=item.quantity + current.quantity)
                if item.id == updated.id
                else item
                for item in self._state.items
                if item.id != line_id
            )
        else:
            items = tuple(
                updated if item.id == line_id else item for item in self._state.items
            )
        self._set_state(replace(self._state, items=items))

    def clear_cart(self) -> None:
        """Remove every line."""
        self._set_state(replace(self._state, items=()))

    def totals(self) -> Macros:
        """Recompute totals from the current lines."""
        return compute_totals(self._state.items)

    def _set_state(self, state: CartState) -> None:
        self._state = state
        for listener in list(self._listeners):
            listener(state)


def nutrition_totals(
    items: tuple[CartLineItem, ...], catalog: CatalogService
) -> NutritionTotals:
    """Full nutrition label: snapshot macros plus micro-nutrients of the base items."""
    macros = compute_totals(items)
    optional: dict[str, float] = {}
    for line in items:
        item = catalog.find_item(line.restaurant_id, line.item_id)
        if item is None:
            logger.info(
                "Cart line no longer matches the catalog",
                extra={"restaurant_id": line.restaurant_id, "item_id": line.item_id},
            )
            continue
        variant = next((v for v in item.variants if v.id == line.variant_id), None)
        base = variant.nutrition if variant else item.nutrition
        for nutrient in OPTIONAL_NUTRIENTS:
            value = getattr(base, nutrient)
            if value is not None:
                optional[nutrient] = optional.get(nutrient, 0) + value * line.quantity
    return NutritionTotals(
        calories=macros.calories,
        protein=macros.protein,
        carbs=macros.carbs,
        total_fat=macros.fat,
        optional=optional,
    )
