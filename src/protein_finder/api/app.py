"""FastAPI application factory."""

import logging
from uuid import UUID, uuid4

from fastapi import Depends, FastAPI, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse

from protein_finder.api.models import (
    AddToCartPayload,
    QuantityPayload,
    SelectionPayload,
)
from protein_finder.api.pages import router as pages_router
from protein_finder.app_logging import configure_logging
from protein_finder.containers import AppContainer
from protein_finder.domain.cart import (
    CartLineItem,
    CartState,
    Macros,
    NutritionTotals,
)
from protein_finder.domain.catalog import (
    MenuItem,
    Nutrition,
    Restaurant,
    RestaurantMenu,
)
from protein_finder.services.cart import CartStore, build_line, nutrition_totals
from protein_finder.services.catalog import CatalogService
from protein_finder.services.customization import (
    CustomizationError,
    Selection,
    addon_sections,
    applicable_common_changes,
    calories_per_protein,
    compute_customization,
    customization_labels,
    default_variant,
    effective_nutrition,
    has_modifications,
    options_label,
    resolve_selection,
)
from protein_finder.services.ranking import (
    Filters,
    SortOption,
    ViewOption,
    apply_filters,
    category_heading,
    expand_for_ranking,
    featured_picks,
    format_ratio,
    menu_sections,
    ordered_sections,
    rankable,
    row_key,
    section_anchor,
    top_picks,
)

EMPTY_FILTERS_MESSAGE = (
    "No items match these filters. "
    "Try lowering protein minimum or increasing calories."
)
NO_CUSTOMIZATIONS = "No customizations"
MIXED_RESTAURANTS_TITLE = "Mixed Restaurants"
SNAPSHOT_TITLE = "Meal Snapshot"
SUMMARY_SEPARATOR = " • "


def get_session_id(request: Request, response: Response) -> UUID:
    """Read the session cookie, issuing a new session id when absent."""
    container: AppContainer = request.app.state.container
    cookie_name = container.settings.session_cookie_name
    session_id = _parse_uuid(request.cookies.get(cookie_name))
    if session_id is None:
        session_id = uuid4()
        response.set_cookie(
            cookie_name,
            str(session_id),
            max_age=container.settings.cart_session_ttl_seconds,
            httponly=True,
            samesite="lax",
        )
    return session_id


def get_cart(request: Request, session_id: UUID = Depends(get_session_id)) -> CartStore:
    """Return the cart bound to the caller's session."""
    container: AppContainer = request.app.state.container
    return container.cart_sessions.get_cart(session_id)


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    app = FastAPI()
    app.state.container = container

    app.include_router(pages_router)

    @app.exception_handler(CustomizationError)
    async def customization_error_handler(
        request: Request, exc: CustomizationError
    ) -> JSONResponse:
        logger.info(
            "Rejected selection",
            extra={"path": request.url.path, "reason": str(exc)},
        )
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/api/restaurants")
    async def list_restaurants(request: Request) -> dict[str, object]:
        """Return every restaurant grouped by first letter."""
        state_container: AppContainer = request.app.state.container
        groups = state_container.catalog_service.group_restaurants_by_letter()
        return {
            "groups": [
                {
                    "letter": letter,
                    "restaurants": [
                        _serialize_restaurant(restaurant) for restaurant in restaurants
                    ],
                }
                for letter, restaurants in groups
            ]
        }

    @app.get("/api/restaurants/suggest")
    async def suggest_restaurants(
        request: Request,
        q: str | None = None,
        session_id: UUID = Depends(get_session_id),
    ) -> dict[str, object]:
        """Search suggestions, or recent and popular restaurants for a blank query."""
        state_container: AppContainer = request.app.state.container
        catalog = state_container.catalog_service
        recent_ids = state_container.recent_service.list_ids(session_id)
        return {
            "query": q or "",
            "recent": [
                _serialize_restaurant(restaurant)
                for restaurant in catalog.resolve_restaurants(recent_ids)
            ],
            "suggestions": [
                _serialize_restaurant(restaurant)
                for restaurant in catalog.suggestions(q, recent_ids)
            ],
        }

    @app.delete("/api/recent/{restaurant_id}")
    async def remove_recent(
        restaurant_id: str,
        request: Request,
        session_id: UUID = Depends(get_session_id),
    ) -> dict[str, object]:
        """Forget a recently viewed restaurant."""
        state_container: AppContainer = request.app.state.container
        remaining = state_container.recent_service.remove(session_id, restaurant_id)
        return {
            "recent": [
                _serialize_restaurant(restaurant)
                for restaurant in state_container.catalog_service.resolve_restaurants(
                    remaining
                )
            ]
        }

    @app.get("/api/restaurants/{restaurant_id}")
    async def restaurant_detail(
        restaurant_id: str,
        request: Request,
        session_id: UUID = Depends(get_session_id),
    ) -> dict[str, object]:
        """Restaurant header data and featured picks; records the visit."""
        state_container: AppContainer = request.app.state.container
        restaurant, menu = _require_menu(state_container.catalog_service, restaurant_id)
        state_container.recent_service.record_visit(session_id, restaurant.id)
        rows = rankable(expand_for_ranking(menu.items))
        return {
            "restaurant": _serialize_restaurant(restaurant),
            "featured": [
                {"label": pick.label, "item": _serialize_row(pick.item)}
                for pick in featured_picks(rows)
            ],
            "sections": [
                {
                    "key": key,
                    "heading": category_heading(key),
                    "anchor": section_anchor(key),
                }
                for key in ordered_sections(menu.items)
            ],
        }

    @app.get("/api/restaurants/{restaurant_id}/menu")
    async def restaurant_menu(  # noqa: PLR0913
        restaurant_id: str,
        request: Request,
        view: ViewOption = ViewOption.MENU,
        sort: SortOption = SortOption.HIGHEST_PROTEIN,
        protein_min: float | None = Query(default=None, ge=0),
        calories_max: float | None = Query(default=None, ge=0),
        q: str | None = None,
        include_sides_drinks: bool = False,
        include_large_shareables: bool = False,
        limit: int | None = Query(default=None, ge=1),
    ) -> dict[str, object]:
        """Menu sections or macro rankings for a restaurant."""
        state_container: AppContainer = request.app.state.container
        restaurant, menu = _require_menu(state_container.catalog_service, restaurant_id)
        filters = Filters(protein_min=protein_min, calories_max=calories_max, query=q)
        payload: dict[str, object] = {
            "restaurant": _serialize_restaurant(restaurant),
            "view": view.value,
            "sort": sort.value,
        }
        if view is ViewOption.TOP:
            picks = top_picks(
                menu.items,
                include_sides_drinks=include_sides_drinks,
                include_large_shareables=include_large_shareables,
                filters=filters,
                limit=limit or state_container.settings.ranking_page_size,
            )
            payload["top_picks"] = {
                SortOption.HIGHEST_PROTEIN.value: [
                    _serialize_row(row) for row in picks.highest_protein
                ],
                SortOption.BEST_RATIO.value: [
                    _serialize_row(row) for row in picks.best_ratio
                ],
                SortOption.LOWEST_CALORIES.value: [
                    _serialize_row(row) for row in picks.lowest_calories
                ],
            }
            empty = not picks.highest_protein
        else:
            sections = menu_sections(apply_filters(menu.items, filters), sort)
            payload["sections"] = [
                {
                    "key": section.key,
                    "heading": section.heading,
                    "anchor": section.anchor,
                    "items": [_serialize_row(item) for item in section.items],
                }
                for section in sections
            ]
            empty = not sections
        payload["empty"] = empty
        payload["message"] = EMPTY_FILTERS_MESSAGE if empty else None
        return payload

    @app.get("/api/restaurants/{restaurant_id}/items/{item_key}")
    async def item_detail(
        restaurant_id: str, item_key: str, request: Request
    ) -> dict[str, object]:
        """Item with its variants, add-on sections and applicable common changes."""
        state_container: AppContainer = request.app.state.container
        catalog = state_container.catalog_service
        _, menu = _require_menu(catalog, restaurant_id)
        item = _require_item(catalog, restaurant_id, item_key)
        return _serialize_item(item, menu)

    @app.post("/api/restaurants/{restaurant_id}/items/{item_key}/customize")
    async def customize_item(
        restaurant_id: str,
        item_key: str,
        payload: SelectionPayload,
        request: Request,
    ) -> dict[str, object]:
        """Effective nutrition of an item under a selection."""
        state_container: AppContainer = request.app.state.container
        catalog = state_container.catalog_service
        _, menu = _require_menu(catalog, restaurant_id)
        item = _require_item(catalog, restaurant_id, item_key)
        selection = resolve_selection(
            item,
            menu,
            variant_id=payload.variant_id,
            addons=payload.addons,
            common_change_ids=payload.common_change_ids,
        )
        result = compute_customization(item, selection)
        return {
            "item_id": item.item_key,
            "selection": _serialize_selection(selection),
            "base": _serialize_nutrition(result.base),
            "delta": _serialize_delta(result.delta),
            "nutrition": _serialize_nutrition(result.nutrition),
            "ratio": format_ratio(result.ratio),
            "options_label": options_label(selection),
            "customizations": list(customization_labels(selection)),
            "modified": has_modifications(selection),
        }

    @app.get("/api/cart")
    async def read_cart(cart: CartStore = Depends(get_cart)) -> dict[str, object]:
        """Current cart lines and derived totals."""
        return _serialize_cart(cart)

    @app.post("/api/cart/items", status_code=201)
    async def add_cart_item(
        payload: AddToCartPayload,
        request: Request,
        cart: CartStore = Depends(get_cart),
    ) -> dict[str, object]:
        """Add a configured item, merging with an identical line."""
        state_container: AppContainer = request.app.state.container
        catalog = state_container.catalog_service
        _, menu = _require_menu(catalog, payload.restaurant_id)
        item = _require_item(catalog, payload.restaurant_id, payload.item_id)
        selection = resolve_selection(
            item,
            menu,
            variant_id=payload.variant_id,
            addons=payload.addons,
            common_change_ids=payload.common_change_ids,
        )
        line = cart.add_item(
            build_line(payload.restaurant_id, item, selection, payload.quantity)
        )
        logger.info(
            "Cart item added",
            extra={"line_id": str(line.id), "quantity": line.quantity},
        )
        return {"line": _serialize_line(line), "cart": _serialize_cart(cart)}

    @app.patch("/api/cart/items/{line_id}")
    async def update_cart_item(
        line_id: UUID,
        payload: QuantityPayload,
        cart: CartStore = Depends(get_cart),
    ) -> dict[str, object]:
        """Change a line's quantity; zero or less removes it."""
        cart.update_quantity(line_id, payload.quantity)
        return _serialize_cart(cart)

    @app.put("/api/cart/items/{line_id}")
    async def reconfigure_cart_item(
        line_id: UUID,
        payload: SelectionPayload,
        request: Request,
        cart: CartStore = Depends(get_cart),
    ) -> dict[str, object]:
        """Replace a line's configuration, keeping its quantity."""
        state_container: AppContainer = request.app.state.container
        catalog = state_container.catalog_service
        current = cart.state.find(line_id)
        if current is None:
            raise HTTPException(status_code=404, detail="Cart item not found")
        _, menu = _require_menu(catalog, current.restaurant_id)
        item = _require_item(catalog, current.restaurant_id, current.item_id)
        selection = resolve_selection(
            item,
            menu,
            variant_id=payload.variant_id,
            addons=payload.addons,
            common_change_ids=payload.common_change_ids,
        )
        cart.reconfigure_item(
            line_id, build_line(current.restaurant_id, item, selection)
        )
        return _serialize_cart(cart)

    @app.delete("/api/cart/items/{line_id}")
    async def remove_cart_item(
        line_id: UUID, cart: CartStore = Depends(get_cart)
    ) -> dict[str, object]:
        """Remove a line; unknown ids are ignored."""
        cart.remove_item(line_id)
        return _serialize_cart(cart)

    @app.delete("/api/cart")
    async def clear_cart(cart: CartStore = Depends(get_cart)) -> dict[str, object]:
        """Empty the cart."""
        cart.clear_cart()
        return _serialize_cart(cart)

    @app.get("/api/cart/snapshot")
    async def cart_snapshot(
        request: Request, cart: CartStore = Depends(get_cart)
    ) -> dict[str, object]:
        """Shareable meal summary with a full nutrition label."""
        state_container: AppContainer = request.app.state.container
        catalog = state_container.catalog_service
        state = cart.state
        return {
            "title": _snapshot_title(state, catalog),
            "item_count": state.item_count,
            "lines": [
                {
                    **_serialize_line(line),
                    "summary": _format_line_summary(line),
                }
                for line in state.items
            ],
            "totals": _serialize_totals(nutrition_totals(state.items, catalog)),
        }

    return app


def _parse_uuid(value: str | None) -> UUID | None:
    if not value:
        return None
    try:
        return UUID(value)
    except ValueError:
        return None


def _require_menu(
    catalog: CatalogService, restaurant_id: str
) -> tuple[Restaurant, RestaurantMenu]:
    restaurant = catalog.get_restaurant(restaurant_id)
    menu = catalog.get_menu(restaurant_id)
    if restaurant is None or menu is None:
        raise HTTPException(status_code=404, detail="Restaurant not found")
    return restaurant, menu


def _require_item(
    catalog: CatalogService, restaurant_id: str, item_key: str
) -> MenuItem:
    item = catalog.find_item(restaurant_id, item_key)
    if item is None:
        raise HTTPException(status_code=404, detail="Item not found")
    return item


def _serialize_restaurant(restaurant: Restaurant) -> dict[str, object]:
    return {"id": restaurant.id, "name": restaurant.name, "logo": restaurant.logo}


def _serialize_nutrition(nutrition: Nutrition) -> dict[str, object]:
    return nutrition.model_dump(exclude_none=True)


def _serialize_macros(macros: Macros) -> dict[str, float]:
    return {
        "calories": macros.calories,
        "protein": macros.protein,
        "carbs": macros.carbs,
        "fat": macros.fat,
    }


def _serialize_delta(delta: Macros) -> dict[str, object]:
    values = _serialize_macros(delta)
    return {
        "values": values,
        "labels": {name: _format_delta(value) for name, value in values.items()},
    }


def _serialize_totals(totals: NutritionTotals) -> dict[str, object]:
    return {
        "calories": totals.calories,
        "protein": totals.protein,
        "carbs": totals.carbs,
        "total_fat": totals.total_fat,
        "optional": dict(totals.optional),
    }


def _serialize_row(item: MenuItem) -> dict[str, object]:
    """Ranking or section row, showing its default or display variant."""
    variant = default_variant(item)
    nutrition = effective_nutrition(item)
    return {
        "key": row_key(item),
        "id": item.item_key,
        "name": item.name,
        "category": item.category,
        "image": item.image,
        "portion_type": item.portion_type.value,
        "variant_id": variant.id if variant else None,
        "variant_label": variant.label if variant else None,
        "variants": [
            {
                "id": option.id,
                "label": option.label,
                "portion_type": (option.portion_type or item.portion_type).value,
                "nutrition": _serialize_nutrition(option.nutrition),
            }
            for option in item.variants
        ],
        "nutrition": _serialize_nutrition(nutrition),
        "ratio": format_ratio(
            calories_per_protein(nutrition.calories, nutrition.protein)
        ),
    }


def _serialize_item(item: MenuItem, menu: RestaurantMenu) -> dict[str, object]:
    payload = _serialize_row(item)
    payload["addon_sections"] = [
        {
            "kind": section.kind.value,
            "title": section.title,
            "options": [
                {
                    "name": option.name,
                    "calories": option.calories,
                    "protein": option.protein,
                    "carbs": option.carbs,
                    "fat": option.fat,
                    "image": option.image,
                }
                for option in section.options
            ],
        }
        for section in addon_sections(item, menu)
    ]
    payload["common_changes"] = [
        {
            "id": change.id,
            "label": change.label,
            "delta": change.delta.model_dump(),
        }
        for change in applicable_common_changes(item, menu.common_changes)
    ]
    return payload


def _serialize_selection(selection: Selection) -> dict[str, object]:
    return {
        "variant_id": selection.variant.id if selection.variant else None,
        "addons": {
            kind.value: option.name for kind, option in selection.addons.items()
        },
        "common_change_ids": list(selection.common_change_ids),
    }


def _serialize_line(line: CartLineItem) -> dict[str, object]:
    return {
        "id": str(line.id),
        "restaurant_id": line.restaurant_id,
        "item_id": line.item_id,
        "name": line.name,
        "quantity": line.quantity,
        "variant_id": line.variant_id,
        "variant_label": line.variant_label,
        "addon_keys": list(line.addon_keys),
        "common_change_ids": list(line.common_change_ids),
        "options_label": line.options_label,
        "customizations": list(line.customizations),
        "macros_per_item": _serialize_macros(line.macros_per_item),
        "line_macros": _serialize_macros(line.line_macros),
    }


def _serialize_cart(cart: CartStore) -> dict[str, object]:
    state = cart.state
    return {
        "items": [_serialize_line(line) for line in state.items],
        "item_count": state.item_count,
        "restaurant_ids": list(state.restaurant_ids),
        "totals": _serialize_macros(cart.totals()),
        "last_added": _serialize_line(state.last_added) if state.last_added else None,
        "last_added_at": (
            state.last_added_at.isoformat() if state.last_added_at else None
        ),
    }


def _snapshot_title(state: CartState, catalog: CatalogService) -> str:
    restaurant_ids = state.restaurant_ids
    if len(restaurant_ids) > 1:
        return MIXED_RESTAURANTS_TITLE
    if restaurant_ids:
        restaurant = catalog.get_restaurant(restaurant_ids[0])
        if restaurant is not None:
            return restaurant.name
    return SNAPSHOT_TITLE


def _format_line_summary(line: CartLineItem) -> str:
    parts = [line.variant_label, line.options_label, *line.customizations]
    unique = [part for part in dict.fromkeys(parts) if part]
    return SUMMARY_SEPARATOR.join(unique) if unique else NO_CUSTOMIZATIONS


def _format_delta(value: float) -> str:
    if not value:
        return "0"
    return f"{value:+g}"
