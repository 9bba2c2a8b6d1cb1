"""Tests for the JSON API."""

from fastapi.testclient import TestClient

from protein_finder.api.app import create_app
from protein_finder.containers import AppContainer
from protein_finder.services.recent import (
    InMemoryRecentRestaurantsRepository,
    RecentRestaurantsService,
)
from tests.conftest import FailingRecentRestaurantsRepository


def _client(container: AppContainer) -> TestClient:
    return TestClient(create_app(container))


def _add(client: TestClient, item_id: str, **payload: object) -> dict:
    response = client.post(
        "/api/cart/items",
        json={"restaurant_id": "burger-barn", "item_id": item_id, **payload},
    )
    assert response.status_code == 201
    return response.json()


def test_health(container: AppContainer) -> None:
    response = _client(container).get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_list_restaurants_grouped_by_letter(container: AppContainer) -> None:
    data = _client(container).get("/api/restaurants").json()

    assert [group["letter"] for group in data["groups"]] == ["A", "B", "G", "W"]
    assert data["groups"][1]["restaurants"][0]["id"] == "burger-barn"


def test_restaurant_visit_is_recorded_in_suggestions(container: AppContainer) -> None:
    client = _client(container)

    client.get("/api/restaurants/wrap-shack")
    client.get("/api/restaurants/arbys")
    data = client.get("/api/restaurants/suggest").json()

    assert [r["id"] for r in data["recent"]] == ["arbys", "wrap-shack"]
    assert [r["id"] for r in data["suggestions"]][:2] == ["arbys", "wrap-shack"]
    assert "pf_session" in client.cookies


def test_suggest_with_query(container: AppContainer) -> None:
    data = _client(container).get("/api/restaurants/suggest", params={"q": "barn"})

    assert [r["id"] for r in data.json()["suggestions"]] == ["burger-barn"]


def test_remove_recent(container: AppContainer) -> None:
    client = _client(container)
    client.get("/api/restaurants/wrap-shack")

    response = client.delete("/api/recent/wrap-shack")

    assert response.json() == {"recent": []}


def test_recent_storage_failure_does_not_break_pages(container: AppContainer) -> None:
    container.recent_service = RecentRestaurantsService(
        FailingRecentRestaurantsRepository()
    )
    client = _client(container)

    assert client.get("/api/restaurants/burger-barn").status_code == 200
    assert client.get("/api/restaurants/suggest").json()["recent"] == []


def test_cookieless_visits_do_not_accumulate_recent_slots(
    container: AppContainer,
) -> None:
    repository = InMemoryRecentRestaurantsRepository(ttl_seconds=0)
    container.recent_service = RecentRestaurantsService(repository)

    for _ in range(10):
        assert _client(container).get("/api/restaurants/burger-barn").status_code == 200

    assert len(repository._slots) == 1


def test_restaurant_detail_featured_picks(container: AppContainer) -> None:
    data = _client(container).get("/api/restaurants/burger-barn").json()

    assert data["restaurant"]["name"] == "Burger Barn"
    assert [pick["label"] for pick in data["featured"]] == [
        "Best overall",
        "Best protein ratio",
        "Highest protein",
    ]
    assert data["featured"][0]["item"]["key"] == "nuggets::8ct"
    assert data["featured"][0]["item"]["ratio"] == "9:1"
    assert data["sections"][0]["anchor"] == "menu-section-entrees"


def test_unknown_restaurant_is_404(container: AppContainer) -> None:
    client = _client(container)

    assert client.get("/api/restaurants/nowhere").status_code == 404
    assert client.get("/api/restaurants/ghost").status_code == 404
    assert client.get("/api/restaurants/ghost/menu").status_code == 404


def test_menu_view_sections(container: AppContainer) -> None:
    data = (
        _client(container)
        .get("/api/restaurants/burger-barn/menu", params={"sort": "lowest-calories"})
        .json()
    )

    assert data["view"] == "menu"
    assert data["empty"] is False
    assert data["message"] is None
    assert [section["key"] for section in data["sections"]][:3] == [
        "entrees",
        "sandwiches",
        "salads",
    ]
    kids = next(s for s in data["sections"] if s["key"] == "kids")
    assert [variant["id"] for variant in kids["items"][0]["variants"]] == ["5ct"]


def test_top_view_with_limit_and_flags(container: AppContainer) -> None:
    data = (
        _client(container)
        .get(
            "/api/restaurants/burger-barn/menu",
            params={
                "view": "top",
                "limit": 1,
                "include_large_shareables": "true",
            },
        )
        .json()
    )

    assert [row["key"] for row in data["top_picks"]["highest-protein"]] == [
        "nuggets::30ct"
    ]
    assert [row["key"] for row in data["top_picks"]["lowest-calories"]] == [
        "nuggets::5ct"
    ]


def test_top_view_defaults_to_page_size(container: AppContainer) -> None:
    container.settings.ranking_page_size = 2
    data = (
        _client(container)
        .get("/api/restaurants/burger-barn/menu", params={"view": "top"})
        .json()
    )

    assert len(data["top_picks"]["best-ratio"]) == 2


def test_menu_filters_with_no_matches(container: AppContainer) -> None:
    data = (
        _client(container)
        .get(
            "/api/restaurants/burger-barn/menu",
            params={"protein_min": 200, "calories_max": 100},
        )
        .json()
    )

    assert data["empty"] is True
    assert data["sections"] == []
    assert data["message"] == (
        "No items match these filters. "
        "Try lowering protein minimum or increasing calories."
    )


def test_invalid_sort_is_rejected(container: AppContainer) -> None:
    response = _client(container).get(
        "/api/restaurants/burger-barn/menu", params={"sort": "tastiest"}
    )

    assert response.status_code == 422


def test_item_detail_lists_options(container: AppContainer) -> None:
    data = (
        _client(container).get("/api/restaurants/burger-barn/items/grilled-sandwich")
    ).json()

    assert [o["name"] for o in data["addon_sections"][0]["options"]] == [
        "None",
        "Honey Mustard",
        "Ranch",
    ]
    assert [change["id"] for change in data["common_changes"]] == ["no-bun"]


def test_customize_item(container: AppContainer) -> None:
    response = _client(container).post(
        "/api/restaurants/burger-barn/items/grilled-sandwich/customize",
        json={"addons": {"sauces": "Ranch"}, "common_change_ids": ["no-bun"]},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["nutrition"]["calories"] == 380
    assert data["nutrition"]["sodium"] == 970
    assert data["delta"]["labels"] == {
        "calories": "-10",
        "protein": "-5",
        "carbs": "-27",
        "fat": "+13",
    }
    assert data["ratio"] == "17:1"
    assert data["customizations"] == ["No bun"]
    assert data["modified"] is True


def test_customize_rejects_unknown_option(container: AppContainer) -> None:
    response = _client(container).post(
        "/api/restaurants/burger-barn/items/grilled-sandwich/customize",
        json={"addons": {"sauces": "Sriracha"}},
    )

    assert response.status_code == 422
    assert "Sriracha" in response.json()["detail"]


def test_customize_unknown_item_is_404(container: AppContainer) -> None:
    response = _client(container).post(
        "/api/restaurants/burger-barn/items/nothing/customize", json={}
    )

    assert response.status_code == 404


def test_cart_flow(container: AppContainer) -> None:
    client = _client(container)

    first = _add(client, "grilled-sandwich", addons={"sauces": "Ranch"})
    second = _add(client, "grilled-sandwich", addons={"sauces": "Ranch"}, quantity=2)
    _add(client, "nuggets", variant_id="5ct")

    assert first["line"]["id"] == second["line"]["id"]
    cart = client.get("/api/cart").json()
    assert cart["item_count"] == 4
    assert len(cart["items"]) == 2
    assert cart["totals"]["calories"] == 3 * 530 + 150
    assert cart["last_added"]["variant_id"] == "5ct"

    line_id = first["line"]["id"]
    cart = client.patch(f"/api/cart/items/{line_id}", json={"quantity": 1}).json()
    assert cart["totals"]["calories"] == 530 + 150

    cart = client.patch(f"/api/cart/items/{line_id}", json={"quantity": 0}).json()
    assert [line["item_id"] for line in cart["items"]] == ["nuggets"]

    cart = client.delete("/api/cart").json()
    assert cart["items"] == []
    assert cart["totals"] == {"calories": 0, "protein": 0, "carbs": 0, "fat": 0}


def test_cart_is_scoped_to_session(container: AppContainer) -> None:
    first = _client(container)
    second = _client(container)

    _add(first, "fries")

    assert first.get("/api/cart").json()["item_count"] == 1
    assert second.get("/api/cart").json()["item_count"] == 0


def test_add_to_cart_validation(container: AppContainer) -> None:
    client = _client(container)

    zero = client.post(
        "/api/cart/items",
        json={"restaurant_id": "burger-barn", "item_id": "fries", "quantity": 0},
    )
    unknown = client.post(
        "/api/cart/items",
        json={"restaurant_id": "burger-barn", "item_id": "milkshake"},
    )
    bad_variant = client.post(
        "/api/cart/items",
        json={"restaurant_id": "burger-barn", "item_id": "nuggets", "variant_id": "1"},
    )

    assert zero.status_code == 422
    assert unknown.status_code == 404
    assert bad_variant.status_code == 422
    assert client.get("/api/cart").json()["items"] == []


def test_unknown_line_ids_are_ignored(container: AppContainer) -> None:
    client = _client(container)
    _add(client, "fries")
    missing = "00000000-0000-0000-0000-000000000000"

    removed = client.delete(f"/api/cart/items/{missing}")
    updated = client.patch(f"/api/cart/items/{missing}", json={"quantity": 4})

    assert removed.json()["item_count"] == 1
    assert updated.json()["item_count"] == 1
    assert client.put(f"/api/cart/items/{missing}", json={}).status_code == 404


def test_reconfigure_cart_item(container: AppContainer) -> None:
    client = _client(container)
    line = _add(client, "grilled-sandwich", quantity=2)["line"]

    cart = client.put(
        f"/api/cart/items/{line['id']}", json={"common_change_ids": ["no-bun"]}
    ).json()

    assert len(cart["items"]) == 1
    assert cart["items"][0]["quantity"] == 2
    assert cart["items"][0]["customizations"] == ["No bun"]
    assert cart["totals"]["calories"] == 2 * 240


def test_snapshot_single_restaurant(container: AppContainer) -> None:
    client = _client(container)
    _add(client, "nuggets", variant_id="5ct", addons={"sauces": "Ranch"}, quantity=2)
    _add(client, "grilled-sandwich", common_change_ids=["no-bun"])
    _add(client, "fries")

    data = client.get("/api/cart/snapshot").json()

    assert data["title"] == "Burger Barn"
    assert [line["summary"] for line in data["lines"]] == [
        "5 ct • Ranch",
        "No bun",
        "No customizations",
    ]
    assert data["totals"]["calories"] == 2 * 290 + 240 + 420
    assert data["totals"]["optional"]["sodium"] == 2 * 500 + 770


def test_snapshot_titles(container: AppContainer) -> None:
    client = _client(container)

    assert client.get("/api/cart/snapshot").json()["title"] == "Meal Snapshot"

    _add(client, "fries")
    client.post(
        "/api/cart/items",
        json={"restaurant_id": "wrap-shack", "item_id": "chicken-wrap"},
    )

    assert client.get("/api/cart/snapshot").json()["title"] == "Mixed Restaurants"
