"""Tests for the JSON catalog repository."""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from protein_finder.adapters.json_catalog_repository import JsonCatalogRepository
from protein_finder.domain.catalog import AddonKind, PortionType
from protein_finder.services.catalog import CatalogService
from protein_finder.services.customization import default_variant


def test_packaged_catalog_loads_every_menu() -> None:
    repository = JsonCatalogRepository.load()

    restaurant_ids = [restaurant.id for restaurant in repository.list_restaurants()]
    assert restaurant_ids == ["chickfila", "chipotle", "mcdonalds", "panda"]
    for restaurant_id in restaurant_ids:
        assert repository.get_menu(restaurant_id) is not None


def test_packaged_menu_parses_camel_case_fields() -> None:
    service = CatalogService(JsonCatalogRepository.load())

    nuggets = service.find_item("chickfila", "nuggets")
    menu = service.get_menu("chickfila")

    assert default_variant(nuggets).id == "8ct"
    assert AddonKind.SAUCES in nuggets.addon_refs
    assert menu.addons[AddonKind.SAUCES]
    assert any(v.portion_type is PortionType.SHAREABLE for v in nuggets.variants)


def _write_catalog(root: Path, menus: dict[str, str | None]) -> None:
    index = [
        {
            "id": restaurant_id,
            "name": restaurant_id.title(),
            "menuFile": f"{restaurant_id}.json",
        }
        for restaurant_id in menus
    ]
    (root / "index.json").write_text(json.dumps(index), encoding="utf-8")
    for restaurant_id, content in menus.items():
        if content is not None:
            (root / f"{restaurant_id}.json").write_text(content, encoding="utf-8")


def test_broken_menus_are_skipped(tmp_path: Path) -> None:
    valid = json.dumps(
        {
            "items": [
                {
                    "id": "taco",
                    "name": "Taco",
                    "category": "Entrees",
                    "nutrition": {
                        "calories": 170,
                        "protein": 8,
                        "totalFat": 9,
                        "carbs": 13,
                    },
                }
            ]
        }
    )
    _write_catalog(
        tmp_path,
        {
            "good": valid,
            "malformed": "{not json",
            "invalid": '{"items": [{}]}',
            "gone": None,
        },
    )

    repository = JsonCatalogRepository.load(tmp_path)
    service = CatalogService(repository)

    assert len(repository.list_restaurants()) == 4
    assert service.find_item("good", "taco").nutrition.total_fat == 9
    assert service.get_menu("malformed") is None
    assert service.get_menu("invalid") is None
    assert service.get_menu("gone") is None


def test_missing_index_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        JsonCatalogRepository.load(tmp_path)


def test_invalid_index_raises(tmp_path: Path) -> None:
    (tmp_path / "index.json").write_text('[{"id": "x"}]', encoding="utf-8")

    with pytest.raises(ValidationError):
        JsonCatalogRepository.load(tmp_path)
