"""Taxonomy, wire normalisation and item model tests."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from models.color_analysis import analysis_from_payload
from models.outfit_item import (
    LikedItem,
    dedupe_liked,
    group_by_category,
    like_item,
    liked_from_payload,
    outfit_from_payload,
)
from models.taxonomy import derive_category, extract_season, subcategories_for, validate_category
from models.wire import extract_try_on_image
from conftest import catalog_record


@pytest.mark.parametrize(
    "garment_type, expected",
    [
        ("Crew T-Shirt", "Top"),
        ("Slim Jeans", "Bottom"),
        ("Running Sneaker", "Shoes"),
        ("Chelsea Boot", "Shoes"),
        ("Cargo Shorts", "Bottom"),
        ("Scarf", "Top"),
        ("", "Top"),
    ],
)
def test_derive_category(garment_type: str, expected: str) -> None:
    assert derive_category(garment_type) == expected


def test_validate_category_is_case_insensitive() -> None:
    assert validate_category("bottom") == "Bottom"
    with pytest.raises(ValueError):
        validate_category("Hats")


def test_subcategories_are_ordered() -> None:
    assert subcategories_for("Top") == ["t-shirts", "shirt", "polos", "outwear"]
    assert subcategories_for("Bottom") == ["trousers", "jeans", "shorts"]
    assert subcategories_for("Shoes") == ["shoes", "sneakers", "boots"]


@pytest.mark.parametrize("alias", ["imageUrl", "ImageURL", "imageURL"])
def test_image_url_aliases(alias: str) -> None:
    record = catalog_record(1)
    del record["imageUrl"]
    record[alias] = "https://cdn.test/alias.jpg"
    assert outfit_from_payload(record).image_url == "https://cdn.test/alias.jpg"


def test_first_image_alias_wins() -> None:
    record = catalog_record(1, ImageURL="https://cdn.test/second.jpg")
    assert outfit_from_payload(record).image_url == "https://cdn.test/1.jpg"


def test_lowercase_id_is_accepted_and_text_coerced() -> None:
    item = outfit_from_payload({"id": 7, "Price": 19.9, "Description": None})
    assert item.id == 7
    assert item.price == "19.9"
    assert item.description == ""


def test_missing_id_is_rejected() -> None:
    with pytest.raises(ValidationError):
        outfit_from_payload({"Description": "no id"})


def test_liked_payload_id_from_item_id_digits() -> None:
    item = liked_from_payload({"item_id": "outfit_42", "Type": "Slim Jeans", "likedAt": "2024-05-01"})
    assert item.id == 42
    assert item.category == "Bottom"
    assert item.remote_id == "outfit_42"
    assert item.liked_at == "2024-05-01"


def test_liked_payload_prefers_explicit_category() -> None:
    item = liked_from_payload({"ID": 3, "Type": "Crew T-Shirt", "category": "shoes"})
    assert item.category == "Shoes"


def test_like_item_derives_category() -> None:
    outfit = outfit_from_payload(catalog_record(9, garment_type="Running Sneaker"))
    liked = like_item(outfit)
    assert liked.category == "Shoes"
    assert liked.key == (9, "Shoes")
    assert liked.liked_at


def test_liked_item_round_trips_through_dict() -> None:
    liked = like_item(outfit_from_payload(catalog_record(5)), liked_at="2024-01-01T00:00:00+00:00")
    assert liked_from_payload(liked.to_dict()) == liked


def test_group_and_dedupe() -> None:
    items = [
        LikedItem(id=1, category="Top"),
        LikedItem(id=1, category="Top", description="duplicate"),
        LikedItem(id=1, category="Bottom"),
        LikedItem(id=2, category="Shoes"),
    ]
    unique = dedupe_liked(items)
    assert [item.key for item in unique] == [(1, "Top"), (1, "Bottom"), (2, "Shoes")]
    grouped = group_by_category(unique)
    assert list(grouped) == ["Top", "Bottom", "Shoes"]
    assert [item.id for item in grouped["Bottom"]] == [1]


def test_try_on_image_field_order() -> None:
    payload = {"result": "second", "try_on_full_outfit_on_sequential_image": "first"}
    assert extract_try_on_image(payload) == "first"
    assert extract_try_on_image({"image": ""}) is None


def test_analysis_from_payload_normalises_percent_and_season() -> None:
    result = analysis_from_payload({"confidence": 87, "personal_color_type": "Deep Autumn"})
    assert result.confidence == pytest.approx(0.87)
    assert result.confidence_percent == 87
    assert result.season == "autumn"
    assert extract_season("Light Summer") == "summer"


def test_liked_row_id_does_not_shadow_outfit_item_id() -> None:
    item = liked_from_payload(
        {"id": 7, "item_id": "123", "created_at": "2024-06-01T10:00:00Z", "Type": "Crew T-Shirt"}
    )
    assert item.id == 123
    assert item.key == (123, "Top")
    assert item.remote_id == "123"
    assert item.liked_at == "2024-06-01T10:00:00Z"


def test_bare_id_used_when_item_id_absent() -> None:
    assert liked_from_payload({"id": 7, "Type": "Slim Jeans"}).id == 7
    assert liked_from_payload({"ID": 9, "item_id": "123"}).id == 9
