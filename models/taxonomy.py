"""Canonical taxonomy for the swipe deck.

This module centralises the UI categories shown as tabs, the ordered backend
subcategory tokens behind each tab, and the keyword heuristic used to place a
garment type string into a UI category. Helper functions keep validation
consistent across the catalog client, liked-items stores and try-on flow.
"""

from typing import Dict, List, Optional, Tuple

TOP = "Top"
BOTTOM = "Bottom"
SHOES = "Shoes"

UI_CATEGORIES: Tuple[str, ...] = (TOP, BOTTOM, SHOES)

# Order matters: the deck walks these tokens front to back.
SUBCATEGORIES: Dict[str, List[str]] = {
    TOP: ["t-shirts", "shirt", "polos", "outwear"],
    BOTTOM: ["trousers", "jeans", "shorts"],
    SHOES: ["shoes", "sneakers", "boots"],
}

# Checked in order; the first category with a matching keyword wins.
CATEGORY_KEYWORDS: List[Tuple[str, Tuple[str, ...]]] = [
    (TOP, ("shirt", "top", "polo", "outwear")),
    (BOTTOM, ("trouser", "jean", "short")),
    (SHOES, ("shoe", "sneaker", "boot")),
]

DEFAULT_CATEGORY = TOP

SEASONS = ("spring", "summer", "autumn", "winter")


def _normalize_key(value: str) -> str:
    """Normalise a free-form string into a lookup key."""

    return value.strip().lower()


def validate_category(value: str) -> str:
    """Validate a UI category, returning its canonical spelling.

    Raises a :class:`ValueError` if the value is not one of the tabs.
    """

    key = _normalize_key(value)
    for category in UI_CATEGORIES:
        if category.lower() == key:
            return category
    raise ValueError(f"Unsupported category '{value}'. Allowed: {list(UI_CATEGORIES)}")


def subcategories_for(category: str) -> List[str]:
    """Return the ordered backend subcategory tokens for a UI category."""

    return list(SUBCATEGORIES[validate_category(category)])


def derive_category(garment_type: Optional[str]) -> str:
    """Place a garment type string into a UI category by substring matching.

    ``"Crew T-Shirt"`` is a Top, ``"Slim Jeans"`` a Bottom and
    ``"Running Sneaker"`` Shoes. Anything unrecognised falls back to Top.
    """

    key = _normalize_key(garment_type or "")
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in key for keyword in keywords):
            return category
    return DEFAULT_CATEGORY


def extract_season(personal_color_type: Optional[str]) -> Optional[str]:
    """Pull the season word out of a label such as ``"Deep Autumn"``."""

    key = _normalize_key(personal_color_type or "")
    for season in SEASONS:
        if season in key:
            return season
    return None


__all__ = [
    "BOTTOM",
    "CATEGORY_KEYWORDS",
    "DEFAULT_CATEGORY",
    "SEASONS",
    "SHOES",
    "SUBCATEGORIES",
    "TOP",
    "UI_CATEGORIES",
    "derive_category",
    "extract_season",
    "subcategories_for",
    "validate_category",
]
