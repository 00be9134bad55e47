"""Model package exports."""

from models.taxonomy import *  # noqa: F401,F403
from models.outfit_item import (
    LikedItem,
    OutfitItem,
    group_by_category,
    like_item,
    liked_from_payload,
    outfit_from_payload,
)

__all__ = [
    "LikedItem",
    "OutfitItem",
    "group_by_category",
    "like_item",
    "liked_from_payload",
    "outfit_from_payload",
]
