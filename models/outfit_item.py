"""Outfit and liked-item data models and helpers."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from models.taxonomy import UI_CATEGORIES, derive_category, validate_category
from models.wire import CatalogItemPayload, LikedItemPayload


@dataclass(frozen=True)
class OutfitItem:
    """A catalog entry. Immutable once fetched."""

    id: int
    description: str = ""
    price: str = ""
    image_url: str = ""
    color_hex: str = ""
    color_name: str = ""
    product_url: str = ""
    detail_description: str = ""
    type: str = ""
    personal_color_type: str = ""
    popularity: float = 0.0


@dataclass(frozen=True)
class LikedItem(OutfitItem):
    """An outfit item the user swiped right on, bucketed into a UI category."""

    category: str = "Top"
    liked_at: str = ""
    item_id: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "category", validate_category(self.category))

    @property
    def key(self) -> Tuple[int, str]:
        return (self.id, self.category)

    @property
    def remote_id(self) -> str:
        """Identifier used by the delete endpoint."""

        return self.item_id or str(self.id)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


_OUTFIT_FIELDS = tuple(f.name for f in fields(OutfitItem))


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def outfit_from_payload(raw: Dict[str, Any]) -> OutfitItem:
    """Build an :class:`OutfitItem` from a raw catalog record."""

    payload = CatalogItemPayload.model_validate(raw)
    return OutfitItem(**payload.model_dump(include=set(_OUTFIT_FIELDS)))


def like_item(item: OutfitItem, category: Optional[str] = None, liked_at: Optional[str] = None) -> LikedItem:
    """Promote a catalog item to a :class:`LikedItem`."""

    values = {name: getattr(item, name) for name in _OUTFIT_FIELDS}
    return LikedItem(
        **values,
        category=category or derive_category(item.type),
        liked_at=liked_at or _now_iso(),
    )


def liked_from_payload(raw: Dict[str, Any]) -> LikedItem:
    """Build a :class:`LikedItem` from a liked-item record of either store."""

    payload = LikedItemPayload.model_validate(raw)
    values = payload.model_dump(include=set(_OUTFIT_FIELDS))
    category = payload.category
    if category:
        try:
            category = validate_category(category)
        except ValueError:
            category = None
    return LikedItem(
        **values,
        category=category or derive_category(payload.type),
        liked_at=payload.liked_at,
        item_id=payload.item_id,
    )


def group_by_category(items: Iterable[LikedItem]) -> Dict[str, List[LikedItem]]:
    """Split liked items into the three tab buckets, preserving order."""

    grouped: Dict[str, List[LikedItem]] = {category: [] for category in UI_CATEGORIES}
    for item in items:
        grouped[item.category].append(item)
    return grouped


def dedupe_liked(items: Iterable[LikedItem]) -> List[LikedItem]:
    """Keep the first record for each ``(id, category)`` pair."""

    seen = set()
    unique: List[LikedItem] = []
    for item in items:
        if item.key in seen:
            continue
        seen.add(item.key)
        unique.append(item)
    return unique


__all__ = [
    "LikedItem",
    "OutfitItem",
    "dedupe_liked",
    "group_by_category",
    "like_item",
    "liked_from_payload",
    "outfit_from_payload",
]
