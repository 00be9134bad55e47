"""Per-category selection of liked items for a full-outfit try-on."""

from __future__ import annotations

from typing import Dict, List, Optional

from models.outfit_item import LikedItem
from models.taxonomy import BOTTOM, SHOES, TOP, UI_CATEGORIES, validate_category


class SelectionSet:
    """At most one selected liked item per UI category."""

    def __init__(self) -> None:
        self._selected: Dict[str, LikedItem] = {}

    def select(self, item: LikedItem) -> Optional[LikedItem]:
        """Select ``item`` for its category, returning whatever it replaced."""

        previous = self._selected.get(item.category)
        self._selected[item.category] = item
        return previous

    def toggle(self, item: LikedItem) -> bool:
        """Select the item, or deselect it if it is already the selection."""

        current = self._selected.get(item.category)
        if current is not None and current.key == item.key:
            del self._selected[item.category]
            return False
        self._selected[item.category] = item
        return True

    def deselect(self, category: str) -> Optional[LikedItem]:
        return self._selected.pop(validate_category(category), None)

    def get(self, category: str) -> Optional[LikedItem]:
        return self._selected.get(validate_category(category))

    def clear(self) -> None:
        self._selected.clear()

    @property
    def top(self) -> Optional[LikedItem]:
        return self._selected.get(TOP)

    @property
    def bottom(self) -> Optional[LikedItem]:
        return self._selected.get(BOTTOM)

    @property
    def shoes(self) -> Optional[LikedItem]:
        return self._selected.get(SHOES)

    def items(self) -> List[LikedItem]:
        return [self._selected[c] for c in UI_CATEGORIES if c in self._selected]

    def is_empty(self) -> bool:
        return not self._selected

    def is_complete(self) -> bool:
        return all(category in self._selected for category in UI_CATEGORIES)

    def __len__(self) -> int:
        return len(self._selected)


__all__ = ["SelectionSet"]
