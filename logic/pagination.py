"""Pagination buffer feeding the swipe deck one page at a time."""

from __future__ import annotations

import logging
from typing import List, Optional

from models.outfit_item import OutfitItem
from models.taxonomy import validate_category
from tools.catalog_client import CatalogClient

logger = logging.getLogger(__name__)


class PaginationBuffer:
    """Holds every item fetched for the current subcategory and a visible prefix.

    The buffer walks the backend subcategories of one UI category in order.
    Subcategories that come back empty are skipped without user interaction.
    Once the last one is used up the buffer reports ``exhausted`` and stays
    that way until :meth:`start_over` is called.
    """

    def __init__(self, catalog: CatalogClient, page_size: int = 10, preload_threshold: int = 3) -> None:
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        self.catalog = catalog
        self.page_size = page_size
        self.preload_threshold = preload_threshold
        self.color_type: Optional[str] = None
        self.category: Optional[str] = None
        self.subcategories: List[str] = []
        # Loaded subcategory; the cursor is the next one to fetch.
        self.subcategory_index = -1
        self._cursor = 0
        self.all_items: List[OutfitItem] = []
        self.visible: List[OutfitItem] = []
        self.exhausted = False

    @property
    def current_subcategory(self) -> Optional[str]:
        if 0 <= self.subcategory_index < len(self.subcategories):
            return self.subcategories[self.subcategory_index]
        return None

    @property
    def has_buffered_items(self) -> bool:
        return len(self.visible) < len(self.all_items)

    @property
    def has_more_subcategories(self) -> bool:
        return self._cursor < len(self.subcategories)

    def start(self, color_type: str, category: str) -> bool:
        """Point the buffer at a colour type and UI category and load the first page."""

        self.color_type = color_type
        self.category = validate_category(category)
        self.subcategories = self.catalog.subcategories_for(self.category)
        return self.start_over()

    def start_over(self) -> bool:
        """Explicit reset back to the first subcategory."""

        if self.color_type is None or self.category is None:
            raise RuntimeError("PaginationBuffer.start must be called before start_over")
        self.subcategory_index = -1
        self._cursor = 0
        self.all_items = []
        self.visible = []
        self.exhausted = False
        return self.advance_subcategory()

    def load_next_batch(self) -> bool:
        """Append the next page of buffered items to the visible window.

        Returns ``False`` without touching the window when nothing is buffered.
        """

        if not self.has_buffered_items:
            return False
        start = len(self.visible)
        self.visible.extend(self.all_items[start : start + self.page_size])
        return True

    def advance_subcategory(self, is_retry: bool = False) -> bool:
        """Fetch the next non-empty subcategory and reset the visible window.

        Returns ``False`` when every subcategory has been used up (the buffer is
        then ``exhausted``) or when the fetch was dropped because another one
        was already in flight.
        """

        if self.color_type is None:
            raise RuntimeError("PaginationBuffer.start must be called first")
        while self.has_more_subcategories:
            subcategory = self.subcategories[self._cursor]
            items = self.catalog.fetch_subcategory(self.color_type, subcategory, is_retry=is_retry)
            if items is None:
                return False
            self._cursor += 1
            if not items:
                logger.info(
                    "Subcategory returned no items, moving on",
                    extra={"category": self.category, "subcategory": subcategory},
                )
                continue
            self.subcategory_index = self._cursor - 1
            self.all_items = list(items)
            self.visible = []
            self.load_next_batch()
            return True
        self.exhausted = True
        return False

    def retry_current(self) -> bool:
        """Refetch the subcategory that last failed, bypassing the in-flight guard."""

        return self.advance_subcategory(is_retry=True)

    def should_preload(self, index: int) -> bool:
        return index >= len(self.visible) - self.preload_threshold

    def item_at(self, index: int) -> Optional[OutfitItem]:
        if 0 <= index < len(self.visible):
            return self.visible[index]
        return None

    def next_position(self, index: int) -> Optional[int]:
        """Return the index to show next, or ``None`` when nothing is left.

        Pages in buffered items first, then moves to the next subcategory. A
        subcategory switch resets the window, so the returned index is 0.
        """

        if index < len(self.visible):
            return index
        if self.load_next_batch():
            return index
        if self.exhausted:
            return None
        if self.advance_subcategory():
            return 0
        return None


__all__ = ["PaginationBuffer"]
