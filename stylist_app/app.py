"""Stylist client bootstrap."""

import logging
from pathlib import Path
import threading
from typing import Callable, Dict, List, Optional

import requests

from agents.try_on_orchestrator import TryOnOrchestrator
from logic.outfit_selection import SelectionSet
from logic.pagination import PaginationBuffer
from logic.swipe_engine import SwipeEngine
from memory.liked_store import LikedItemsStore, build_liked_store
from models.outfit_item import LikedItem, OutfitItem
from models.taxonomy import validate_category
from stylist_app.config import StylistConfig
from stylist_app.logging_config import configure_logging, get_logger, log_event, operation_context
from tools.api_client import StylistApiClient
from tools.background import BackgroundTaskRunner, RetryPolicy
from tools.catalog_client import CatalogClient
from tools.color_analysis import ColorAnalysisClient


LOGGER = get_logger(__name__)


class StylistApp:
    """Wires the catalog, deck, liked-items store and try-on flow to one config."""

    def __init__(
        self,
        config: StylistConfig | None = None,
        session: requests.Session | None = None,
        runner: BackgroundTaskRunner | None = None,
        viewport_width: float = 390.0,
    ) -> None:
        self.config = config or StylistConfig.from_env()
        configure_logging()

        self.api = StylistApiClient(self.config, session=session)
        self.catalog = CatalogClient(self.api)
        self.buffer = PaginationBuffer(
            self.catalog,
            page_size=self.config.page_size,
            preload_threshold=self.config.preload_threshold,
        )
        self.liked_store: LikedItemsStore = build_liked_store(self.config, self.api)
        self.runner = runner or BackgroundTaskRunner(
            default_policy=RetryPolicy(
                max_attempts=self.config.like_max_attempts,
                backoff_seconds=self.config.retry_backoff_seconds,
            )
        )
        self.deck = SwipeEngine(
            self.buffer, store=self.liked_store, runner=self.runner, viewport_width=viewport_width
        )
        self.selection = SelectionSet()
        self.try_on = TryOnOrchestrator(self.api, selection=self.selection)
        self.color_analysis = ColorAnalysisClient(self.api)

    def open_deck(self, color_type: str, category: str) -> Optional[OutfitItem]:
        """Start swiping through a colour type's catalog for one tab."""

        with operation_context("app:open_deck") as correlation_id:
            item = self.deck.start(color_type, category)
            log_event(
                LOGGER,
                level=logging.INFO,
                event="deck_opened",
                color_type=color_type,
                category=category,
                subcategory=self.buffer.current_subcategory,
                visible=len(self.buffer.visible),
                correlation_id=correlation_id,
            )
            return item

    def change_category(self, category: str) -> Optional[OutfitItem]:
        self.selection.clear()
        return self.deck.change_category(category)

    def liked_items(self) -> Dict[str, List[LikedItem]]:
        return self.liked_store.grouped()

    def find_liked(self, category: str, item_id: int) -> Optional[LikedItem]:
        category = validate_category(category)
        for item in self.liked_store.list():
            if item.key == (item_id, category):
                return item
        return None

    def remove_liked(self, category: str, item_id: int) -> bool:
        item = self.find_liked(category, item_id)
        if item is None:
            return False
        selected = self.selection.get(item.category)
        if selected is not None and selected.key == item.key:
            self.selection.deselect(item.category)
        return self.liked_store.remove(item)

    def select_for_try_on(self, category: str, item_id: int) -> bool:
        item = self.find_liked(category, item_id)
        if item is None:
            return False
        self.selection.select(item)
        return True

    def generate_try_on(
        self,
        user_photo: str | Path,
        on_progress: Callable[[int], None] | None = None,
        cancel: threading.Event | None = None,
    ) -> str:
        return self.try_on.generate_full_outfit(user_photo, on_progress=on_progress, cancel=cancel)

    def shutdown(self) -> None:
        """Let pending best-effort likes finish before exiting."""

        self.runner.shutdown(wait_for_tasks=True)


__all__ = ["StylistApp"]
