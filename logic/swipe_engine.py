"""Swipe deck state machine.

Each card moves through ``IDLE -> DRAGGING -> DECIDING -> ANIMATING ->
COMMITTED`` and back to ``IDLE`` for the next card. A release below the
decision threshold, or an interrupted gesture, returns the card to ``IDLE``
without recording anything. When the pagination buffer has nothing left the
deck parks in ``EXHAUSTED`` until the user starts over.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

from logic.pagination import PaginationBuffer
from memory.liked_store import LikedItemsStore, RemoteLikedItemsStore
from models.outfit_item import LikedItem, OutfitItem, group_by_category, like_item
from tools.background import BackgroundTaskRunner
from tools.errors import StylistApiError

logger = logging.getLogger(__name__)

SWIPE_THRESHOLD_FRACTION = 0.25
VELOCITY_DISPLACEMENT_FRACTION = 0.1
VELOCITY_THRESHOLD = 0.3


class SwipeState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    DECIDING = "deciding"
    ANIMATING = "animating"
    COMMITTED = "committed"
    EXHAUSTED = "exhausted"


class Direction(str, Enum):
    LEFT = "left"
    RIGHT = "right"


@dataclass(frozen=True)
class SwipeDecision:
    item: OutfitItem
    direction: Direction
    index: int


class SwipeEngine:
    """Turns gestures into accept/reject decisions over a pagination buffer.

    Right swipes are kept in an in-session liked list. With a remote store the
    like is sent as a best-effort background task so network latency never
    holds up the deck; with a local store it is written straight away.
    """

    def __init__(
        self,
        buffer: PaginationBuffer,
        store: Optional[LikedItemsStore] = None,
        runner: Optional[BackgroundTaskRunner] = None,
        viewport_width: float = 390.0,
    ) -> None:
        if viewport_width <= 0:
            raise ValueError("viewport_width must be positive")
        self.buffer = buffer
        self.store = store
        self.runner = runner or BackgroundTaskRunner()
        self.viewport_width = viewport_width
        self.state = SwipeState.IDLE
        self.index = 0
        self.position: Tuple[float, float] = (0.0, 0.0)
        self.velocity_x = 0.0
        self.pending_direction: Optional[Direction] = None
        self.liked: List[LikedItem] = []
        self.decisions: List[SwipeDecision] = []
        self.load_error: Optional[StylistApiError] = None

    @property
    def swipe_threshold(self) -> float:
        return self.viewport_width * SWIPE_THRESHOLD_FRACTION

    @property
    def current_item(self) -> Optional[OutfitItem]:
        if self.state is SwipeState.EXHAUSTED:
            return None
        return self.buffer.item_at(self.index)

    def start(self, color_type: str, category: str) -> Optional[OutfitItem]:
        """Open the deck on a colour type and UI category."""

        self._reset_card()
        self.index = 0
        self.load_error = None
        has_items = self.buffer.start(color_type, category)
        self.state = SwipeState.IDLE if has_items else self._empty_state()
        return self.current_item

    def change_category(self, category: str) -> Optional[OutfitItem]:
        if self.buffer.color_type is None:
            raise RuntimeError("SwipeEngine.start must be called first")
        return self.start(self.buffer.color_type, category)

    def start_over(self) -> Optional[OutfitItem]:
        """The only way out of ``EXHAUSTED``: refetch from the first subcategory."""

        self._reset_card()
        self.index = 0
        self.load_error = None
        has_items = self.buffer.start_over()
        self.state = SwipeState.IDLE if has_items else self._empty_state()
        return self.current_item

    def retry(self) -> Optional[OutfitItem]:
        """Retry after a failed subcategory load."""

        self.load_error = None
        if self.buffer.retry_current():
            self.index = 0
            self.state = SwipeState.IDLE
        elif self.buffer.exhausted:
            self.state = SwipeState.EXHAUSTED
        return self.current_item

    # Gestures

    def begin_drag(self) -> bool:
        if self.state is not SwipeState.IDLE or self.current_item is None:
            return False
        self.state = SwipeState.DRAGGING
        return True

    def drag(self, dx: float, dy: float = 0.0, vx: float = 0.0) -> None:
        if self.state is not SwipeState.DRAGGING:
            return
        self.position = (dx, dy)
        self.velocity_x = vx

    def release(self) -> Optional[Direction]:
        """End a drag; returns the direction if a decision was reached."""

        if self.state is not SwipeState.DRAGGING:
            return None
        direction = self._decide(self.position[0], self.velocity_x)
        if direction is None:
            self._reset_card()
            self.state = SwipeState.IDLE
            return None
        self.state = SwipeState.DECIDING
        self._fly_off(direction)
        return direction

    def press(self, direction: Direction | str) -> bool:
        """Like/nope buttons skip the drag and go straight to a decision."""

        if self.state is not SwipeState.IDLE or self.current_item is None:
            return False
        self.state = SwipeState.DECIDING
        self._fly_off(Direction(direction))
        return True

    def interrupt(self) -> bool:
        """A system interruption before the threshold puts the card back."""

        if self.state is not SwipeState.DRAGGING:
            return False
        self._reset_card()
        self.state = SwipeState.IDLE
        return True

    def finish_animation(self) -> Optional[SwipeDecision]:
        """Commit the pending decision once the card has left the screen."""

        if self.state is not SwipeState.ANIMATING or self.pending_direction is None:
            return None
        item = self.buffer.item_at(self.index)
        if item is None:
            self._reset_card()
            self.state = self._empty_state()
            return None

        self.state = SwipeState.COMMITTED
        decision = SwipeDecision(item=item, direction=self.pending_direction, index=self.index)
        self.decisions.append(decision)
        if decision.direction is Direction.RIGHT:
            self._record_like(item)
        self._reset_card()
        self._advance()
        return decision

    def swipe(self, direction: Direction | str) -> Optional[SwipeDecision]:
        if not self.press(direction):
            return None
        return self.finish_animation()

    def liked_by_category(self) -> Dict[str, List[LikedItem]]:
        return group_by_category(self.liked)

    # Internals

    def _decide(self, dx: float, vx: float) -> Optional[Direction]:
        if dx > self.swipe_threshold:
            return Direction.RIGHT
        if dx < -self.swipe_threshold:
            return Direction.LEFT
        flick_distance = self.viewport_width * VELOCITY_DISPLACEMENT_FRACTION
        if dx > flick_distance and vx >= VELOCITY_THRESHOLD:
            return Direction.RIGHT
        if dx < -flick_distance and vx <= -VELOCITY_THRESHOLD:
            return Direction.LEFT
        return None

    def _fly_off(self, direction: Direction) -> None:
        offscreen = self.viewport_width + 100
        self.position = (offscreen if direction is Direction.RIGHT else -offscreen, 0.0)
        self.pending_direction = direction
        self.state = SwipeState.ANIMATING

    def _reset_card(self) -> None:
        self.position = (0.0, 0.0)
        self.velocity_x = 0.0
        self.pending_direction = None

    def _record_like(self, item: OutfitItem) -> None:
        liked = like_item(item)
        if any(existing.key == liked.key for existing in self.liked):
            return
        self.liked.append(liked)
        if isinstance(self.store, RemoteLikedItemsStore):
            if self.store.api.is_authenticated:
                self.runner.submit("like_outfit", self.store.add, liked)
        elif self.store is not None:
            self.store.add(liked)

    def _advance(self) -> None:
        next_index = self.index + 1
        if self.buffer.should_preload(next_index):
            self.buffer.load_next_batch()
        try:
            position = self.buffer.next_position(next_index)
        except StylistApiError as exc:
            logger.warning(
                "Failed to load the next subcategory",
                extra={"category": self.buffer.category, "error": str(exc)},
            )
            self.load_error = exc
            self.index = next_index
            self.state = SwipeState.IDLE
            return
        if position is None:
            self.index = next_index
            self.state = self._empty_state()
            return
        self.index = position
        self.state = SwipeState.IDLE

    def _empty_state(self) -> SwipeState:
        return SwipeState.EXHAUSTED if self.buffer.exhausted else SwipeState.IDLE


__all__ = ["Direction", "SwipeDecision", "SwipeEngine", "SwipeState"]
