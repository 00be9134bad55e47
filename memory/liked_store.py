"""Liked-items store abstractions with local JSON and remote backings."""
from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from models.outfit_item import LikedItem, dedupe_liked, group_by_category, liked_from_payload
from models.taxonomy import validate_category
from stylist_app.config import StylistConfig
from tools.api_client import StylistApiClient
from tools.errors import MalformedResponseError, NotAuthenticatedError, StylistApiError
from tools.observability import instrument_call

logger = logging.getLogger(__name__)

LIKED_ITEMS_KEY = "liked_items"
LIKE_PATH = "/api/user/outfits/like"
LIKED_LIST_PATH = "/api/user/outfits/liked"


def _parse_records(records: List[Any], source: str) -> List[LikedItem]:
    items: List[LikedItem] = []
    for raw in records:
        if not isinstance(raw, dict):
            logger.warning("Skipping non-object liked record", extra={"source": source})
            continue
        try:
            items.append(liked_from_payload(raw))
        except (ValidationError, ValueError) as exc:
            logger.warning("Skipping unreadable liked record", extra={"source": source, "error": str(exc)})
    return dedupe_liked(items)


class LikedItemsStore:
    """Persistence interface for liked items.

    A store holds at most one record per ``(id, category)`` pair.
    """

    def add(self, item: LikedItem) -> bool:
        raise NotImplementedError

    def remove(self, item: LikedItem) -> bool:
        raise NotImplementedError

    def list(self) -> List[LikedItem]:
        raise NotImplementedError

    def reload(self) -> List[LikedItem]:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError

    def contains(self, item_id: int, category: str) -> bool:
        key = (item_id, validate_category(category))
        return any(item.key == key for item in self.list())

    def list_by_category(self, category: str) -> List[LikedItem]:
        category = validate_category(category)
        return [item for item in self.list() if item.category == category]

    def grouped(self) -> Dict[str, List[LikedItem]]:
        return group_by_category(self.list())


class JSONLikedItemsStore(LikedItemsStore):
    """Device-only store: one JSON file holding a single ``liked_items`` array.

    Every write replaces the whole array, mirroring a key-value cache.
    """

    def __init__(self, path: str | Path = "data/liked_items.json") -> None:
        self.path = Path(path)
        if self.path.parent and not self.path.parent.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def _load(self) -> List[LikedItem]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text() or "{}")
        except json.JSONDecodeError:
            logger.error("Liked items file is corrupt, starting empty", extra={"path": str(self.path)})
            return []
        records = data.get(LIKED_ITEMS_KEY, []) if isinstance(data, dict) else []
        return _parse_records(records if isinstance(records, list) else [], source="local")

    def _save(self, items: List[LikedItem]) -> None:
        payload = {LIKED_ITEMS_KEY: [item.to_dict() for item in items]}
        self.path.write_text(json.dumps(payload, indent=2))

    def add(self, item: LikedItem) -> bool:
        with self._lock:
            items = self._load()
            if any(existing.key == item.key for existing in items):
                return False
            items.append(item)
            self._save(items)
            return True

    def remove(self, item: LikedItem) -> bool:
        with self._lock:
            items = self._load()
            remaining = [existing for existing in items if existing.key != item.key]
            if len(remaining) == len(items):
                return False
            self._save(remaining)
            return True

    def list(self) -> List[LikedItem]:
        return self._load()

    def reload(self) -> List[LikedItem]:
        return self._load()

    def clear(self) -> None:
        with self._lock:
            if self.path.exists():
                self.path.unlink()


class RemoteLikedItemsStore(LikedItemsStore):
    """Account-scoped store backed by the authenticated liked-items endpoints.

    The server is the source of truth. Local state is a cache that is rebuilt
    with :meth:`reload`; a failed delete is repaired by refetching rather
    than by rolling anything back.
    """

    def __init__(self, api: StylistApiClient) -> None:
        self.api = api
        self._items: Optional[List[LikedItem]] = None
        self._lock = threading.Lock()

    def _require_auth(self) -> None:
        if not self.api.is_authenticated:
            raise NotAuthenticatedError()

    @instrument_call("like_outfit")
    def like(self, item_id: str) -> Dict[str, Any]:
        """POST a like. An "already liked" answer counts as success."""

        self._require_auth()
        response = self.api.request("POST", LIKE_PATH, auth=True, json={"item_id": str(item_id)})
        try:
            self.api.check(response, f"like item {item_id}")
        except StylistApiError as exc:
            if exc.status_code == 409 or "already liked" in (exc.detail or "").lower():
                logger.info("Item already liked", extra={"item_id": str(item_id)})
                return {"item_id": str(item_id), "already_liked": True}
            raise
        try:
            body = response.json()
        except ValueError:
            body = {}
        return body if isinstance(body, dict) else {"item_id": str(item_id)}

    def add(self, item: LikedItem) -> bool:
        self.like(str(item.id))
        with self._lock:
            if self._items is None:
                # Not loaded yet; the next list() fetches the server copy.
                return True
            items = list(self._items)
            if any(existing.key == item.key for existing in items):
                return False
            items.append(item)
            self._items = items
        return True

    @instrument_call("unlike_outfit")
    def remove(self, item: LikedItem) -> bool:
        """Delete a like, then always reload so the cache matches the server.

        A 404 means the server already forgot the item; after the reload the
        cache agrees, so it is not treated as an error.
        """

        self._require_auth()
        failure: Optional[StylistApiError] = None
        try:
            response = self.api.request("DELETE", f"{LIKE_PATH}/{item.remote_id}", auth=True)
            self.api.check(response, f"remove liked item {item.remote_id}")
        except StylistApiError as exc:
            logger.warning(
                "Failed to remove liked item, resynchronising",
                extra={"item_id": item.remote_id, "status_code": exc.status_code},
            )
            failure = exc
        self.reload()
        if failure is not None and failure.status_code != 404:
            raise failure
        return failure is None

    @instrument_call("list_liked_outfits")
    def reload(self) -> List[LikedItem]:
        self._require_auth()
        action = "list liked items"
        response = self.api.check(self.api.request("GET", LIKED_LIST_PATH, auth=True), action)
        payload = self.api.json(response, action)
        if not isinstance(payload, list):
            raise MalformedResponseError(f"Liked items response is not an array (got {type(payload).__name__})")
        items = _parse_records(payload, source="remote")
        with self._lock:
            self._items = items
        return list(items)

    def list(self) -> List[LikedItem]:
        if self._items is None:
            return self.reload()
        return list(self._items)

    def clear(self) -> None:
        for item in self.list():
            self.remove(item)


def build_liked_store(config: StylistConfig, api: StylistApiClient | None = None) -> LikedItemsStore:
    """Pick the backing: remote when a token is configured, local otherwise."""

    if config.is_authenticated:
        return RemoteLikedItemsStore(api or StylistApiClient(config))
    return JSONLikedItemsStore(config.liked_items_path)


__all__ = [
    "JSONLikedItemsStore",
    "LIKED_ITEMS_KEY",
    "LikedItemsStore",
    "RemoteLikedItemsStore",
    "build_liked_store",
]
