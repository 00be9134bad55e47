"""Remote catalog client scoped by personal colour type and subcategory."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, List, Optional
from urllib.parse import quote

from pydantic import ValidationError

from models.outfit_item import OutfitItem, outfit_from_payload
from models.taxonomy import subcategories_for
from tools.api_client import TRANSIENT_STATUS_CODES, StylistApiClient
from tools.errors import CatalogFetchError, MalformedResponseError, StylistApiError
from tools.observability import instrument_call

logger = logging.getLogger(__name__)


def catalog_path(color_type: str, subcategory: str) -> str:
    return f"/api/outfit/season/{quote(color_type, safe='')}/category/{quote(subcategory, safe='')}"


class CatalogClient:
    """Fetches one backend subcategory at a time.

    Only one fetch may be in flight; an overlapping call is dropped and
    returns ``None`` unless it is flagged as a retry. Gateway failures (502)
    are retried ``config.retry_attempts`` times with a fixed backoff, every
    other non-2xx status fails straight away.
    """

    def __init__(self, api: StylistApiClient, sleep: Callable[[float], None] = time.sleep) -> None:
        self.api = api
        self.sleep = sleep
        self._in_flight = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._in_flight.locked()

    def subcategories_for(self, category: str) -> List[str]:
        return subcategories_for(category)

    @instrument_call("fetch_catalog_subcategory")
    def fetch_subcategory(
        self, color_type: str, subcategory: str, is_retry: bool = False
    ) -> Optional[List[OutfitItem]]:
        """Return the catalog items for one subcategory.

        Raises:
            CatalogFetchError: When the backend keeps failing or rejects the request.
            MalformedResponseError: When the payload is not a JSON array.
        """

        acquired = False
        if not is_retry:
            acquired = self._in_flight.acquire(blocking=False)
            if not acquired:
                logger.info(
                    "Dropping overlapping catalog fetch",
                    extra={"color_type": color_type, "subcategory": subcategory},
                )
                return None
        try:
            payload = self._get_with_retry(color_type, subcategory)
        finally:
            if acquired:
                self._in_flight.release()

        if not isinstance(payload, list):
            raise MalformedResponseError(
                f"Catalog response for {subcategory} is not an array (got {type(payload).__name__})"
            )
        return self._parse_items(payload, subcategory)

    def _get_with_retry(self, color_type: str, subcategory: str) -> object:
        path = catalog_path(color_type, subcategory)
        action = f"fetch catalog subcategory {subcategory}"
        total_attempts = self.api.config.retry_attempts + 1
        for attempt in range(1, total_attempts + 1):
            try:
                response = self.api.request("GET", path)
            except StylistApiError as exc:
                raise CatalogFetchError(str(exc)) from exc

            if response.status_code in TRANSIENT_STATUS_CODES and attempt < total_attempts:
                logger.warning(
                    "Transient catalog failure, retrying",
                    extra={
                        "subcategory": subcategory,
                        "status_code": response.status_code,
                        "attempt": attempt,
                    },
                )
                self.sleep(self.api.config.retry_backoff_seconds)
                continue

            try:
                self.api.check(response, action)
            except StylistApiError as exc:
                raise CatalogFetchError(
                    str(exc), status_code=exc.status_code, detail=exc.detail
                ) from exc
            return self.api.json(response, action)
        raise CatalogFetchError(f"Failed to {action}")  # pragma: no cover - loop always returns or raises

    @staticmethod
    def _parse_items(payload: list, subcategory: str) -> List[OutfitItem]:
        items: List[OutfitItem] = []
        for raw in payload:
            if not isinstance(raw, dict):
                logger.warning("Skipping non-object catalog entry", extra={"subcategory": subcategory})
                continue
            try:
                items.append(outfit_from_payload(raw))
            except ValidationError as exc:
                logger.warning(
                    "Skipping invalid catalog entry",
                    extra={"subcategory": subcategory, "errors": exc.error_count()},
                )
        return items


__all__ = ["CatalogClient", "catalog_path"]
