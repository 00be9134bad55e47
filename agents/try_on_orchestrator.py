"""Virtual try-on orchestration: encode images, submit, parse the composite."""

from __future__ import annotations

import base64
import binascii
import logging
import mimetypes
import threading
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import requests

from logic.outfit_selection import SelectionSet
from models.wire import TRY_ON_IMAGE_FIELDS, extract_try_on_image
from stylist_app.logging_config import get_logger, log_event, operation_context
from tools.api_client import StylistApiClient
from tools.errors import (
    ImageDownloadError,
    MalformedResponseError,
    StylistApiError,
    TryOnCancelledError,
    TryOnError,
)

LOGGER = get_logger(__name__)

FULL_OUTFIT_PATH = "/api/try-on/generate-full-outfit/on-sequential"
SINGLE_ITEM_PATH = "/api/test/try-on/generate"
DEFAULT_PHOTO_MIME = "image/jpeg"
DEFAULT_RESULT_MIME = "image/png"

# Heuristic checkpoints, not byte-level progress.
PROGRESS_USER_PHOTO = 10
PROGRESS_GARMENTS_START = 25
PROGRESS_GARMENT_STEP = 15
PROGRESS_REQUEST_SENT = 70
PROGRESS_RESPONSE_RECEIVED = 90
PROGRESS_DONE = 100

ProgressCallback = Callable[[int], None]


def encode_data_uri(data: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def decode_data_uri(data_uri: str) -> Tuple[str, bytes]:
    """Split a base64 data URI into its MIME type and raw bytes."""

    if not data_uri.startswith("data:") or ";base64," not in data_uri:
        raise ValueError("Not a base64 data URI")
    header, encoded = data_uri.split(",", 1)
    mime_type = header[len("data:") : header.index(";base64")]
    try:
        return mime_type, base64.b64decode(encoded, validate=True)
    except binascii.Error as exc:
        raise ValueError(f"Invalid base64 payload: {exc}") from exc


def ensure_data_uri(image: str, mime_type: str = DEFAULT_RESULT_MIME) -> str:
    return image if image.startswith("data:") else f"data:{mime_type};base64,{image}"


def guess_image_mime(location: str, default: str = DEFAULT_PHOTO_MIME) -> str:
    guessed, _ = mimetypes.guess_type(location.split("?", 1)[0])
    return guessed if guessed and guessed.startswith("image/") else default


def save_result_image(data_uri: str, destination: str | Path) -> Path:
    """Write a try-on result data URI to disk, returning the file path."""

    _, data = decode_data_uri(data_uri)
    path = Path(destination)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return path


class ProgressReporter:
    """Forwards only increasing percentages; a reset reports 0."""

    def __init__(self, callback: Optional[ProgressCallback] = None) -> None:
        self.callback = callback
        self.value = 0

    def report(self, value: int) -> None:
        value = max(0, min(100, value))
        if value <= self.value:
            return
        self.value = value
        if self.callback:
            self.callback(value)

    def reset(self) -> None:
        self.value = 0
        if self.callback:
            self.callback(0)


class TryOnOrchestrator:
    """Builds and submits virtual try-on requests.

    One request carries every image as a data URI. The response is parsed
    defensively because the backend may answer with JSON under one of several
    field names, or with the raw image bytes.
    """

    def __init__(self, api: StylistApiClient, selection: Optional[SelectionSet] = None) -> None:
        self.api = api
        self.selection = selection or SelectionSet()

    def encode_user_photo(self, photo: str | Path) -> str:
        path = Path(photo)
        data = path.read_bytes()
        if not data:
            raise TryOnError(f"Photo {path.name} is empty")
        return encode_data_uri(data, guess_image_mime(path.name))

    def encode_remote_image(self, url: str) -> str:
        response = self.api.download(url, timeout=self.api.config.request_timeout_seconds)
        if response.status_code != 200:
            raise ImageDownloadError(
                f"Failed to download garment image: HTTP {response.status_code}",
                status_code=response.status_code,
            )
        content_type = (response.headers.get("content-type") or "").split(";", 1)[0].strip()
        mime_type = content_type if content_type.startswith("image/") else guess_image_mime(url)
        return encode_data_uri(response.content, mime_type)

    def generate_full_outfit(
        self,
        user_photo: str | Path,
        selection: Optional[SelectionSet] = None,
        on_progress: Optional[ProgressCallback] = None,
        cancel: Optional[threading.Event] = None,
    ) -> str:
        """Compose the selected top, bottom and shoes onto the user's photo.

        Returns the result image as a data URI and clears the selection.

        Raises:
            TryOnError: For any failed step; progress is reset to 0 first.
            TryOnCancelledError: When ``cancel`` is set between phases.
            MalformedResponseError: When no image could be found in the response.
        """

        selection = selection or self.selection
        garments = [
            ("upper_image", selection.top),
            ("lower_image", selection.bottom),
            ("shoes_image", selection.shoes),
        ]
        if selection.is_empty():
            raise TryOnError("Select at least one liked item before trying on an outfit")

        progress = ProgressReporter(on_progress)
        with operation_context("agent:try_on.generate_full_outfit") as correlation_id:
            log_event(
                LOGGER,
                logging.INFO,
                "try_on_started",
                mode="full_outfit",
                garments=[field for field, item in garments if item is not None],
                correlation_id=correlation_id,
            )
            try:
                body: Dict[str, Optional[str]] = {"user_image": self._encode_photo_step(user_photo, progress, cancel)}
                step = 0
                for field, item in garments:
                    if item is None:
                        body[field] = None
                        continue
                    self._check_cancel(cancel)
                    body[field] = self.encode_remote_image(item.image_url)
                    progress.report(PROGRESS_GARMENTS_START + step * PROGRESS_GARMENT_STEP)
                    step += 1
                result = self._submit(FULL_OUTFIT_PATH, body, progress, cancel)
            except (StylistApiError, OSError, ValueError, requests.RequestException) as exc:
                progress.reset()
                log_event(
                    LOGGER,
                    logging.ERROR,
                    "try_on_failed",
                    mode="full_outfit",
                    error_type=type(exc).__name__,
                    error=str(exc),
                    correlation_id=correlation_id,
                )
                if isinstance(exc, (TryOnError, MalformedResponseError)):
                    raise
                raise TryOnError(
                    f"Virtual try-on failed: {exc}", status_code=getattr(exc, "status_code", None)
                ) from exc

            selection.clear()
            log_event(LOGGER, logging.INFO, "try_on_completed", mode="full_outfit", correlation_id=correlation_id)
            return result

    def generate_single(
        self,
        user_photo: str | Path,
        product_image_url: str,
        on_progress: Optional[ProgressCallback] = None,
        cancel: Optional[threading.Event] = None,
    ) -> str:
        """Try a single product image on the user's photo."""

        progress = ProgressReporter(on_progress)
        with operation_context("agent:try_on.generate_single"):
            try:
                body = {"user_image": self._encode_photo_step(user_photo, progress, cancel)}
                self._check_cancel(cancel)
                body["product_image"] = self.encode_remote_image(product_image_url)
                progress.report(PROGRESS_GARMENTS_START)
                return self._submit(SINGLE_ITEM_PATH, body, progress, cancel)
            except (StylistApiError, OSError, ValueError, requests.RequestException) as exc:
                progress.reset()
                LOGGER.error("Single item try-on failed", extra={"error": str(exc)})
                if isinstance(exc, (TryOnError, MalformedResponseError)):
                    raise
                raise TryOnError(f"Virtual try-on failed: {exc}") from exc

    def parse_result(self, response: requests.Response) -> str:
        """Extract the composite image as a data URI.

        JSON bodies are probed for every known image field; anything else is
        treated as raw image bytes.
        """

        content_type = (response.headers.get("content-type") or "").split(";", 1)[0].strip().lower()
        body = response.content or b""
        looks_like_json = "json" in content_type or body.lstrip()[:1] in (b"{", b"\"")
        checked: List[str] = []

        if looks_like_json:
            try:
                payload = response.json()
            except ValueError:
                payload = None
            if isinstance(payload, dict):
                image = extract_try_on_image(payload)
                if image:
                    return ensure_data_uri(image)
                checked.extend(TRY_ON_IMAGE_FIELDS)
            elif isinstance(payload, str) and payload:
                return ensure_data_uri(payload)

        if body and (content_type.startswith("image/") or not looks_like_json):
            mime_type = content_type if content_type.startswith("image/") else DEFAULT_RESULT_MIME
            return encode_data_uri(body, mime_type)

        checked.append("raw body")
        raise MalformedResponseError("Try-on response did not contain an image", checked_fields=checked)

    def _encode_photo_step(
        self, user_photo: str | Path, progress: ProgressReporter, cancel: Optional[threading.Event]
    ) -> str:
        self._check_cancel(cancel)
        encoded = self.encode_user_photo(user_photo)
        progress.report(PROGRESS_USER_PHOTO)
        return encoded

    def _submit(
        self, path: str, body: Dict[str, Optional[str]], progress: ProgressReporter, cancel: Optional[threading.Event]
    ) -> str:
        self._check_cancel(cancel)
        progress.report(PROGRESS_REQUEST_SENT)
        action = "generate try-on image"
        response = self.api.request("POST", path, json=body, timeout=self.api.config.try_on_timeout_seconds)
        self.api.check(response, action)
        progress.report(PROGRESS_RESPONSE_RECEIVED)
        self._check_cancel(cancel)
        result = self.parse_result(response)
        progress.report(PROGRESS_DONE)
        return result

    @staticmethod
    def _check_cancel(cancel: Optional[threading.Event]) -> None:
        if cancel is not None and cancel.is_set():
            raise TryOnCancelledError("Virtual try-on was cancelled")


__all__ = [
    "ProgressReporter",
    "TryOnOrchestrator",
    "decode_data_uri",
    "encode_data_uri",
    "ensure_data_uri",
    "guess_image_mime",
    "save_result_image",
]
