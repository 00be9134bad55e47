"""Exception types raised by the backend-facing tools."""

from __future__ import annotations

from typing import Iterable, Optional, Tuple


class StylistApiError(RuntimeError):
    """Raised when the stylist backend returns an error or cannot be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None, detail: Optional[str] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class TransientServerError(StylistApiError):
    """A gateway failure (HTTP 502) that is worth retrying."""


class CatalogFetchError(StylistApiError):
    """Raised when a catalog subcategory cannot be fetched."""


class NotAuthenticatedError(StylistApiError):
    """Raised before any request when an operation needs a bearer token."""

    def __init__(self, message: str = "Not authenticated") -> None:
        super().__init__(message, status_code=None)


class MalformedResponseError(StylistApiError):
    """Raised when a payload does not have the expected shape."""

    def __init__(self, message: str, checked_fields: Iterable[str] = ()) -> None:
        self.checked_fields: Tuple[str, ...] = tuple(checked_fields)
        if self.checked_fields:
            message = f"{message} (checked: {', '.join(self.checked_fields)})"
        super().__init__(message)


class NoFaceDetectedError(StylistApiError):
    """The analysis service could not find a face; the photo should be retaken."""


class ImageDownloadError(StylistApiError):
    """Raised when a garment image cannot be downloaded for encoding."""


class TryOnError(StylistApiError):
    """Raised when a virtual try-on request fails at any step."""


class TryOnCancelledError(TryOnError):
    """Raised when the caller cancels a try-on between phases."""


__all__ = [
    "CatalogFetchError",
    "ImageDownloadError",
    "MalformedResponseError",
    "NoFaceDetectedError",
    "NotAuthenticatedError",
    "StylistApiError",
    "TransientServerError",
    "TryOnCancelledError",
    "TryOnError",
]
