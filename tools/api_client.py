"""HTTP plumbing shared by every backend-facing tool."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from stylist_app.config import StylistConfig
from tools.errors import (
    MalformedResponseError,
    NotAuthenticatedError,
    StylistApiError,
    TransientServerError,
)

logger = logging.getLogger(__name__)

TRANSIENT_STATUS_CODES = frozenset({502})


def is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


def response_detail(response: requests.Response) -> str:
    """Best-effort extraction of an error message from a response body."""

    try:
        payload = response.json()
    except ValueError:
        return (response.text or "").strip()
    if isinstance(payload, dict) and payload.get("detail") is not None:
        return str(payload["detail"])
    return (response.text or "").strip()


class StylistApiClient:
    """Thin wrapper over a ``requests`` session bound to one backend host.

    Args:
        config: Injected configuration carrying the base URL, timeouts and
            optional bearer token.
        session: Optional session, mainly so tests can pass a fake.
    """

    def __init__(self, config: StylistConfig, session: Optional[requests.Session] = None) -> None:
        self.config = config
        self.session = session or requests.Session()

    @property
    def is_authenticated(self) -> bool:
        return self.config.is_authenticated

    def _headers(self, auth: bool) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if auth:
            if not self.config.access_token:
                raise NotAuthenticatedError()
            headers["Authorization"] = f"Bearer {self.config.access_token}"
        return headers

    def request(
        self,
        method: str,
        path: str,
        *,
        auth: bool = False,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        files: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> requests.Response:
        """Send a request and return the raw response without status checks.

        Raises:
            NotAuthenticatedError: If ``auth`` is set and no token is configured.
            StylistApiError: For connection failures and timeouts.
        """

        headers = self._headers(auth)
        if json is not None:
            headers["Content-Type"] = "application/json"
        url = self.config.url(path)
        try:
            return self.session.request(
                method,
                url,
                headers=headers,
                json=json,
                params=params,
                files=files,
                timeout=timeout or self.config.request_timeout_seconds,
            )
        except requests.RequestException as exc:
            logger.error("Network error calling backend", extra={"method": method, "path": path, "error": str(exc)})
            raise StylistApiError(f"Network error calling {method} {path}: {exc}") from exc

    def check(self, response: requests.Response, action: str) -> requests.Response:
        """Raise a typed error for non-2xx responses."""

        if is_success(response.status_code):
            return response
        detail = response_detail(response)
        logger.warning(
            "Non-success status from backend",
            extra={"action": action, "status_code": response.status_code},
        )
        error_cls = TransientServerError if response.status_code in TRANSIENT_STATUS_CODES else StylistApiError
        raise error_cls(
            f"Failed to {action}: HTTP {response.status_code}",
            status_code=response.status_code,
            detail=detail,
        )

    @staticmethod
    def json(response: requests.Response, action: str) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise MalformedResponseError(f"Response to {action} is not valid JSON") from exc

    def download(self, url: str, timeout: Optional[float] = None) -> requests.Response:
        """GET an absolute URL (for example a garment image on a CDN)."""

        try:
            return self.session.request("GET", url, timeout=timeout or self.config.request_timeout_seconds)
        except requests.RequestException as exc:
            raise StylistApiError(f"Network error downloading {url}: {exc}") from exc


__all__ = ["StylistApiClient", "TRANSIENT_STATUS_CODES", "is_success", "response_detail"]
