"""Shared fakes for backend-facing tests."""

from __future__ import annotations

import json as jsonlib
from typing import Any, Callable, Dict, List, Optional, Union

import pytest

from stylist_app.config import StylistConfig
from tools.api_client import StylistApiClient


class FakeResponse:
    def __init__(
        self,
        status_code: int = 200,
        payload: Any = None,
        content: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        self.status_code = status_code
        self._payload = payload
        if content is None:
            content = b"" if payload is None else jsonlib.dumps(payload).encode()
        self.content = content
        self.headers = headers or ({"content-type": "application/json"} if payload is not None else {})

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    def json(self) -> Any:
        if self._payload is None:
            return jsonlib.loads(self.content.decode())
        return self._payload


Handler = Callable[[str, str, Dict[str, Any]], FakeResponse]


class FakeSession:
    """Records calls and answers from a queue or a routing function."""

    def __init__(self, responses: Union[List[FakeResponse], Handler, None] = None) -> None:
        self.calls: List[Dict[str, Any]] = []
        self._responses = responses if responses is not None else []

    def request(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({"method": method, "url": url, **kwargs})
        if callable(self._responses):
            return self._responses(method, url, kwargs)
        if not self._responses:
            raise AssertionError(f"Unexpected request {method} {url}")
        return self._responses.pop(0)


def catalog_record(item_id: int, garment_type: str = "Crew T-Shirt", **extra: Any) -> Dict[str, Any]:
    record = {
        "ID": item_id,
        "Description": f"Item {item_id}",
        "Price": "$20",
        "imageUrl": f"https://cdn.test/{item_id}.jpg",
        "ColorHEX": "#aabbcc",
        "ColorName": "Sky",
        "ProductURL": f"https://shop.test/{item_id}",
        "Type": garment_type,
        "PersonalColorType": "Deep Autumn",
    }
    record.update(extra)
    return record


@pytest.fixture
def config(tmp_path) -> StylistConfig:
    return StylistConfig(
        api_base_url="https://api.test",
        liked_items_path=str(tmp_path / "liked_items.json"),
    )


@pytest.fixture
def auth_config(tmp_path) -> StylistConfig:
    return StylistConfig(
        api_base_url="https://api.test",
        access_token="secret-token",
        liked_items_path=str(tmp_path / "liked_items.json"),
    )


@pytest.fixture
def make_api():
    def _make(cfg: StylistConfig, responses=None):
        session = FakeSession(responses)
        return StylistApiClient(cfg, session=session), session

    return _make
