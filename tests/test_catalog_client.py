"""Catalog fetch, retry and in-flight guard tests."""

from __future__ import annotations

import threading
from typing import List

import pytest

from stylist_app.config import StylistConfig
from tools.catalog_client import CatalogClient, catalog_path
from tools.errors import CatalogFetchError, MalformedResponseError
from conftest import FakeResponse, catalog_record


def test_catalog_path_quotes_segments() -> None:
    assert catalog_path("Deep Autumn", "t-shirts") == "/api/outfit/season/Deep%20Autumn/category/t-shirts"


def test_fetch_retries_502_then_succeeds(config: StylistConfig, make_api) -> None:
    api, session = make_api(
        config,
        [FakeResponse(502, {"detail": "bad gateway"}), FakeResponse(502), FakeResponse(200, [catalog_record(1)])],
    )
    sleeps: List[float] = []
    client = CatalogClient(api, sleep=sleeps.append)

    items = client.fetch_subcategory("Deep Autumn", "t-shirts")

    assert [item.id for item in items] == [1]
    assert len(session.calls) == 3
    assert sleeps == [1.0, 1.0]
    assert session.calls[0]["url"] == "https://api.test/api/outfit/season/Deep%20Autumn/category/t-shirts"
    assert not client.busy


def test_fetch_gives_up_after_retry_budget(config: StylistConfig, make_api) -> None:
    api, session = make_api(config, [FakeResponse(502), FakeResponse(502), FakeResponse(502)])
    client = CatalogClient(api, sleep=lambda _: None)

    with pytest.raises(CatalogFetchError) as excinfo:
        client.fetch_subcategory("Deep Autumn", "jeans")

    assert excinfo.value.status_code == 502
    assert len(session.calls) == 3


def test_fetch_does_not_retry_404(config: StylistConfig, make_api) -> None:
    api, session = make_api(config, [FakeResponse(404, {"detail": "Unknown season"})])
    sleeps: List[float] = []
    client = CatalogClient(api, sleep=sleeps.append)

    with pytest.raises(CatalogFetchError) as excinfo:
        client.fetch_subcategory("Nope", "jeans")

    assert excinfo.value.status_code == 404
    assert excinfo.value.detail == "Unknown season"
    assert len(session.calls) == 1
    assert sleeps == []


def test_fetch_rejects_non_array_payload(config: StylistConfig, make_api) -> None:
    api, _ = make_api(config, [FakeResponse(200, {"items": []})])
    client = CatalogClient(api, sleep=lambda _: None)

    with pytest.raises(MalformedResponseError):
        client.fetch_subcategory("Deep Autumn", "shirt")
    assert not client.busy


def test_fetch_skips_invalid_entries(config: StylistConfig, make_api) -> None:
    api, _ = make_api(config, [FakeResponse(200, [catalog_record(1), {"Description": "no id"}, "junk"])])
    client = CatalogClient(api, sleep=lambda _: None)

    assert [item.id for item in client.fetch_subcategory("Deep Autumn", "shirt")] == [1]


def test_overlapping_fetch_is_dropped_unless_retry(config: StylistConfig, make_api) -> None:
    entered = threading.Event()
    release = threading.Event()

    def handler(method, url, kwargs):
        if "polos" in url:
            entered.set()
            release.wait(timeout=5)
        return FakeResponse(200, [catalog_record(2)])

    api, _ = make_api(config, handler)
    client = CatalogClient(api, sleep=lambda _: None)
    results = {}

    worker = threading.Thread(target=lambda: results.setdefault("first", client.fetch_subcategory("X", "polos")))
    worker.start()
    assert entered.wait(timeout=5)
    try:
        assert client.busy
        assert client.fetch_subcategory("X", "shirt") is None
        assert [item.id for item in client.fetch_subcategory("X", "shirt", is_retry=True)] == [2]
    finally:
        release.set()
        worker.join(timeout=5)

    assert [item.id for item in results["first"]] == [2]
    assert not client.busy
