"""Config, logging and app wiring tests."""

import json
import logging
from pathlib import Path

import pytest

from memory.liked_store import JSONLikedItemsStore, RemoteLikedItemsStore
from stylist_app.app import StylistApp
from stylist_app.config import StylistConfig
from stylist_app.logging_config import JsonFormatter, correlation_context, redact_for_log
from tools.background import InlineTaskRunner
from conftest import FakeResponse, FakeSession, catalog_record


def test_config_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("APP_ENV", raising=False)
    monkeypatch.delenv("APP_CONFIG_PATH", raising=False)
    monkeypatch.setenv("STYLIST_API_BASE_URL", "https://staging.test/")
    monkeypatch.setenv("STYLIST_ACCESS_TOKEN", "abc")
    monkeypatch.setenv("STYLIST_RETRY_ATTEMPTS", "4")

    config = StylistConfig.from_env()

    assert config.api_base_url == "https://staging.test"
    assert config.is_authenticated
    assert config.retry_attempts == 4
    assert config.page_size == 10
    assert config.url("/api/x") == "https://staging.test/api/x"


def test_config_from_yaml_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    env_dir = tmp_path / "environments"
    env_dir.mkdir()
    (env_dir / "dev.yaml").write_text('# dev\napi_base_url: "https://dev.test"\npage_size: 5\n')
    monkeypatch.setenv("APP_ENV", "dev")
    monkeypatch.setenv("STYLIST_CONFIG_DIR", str(env_dir))
    monkeypatch.delenv("APP_CONFIG_PATH", raising=False)
    monkeypatch.delenv("STYLIST_API_BASE_URL", raising=False)
    monkeypatch.delenv("STYLIST_PAGE_SIZE", raising=False)
    monkeypatch.delenv("STYLIST_ACCESS_TOKEN", raising=False)

    config = StylistConfig.from_env()

    assert config.api_base_url == "https://dev.test"
    assert config.page_size == 5
    assert config.environment == "dev"
    assert not config.is_authenticated


def test_config_rejects_bad_values() -> None:
    with pytest.raises(ValueError):
        StylistConfig(page_size=0)


def test_redaction_masks_secrets_and_images() -> None:
    scrubbed = redact_for_log(
        {
            "Authorization": "Bearer abc",
            "user_image": "data:image/png;base64,AAAA",
            "note": "contact me@example.com",
            "nested": ["data:image/jpeg;base64,BBBB"],
            "count": 3,
        }
    )
    assert scrubbed["Authorization"] == "[redacted]"
    assert scrubbed["user_image"] == "[redacted]"
    assert scrubbed["note"] == "contact [redacted-email]"
    assert scrubbed["nested"][0].startswith("[redacted-data-uri")
    assert scrubbed["count"] == 3


def test_json_formatter_includes_correlation_id() -> None:
    record = logging.LogRecord("stylist", logging.INFO, __file__, 1, "hello", None, None)
    record.subcategory = "jeans"
    with correlation_context("corr-1"):
        payload = json.loads(JsonFormatter().format(record))
    assert payload["message"] == "hello"
    assert payload["correlation_id"] == "corr-1"
    assert payload["subcategory"] == "jeans"


def test_app_wires_local_store_without_token(config: StylistConfig) -> None:
    app = StylistApp(config=config, session=FakeSession(), runner=InlineTaskRunner())
    assert isinstance(app.liked_store, JSONLikedItemsStore)


def test_app_end_to_end_local(config: StylistConfig) -> None:
    def handler(method, url, kwargs):
        if url.endswith("/category/t-shirts"):
            return FakeResponse(200, [catalog_record(1), catalog_record(2)])
        return FakeResponse(200, [])

    app = StylistApp(config=config, session=FakeSession(handler), runner=InlineTaskRunner())

    assert app.open_deck("Deep Autumn", "Top").id == 1
    app.deck.swipe("right")

    assert [item.id for item in app.liked_items()["Top"]] == [1]
    assert app.select_for_try_on("Top", 1)
    assert not app.select_for_try_on("Shoes", 1)
    assert app.remove_liked("top", 1)
    assert app.selection.is_empty()
    assert app.liked_items()["Top"] == []


def test_app_uses_remote_store_with_token(auth_config: StylistConfig) -> None:
    app = StylistApp(config=auth_config, session=FakeSession(), runner=InlineTaskRunner())
    assert isinstance(app.liked_store, RemoteLikedItemsStore)
