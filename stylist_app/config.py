"""Configuration helpers for the stylist client."""

from dataclasses import dataclass
from pathlib import Path
import os
from typing import Optional

DEFAULT_API_BASE_URL = "https://stylist-ai-be.onrender.com"
DEFAULT_JUDGE_MODEL = "openai"


@dataclass
class StylistConfig:
    """Configuration values shared by every network-facing component.

    A single instance is built once and injected into the catalog client,
    liked-items stores, try-on orchestrator and colour analysis client so
    that the backend host, timeouts and retry policy live in one place.
    """

    api_base_url: str = DEFAULT_API_BASE_URL
    access_token: Optional[str] = None
    request_timeout_seconds: float = 30.0
    try_on_timeout_seconds: float = 180.0
    retry_attempts: int = 2
    retry_backoff_seconds: float = 1.0
    page_size: int = 10
    preload_threshold: int = 3
    liked_items_path: str = "data/liked_items.json"
    judge_model: str = DEFAULT_JUDGE_MODEL
    like_max_attempts: int = 1
    environment: str | None = None

    def __post_init__(self) -> None:
        self.api_base_url = self.api_base_url.rstrip("/")
        if self.page_size < 1:
            raise ValueError("page_size must be at least 1")
        if self.retry_attempts < 0:
            raise ValueError("retry_attempts cannot be negative")

    @property
    def is_authenticated(self) -> bool:
        return bool(self.access_token)

    def url(self, path: str) -> str:
        """Join ``path`` onto the configured base URL."""

        return f"{self.api_base_url}/{path.lstrip('/')}"

    @classmethod
    def from_env(cls) -> "StylistConfig":
        """Build a config from environment variables or an environment YAML file.

        Environment specific YAML lives in ``config/environments/<env>.yaml`` by
        default and is merged with environment variables so that the access
        token can be injected by the runtime rather than written to disk.
        """

        env_name = os.getenv("APP_ENV")
        config_path = os.getenv("APP_CONFIG_PATH")
        config_dir = Path(os.getenv("STYLIST_CONFIG_DIR", "config/environments"))
        yaml_config: dict = {}

        if config_path:
            path = Path(config_path)
        elif env_name:
            path = config_dir / f"{env_name}.yaml"
        else:
            path = None

        if path and path.exists():
            yaml_config = cls._load_yaml_config(path)

        def get_value(key: str, default: Optional[str] = None) -> Optional[str]:
            env_key = f"STYLIST_{key.upper()}"
            return os.getenv(env_key, yaml_config.get(key, default))

        return cls(
            api_base_url=str(get_value("api_base_url", DEFAULT_API_BASE_URL) or DEFAULT_API_BASE_URL),
            access_token=get_value("access_token") or None,
            request_timeout_seconds=float(get_value("request_timeout_seconds", "30") or 30),
            try_on_timeout_seconds=float(get_value("try_on_timeout_seconds", "180") or 180),
            retry_attempts=int(get_value("retry_attempts", "2") or 2),
            retry_backoff_seconds=float(get_value("retry_backoff_seconds", "1") or 1),
            page_size=int(get_value("page_size", "10") or 10),
            preload_threshold=int(get_value("preload_threshold", "3") or 3),
            liked_items_path=str(get_value("liked_items_path", "data/liked_items.json")),
            judge_model=str(get_value("judge_model", DEFAULT_JUDGE_MODEL) or DEFAULT_JUDGE_MODEL),
            like_max_attempts=int(get_value("like_max_attempts", "1") or 1),
            environment=env_name,
        )

    @staticmethod
    def _load_yaml_config(path: Path) -> dict:
        """Parse a minimal YAML/INI-style config without external dependencies."""

        config: dict[str, str] = {}
        for line in path.read_text().splitlines():
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            if ":" not in stripped:
                continue
            key, raw_value = stripped.split(":", 1)
            value = raw_value.strip()
            if (value.startswith("\"") and value.endswith("\"")) or (
                value.startswith("'") and value.endswith("'")
            ):
                value = value[1:-1]
            config[key.strip()] = value
        return config
