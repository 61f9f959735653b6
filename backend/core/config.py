"""
Merchant Console Backend Configuration

Uses pydantic-settings for type-safe environment variable loading.
"""

import json
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic_settings import BaseSettings

DEFAULT_CLUSTER = "it-app"

# Find .env file: check CWD first, then parent (project root)
_env_file = Path(".env")
if not _env_file.exists():
    _parent_env = Path(__file__).resolve().parent.parent.parent / ".env"
    if _parent_env.exists():
        _env_file = _parent_env


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    app_name: str = "Merchant Console"
    app_version: str = "1.0.0"
    app_env: str = "local"
    debug: bool = False

    # ── Cluster routing ──────────────────────────────────────────────
    # One base URL per upstream cluster. CLUSTER_URLS accepts a JSON
    # object ({"app6a": "https://..."}) that wins over the fields below.
    it_app_base_url: str = "https://apin.neocloud.ai/"
    app6a_base_url: str = "https://api6a.neocloud.ai/"
    app6e_base_url: str = "https://api6e.neocloud.ai/"
    app30a_base_url: str = "https://api30a.neocloud.ai/"
    app30b_base_url: str = "https://api30b.neocloud.ai/"
    cluster_urls: str = ""
    default_cluster: str = DEFAULT_CLUSTER

    # Cluster catalogue shown in the console (JSON list)
    clusters_config: str = ""

    # ── HTTP client ──────────────────────────────────────────────────
    request_timeout_seconds: float = 30.0
    retry_attempts: int = 2
    retry_max_wait_seconds: float = 2.0

    # Token installed at startup (optional; normally set via /session)
    platform_token: str = ""

    # Engagement preview links
    webchat_base_url: str = "https://it-inferno.neocloud.ai/webchat.html"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    model_config = {
        "env_file": str(_env_file),
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }

    def cluster_url_table(self) -> dict[str, str]:
        """Per-field cluster table, before CLUSTER_URLS overrides."""
        return {
            "it-app": self.it_app_base_url,
            "app6a": self.app6a_base_url,
            "app6e": self.app6e_base_url,
            "app30a": self.app30a_base_url,
            "app30b": self.app30b_base_url,
        }

    def cluster_url_overrides(self) -> dict[str, str]:
        """
        CLUSTER_URLS as a key → URL mapping.

        Raises json.JSONDecodeError when the value is not valid JSON;
        anything other than an object yields no overrides.
        """
        if not self.cluster_urls:
            return {}
        overrides = parse_json_setting(self.cluster_urls)
        if not isinstance(overrides, dict):
            return {}
        return {str(key): url for key, url in overrides.items() if isinstance(url, str) and url.strip()}


def parse_json_setting(raw: str) -> Any:
    """Parse a JSON-valued setting, tolerating quotes kept by shell loaders."""
    cleaned = raw.strip()
    if len(cleaned) >= 2 and cleaned[0] == cleaned[-1] == "'":
        cleaned = cleaned[1:-1]
    return json.loads(cleaned)


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance."""
    settings = Settings()
    _enforce_security_guardrails(settings)
    return settings


def _enforce_security_guardrails(settings: Settings) -> None:
    env = settings.app_env.strip().lower()
    is_local = env in {"", "local", "dev", "development", "test"}
    if is_local:
        return

    if settings.debug:
        raise ValueError("Refusing to start with debug=true outside local/dev/test")
    try:
        overrides = settings.cluster_url_overrides()
    except json.JSONDecodeError:
        overrides = {}
    for cluster, url in {**settings.cluster_url_table(), **overrides}.items():
        if url.strip().lower().startswith("http://"):
            raise ValueError(f"Refusing to route cluster {cluster} over plain http outside local/dev/test")
