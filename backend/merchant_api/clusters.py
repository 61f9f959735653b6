"""Cluster routing: cluster key → base URL, plus the cluster catalogue."""

from __future__ import annotations

import json
from typing import Any

import structlog

from core.config import Settings, get_settings, parse_json_setting

logger = structlog.get_logger()

CLUSTER_ALIASES = {
    "app6": "app6a",
}

DEFAULT_CLUSTER_CATALOGUE: list[dict[str, Any]] = [
    {"id": "it-app", "name": "IT-APP", "region": "US-Central", "status": "active", "gcpProject": "Nebula"},
    {"id": "app6a", "name": "APP6A", "region": "US-Central", "status": "active", "gcpProject": "Pluto"},
    {"id": "app6e", "name": "APP6E", "region": "Asia-South", "status": "active", "gcpProject": "Pluto"},
    {"id": "app30a", "name": "APP30A", "region": "US-Central", "status": "active", "gcpProject": "Earth"},
    {"id": "app30b", "name": "APP30B", "region": "US-Central", "status": "active", "gcpProject": "Earth"},
]


def _with_trailing_slash(url: str) -> str:
    url = url.strip()
    return url if url.endswith("/") else f"{url}/"


class ClusterResolver:
    """Maps cluster keys to base URLs. Never raises on unknown input."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self._table = self._build_table()
        default_key = self._canonical_key(self.settings.default_cluster)
        if default_key not in self._table:
            logger.warning("clusters.default_unknown", default_cluster=self.settings.default_cluster)
            default_key = next(iter(self._table))
        self.default_key = default_key

    def _build_table(self) -> dict[str, str]:
        table = {key: _with_trailing_slash(url) for key, url in self.settings.cluster_url_table().items() if url}
        try:
            overrides = self.settings.cluster_url_overrides()
        except json.JSONDecodeError as exc:
            logger.error("clusters.override_invalid", error=str(exc))
            overrides = {}
        for key, url in overrides.items():
            table[self._canonical_key(key)] = _with_trailing_slash(url)
        return table

    @staticmethod
    def _canonical_key(cluster_key: str | None) -> str:
        key = (cluster_key or "").strip().lower()
        return CLUSTER_ALIASES.get(key, key)

    @property
    def known_clusters(self) -> list[str]:
        return list(self._table)

    def resolve_key(self, cluster_key: str | None) -> str:
        key = self._canonical_key(cluster_key)
        return key if key in self._table else self.default_key

    def resolve_base_url(self, cluster_key: str | None = None) -> str:
        return self._table[self.resolve_key(cluster_key)]

    def list_clusters(self) -> list[dict[str, Any]]:
        """Cluster catalogue from CLUSTERS_CONFIG, falling back to the built-in list."""
        raw = self.settings.clusters_config
        if raw:
            try:
                parsed = parse_json_setting(raw)
            except json.JSONDecodeError as exc:
                logger.error("clusters.catalogue_invalid", error=str(exc))
            else:
                if isinstance(parsed, list):
                    return parsed
                logger.error("clusters.catalogue_not_a_list", type=type(parsed).__name__)
        return [dict(entry) for entry in DEFAULT_CLUSTER_CATALOGUE]


def resolve_base_url(cluster_key: str | None = None, settings: Settings | None = None) -> str:
    """Base URL for a cluster key; unknown or missing keys use the default cluster."""
    return ClusterResolver(settings).resolve_base_url(cluster_key)
