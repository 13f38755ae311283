"""
Configuration loader for search limits.

This module loads search configuration from a YAML file and supports
environment variable overrides.
"""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from easynews_search.logger import get_logger

logger = get_logger("easynews_search.config_loader")

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config" / "search.yaml"


@dataclass
class SearchConfig:
    """
    Search engine configuration.

    Attributes:
        cache_ttl: Cache time to live in seconds (default: 24 hours)
        total_max_results: Ceiling on items returned by search_all
        max_pages: Ceiling on pages fetched by one search_all call
        max_results_per_page: Ceiling on items requested per page
        request_timeout: Timeout of one remote request, in seconds
        base_url: Remote API base URL
    """

    cache_ttl: float = 24 * 60 * 60
    total_max_results: int = 500
    max_pages: int = 10
    max_results_per_page: int = 250
    request_timeout: float = 20.0
    base_url: str = "https://members.easynews.com"

    def __post_init__(self) -> None:
        for name in (
            "cache_ttl",
            "total_max_results",
            "max_pages",
            "max_results_per_page",
            "request_timeout",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        if not self.base_url:
            raise ValueError("base_url cannot be empty")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SearchConfig":
        """
        Build a config from a mapping, ignoring unknown keys.

        ``cache_ttl_hours`` is accepted in place of ``cache_ttl``.
        """
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        if "cache_ttl_hours" in data and "cache_ttl" not in values:
            values["cache_ttl"] = float(data["cache_ttl_hours"]) * 60 * 60
        return cls(**values)


def _int_override(env_name: str) -> Optional[int]:
    raw = os.environ.get(env_name)
    if raw is None or raw == "":
        return None
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Invalid {env_name} value: {raw}")
        return None
    if value <= 0:
        logger.warning(f"Ignoring non-positive {env_name} value: {raw}")
        return None
    return value


def _float_override(env_name: str) -> Optional[float]:
    raw = os.environ.get(env_name)
    if raw is None or raw == "":
        return None
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"Invalid {env_name} value: {raw}")
        return None
    if value <= 0:
        logger.warning(f"Ignoring non-positive {env_name} value: {raw}")
        return None
    return value


def load_search_config(config_path: Optional[Path] = None) -> SearchConfig:
    """
    Load search configuration from YAML file with environment variable overrides.

    A missing file is not an error; built-in defaults are used instead.

    Environment variable overrides:
    - CACHE_TTL: Cache TTL in hours
    - TOTAL_MAX_RESULTS: Maximum total results returned by search_all
    - MAX_PAGES: Safety limit on page requests per search_all
    - MAX_RESULTS_PER_PAGE: Maximum results per page
    - EASYNEWS_REQUEST_TIMEOUT: Request timeout in seconds
    - EASYNEWS_BASE_URL: Remote API base URL

    Args:
        config_path: YAML file to read (default: config/search.yaml)

    Returns:
        SearchConfig instance

    Raises:
        yaml.YAMLError: If YAML parsing fails
        ValueError: If a configured value is out of range
    """
    path = config_path or DEFAULT_CONFIG_PATH

    data: Dict[str, Any] = {}
    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
        data = dict(loaded.get("search", loaded))
    else:
        logger.debug(f"Search config file not found: {path}, using defaults")

    if (ttl_hours := _float_override("CACHE_TTL")) is not None:
        data["cache_ttl"] = ttl_hours * 60 * 60
        logger.info(f"Cache TTL overridden via environment: {ttl_hours}h")

    for env_name, key in (
        ("TOTAL_MAX_RESULTS", "total_max_results"),
        ("MAX_PAGES", "max_pages"),
        ("MAX_RESULTS_PER_PAGE", "max_results_per_page"),
    ):
        if (value := _int_override(env_name)) is not None:
            data[key] = value
            logger.info(f"{key} overridden via environment: {value}")

    if (timeout := _float_override("EASYNEWS_REQUEST_TIMEOUT")) is not None:
        data["request_timeout"] = timeout
        logger.info(f"Request timeout overridden via environment: {timeout}s")

    if base_url := os.environ.get("EASYNEWS_BASE_URL"):
        data["base_url"] = base_url

    return SearchConfig.from_dict(data)
