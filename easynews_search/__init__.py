"""
Easynews search engine.

This package contains the search components:
- SearchCache: TTL cache for single result pages
- EasynewsSearchEngine: Single-page search and multi-page aggregation
- HttpTransport: httpx-based transport to the remote search API
- SearchConfig: Limits and timeouts loaded from YAML and environment
"""

from easynews_search.cache import CacheEntry, SearchCache
from easynews_search.config_loader import SearchConfig, load_search_config
from easynews_search.exceptions import (
    AuthenticationFailed,
    EasynewsSearchError,
    InvalidArgument,
    RemoteRequestFailed,
    RequestTimedOut,
    TransportError,
)
from easynews_search.models import (
    OutcomeStatus,
    SearchOutcome,
    SearchParameters,
    SearchResponse,
    SortDirection,
    SortKey,
    SortSpec,
)
from easynews_search.search_engine import EasynewsSearchEngine
from easynews_search.transport import HttpTransport

__all__ = [
    "AuthenticationFailed",
    "CacheEntry",
    "EasynewsSearchEngine",
    "EasynewsSearchError",
    "HttpTransport",
    "InvalidArgument",
    "OutcomeStatus",
    "RemoteRequestFailed",
    "RequestTimedOut",
    "SearchCache",
    "SearchConfig",
    "SearchOutcome",
    "SearchParameters",
    "SearchResponse",
    "SortDirection",
    "SortKey",
    "SortSpec",
    "TransportError",
    "load_search_config",
]
