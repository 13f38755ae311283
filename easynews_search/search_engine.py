"""
Easynews search engine.

This module implements the search engine that handles:
- Single-page searches against the remote search API, through the cache
- Multi-page aggregation with page sizing, duplicate-page detection and
  result/page ceilings
- Translation of HTTP and transport failures into search errors
- Partial-result recovery when a later page fails
"""

import asyncio
from typing import Any, Dict, List, Optional

import httpx

from easynews_search.auth import create_basic
from easynews_search.cache import SearchCache
from easynews_search.clock import Clock
from easynews_search.config_loader import SearchConfig
from easynews_search.exceptions import (
    AuthenticationFailed,
    EasynewsSearchError,
    InvalidArgument,
    RemoteRequestFailed,
    RequestTimedOut,
    TransportError,
)
from easynews_search.logger import get_logger
from easynews_search.models import (
    OutcomeStatus,
    SearchOutcome,
    SearchParameters,
    SearchResponse,
    item_id,
)
from easynews_search.transport import HttpTransport

SEARCH_PATH = "/2.0/search/solr-search/advanced"
VIDEO_EXTENSIONS = "m4v,3gp,mov,divx,xvid,wmv,avi,mpg,mpeg,mp4,mkv,avc,flv,webm"


class EasynewsSearchEngine:
    """
    Search engine for the Easynews search API.

    Owns its cache and transport; two engines never share state unless
    the same cache is passed to both.

    Attributes:
        config: SearchConfig with limits and timeouts
        cache: SearchCache holding single result pages
        transport: HttpTransport used on cache misses
        logger: Logger instance for logging
    """

    def __init__(
        self,
        username: str,
        password: str,
        config: Optional[SearchConfig] = None,
        cache: Optional[SearchCache] = None,
        transport: Optional[HttpTransport] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        """
        Initialize search engine.

        Args:
            username: Account username
            password: Account password
            config: Limits and timeouts (default: SearchConfig())
            cache: Cache to use (default: new SearchCache with config.cache_ttl)
            transport: Transport to use (default: new HttpTransport)
            clock: Time source for a cache created here

        Raises:
            InvalidArgument: If username is missing
        """
        if not username:
            raise InvalidArgument("Missing credentials")

        self.config = config if config is not None else SearchConfig()
        self.cache = (
            cache if cache is not None else SearchCache(ttl=self.config.cache_ttl, clock=clock)
        )
        self.transport = transport if transport is not None else HttpTransport()
        self.logger = get_logger("easynews_search.search_engine")
        self._username = username
        self._authorization = create_basic(username, password)

    async def __aenter__(self) -> "EasynewsSearchEngine":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the transport and release its connections."""
        await self.transport.close()

    def _canonicalize(self, params: SearchParameters) -> SearchParameters:
        """
        Validate parameters and resolve the page size against the per-page ceiling.

        Raises:
            InvalidArgument: If the parameters are invalid
        """
        params.validate()
        ceiling = self.config.max_results_per_page
        max_results = params.max_results if params.max_results is not None else ceiling
        if max_results > ceiling:
            self.logger.warning(
                f"max_results ({max_results}) exceeds per-page limit ({ceiling}), "
                f"capping to {ceiling}"
            )
            max_results = ceiling
        return params.with_page(params.page, max_results)

    def _build_request_params(self, params: SearchParameters) -> Dict[str, str]:
        return {
            "st": "adv",
            "sb": "1",
            "fex": VIDEO_EXTENSIONS,
            "fty[]": "VIDEO",
            "spamf": "1",
            "u": "1",
            "gx": "1",
            "pno": str(params.page),
            "sS": "3",
            "s1": params.sort1.key.value,
            "s1d": params.sort1.direction.value,
            "s2": params.sort2.key.value,
            "s2d": params.sort2.direction.value,
            "s3": params.sort3.key.value,
            "s3d": params.sort3.direction.value,
            "pby": str(params.max_results),
            "safeO": "0",
            "gps": params.query,
        }

    async def search(self, params: SearchParameters) -> SearchResponse:
        """
        Fetch a single result page.

        This method:
        1. Validates and canonicalizes the parameters
        2. Returns the cached page on a cache hit
        3. Otherwise requests the page from the remote API
        4. Caches and returns successful responses only

        Args:
            params: Search parameters

        Returns:
            SearchResponse for the requested page

        Raises:
            InvalidArgument: If the query is empty or parameters are out of range
            AuthenticationFailed: On HTTP 401
            RemoteRequestFailed: On any other non-success status
            RequestTimedOut: If the request times out
            TransportError: On any other network-level failure
        """
        canonical = self._canonicalize(params)
        query = canonical.query

        self.logger.debug(
            f'Searching for: "{query}" (page {canonical.page}, max {canonical.max_results})'
        )

        cache_key = canonical.cache_key(self.config.max_results_per_page)
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached.response.copy()

        url = f"{self.config.base_url.rstrip('/')}{SEARCH_PATH}"
        timeout = self.config.request_timeout

        try:
            response = await self.transport.fetch(
                url,
                params=self._build_request_params(canonical),
                headers={"Authorization": self._authorization},
                timeout=timeout,
            )
        except (httpx.TimeoutException, asyncio.TimeoutError) as e:
            self.logger.error(f'Search request timed out for: "{query}"')
            raise RequestTimedOut(
                f"Search request for '{query}' timed out after {timeout:g} seconds"
            ) from e
        except httpx.HTTPError as e:
            self.logger.error(f"Error during search for '{query}': {e}")
            raise TransportError(f"Search request for '{query}' failed: {e}", cause=e) from e

        if response.status_code == 401:
            self.logger.error(f"Authentication failed for user: {self._username}")
            raise AuthenticationFailed("Authentication failed: Invalid username or password")

        if not response.is_success:
            reason = response.reason_phrase
            self.logger.error(f"Request failed with status: {response.status_code} {reason}")
            raise RemoteRequestFailed(
                f"Failed to fetch search results of query '{query}': "
                f"{response.status_code} {reason}",
                status_code=response.status_code,
                reason=reason,
            )

        try:
            payload = response.json()
        except ValueError as e:
            self.logger.error(f"Invalid JSON in search response for '{query}': {e}")
            raise TransportError(f"Invalid JSON in search response for '{query}'", cause=e) from e

        if not isinstance(payload, dict):
            raise TransportError(f"Unexpected search response shape for '{query}'")

        result = SearchResponse.from_json(payload)
        self.logger.debug(
            f"Received {len(result.data)} results out of {result.results} total"
        )
        self.cache.put(cache_key, result.copy())
        return result

    async def search_all_outcome(
        self,
        params: SearchParameters,
        total_max_results: Optional[int] = None,
        max_pages: Optional[int] = None,
        max_results_per_page: Optional[int] = None,
    ) -> SearchOutcome:
        """
        Fetch consecutive pages and combine them into one response.

        Pages are fetched one at a time. Each page requests at most the
        number of items still needed. Pagination stops when a page is
        empty, when a page starts with the same item as page 1, when the
        result ceiling is reached, or when the page ceiling is reached.

        Args:
            params: Search parameters (page and max_results are ignored)
            total_max_results: Result ceiling (default: config.total_max_results)
            max_pages: Page ceiling (default: config.max_pages)
            max_results_per_page: Page size ceiling, never above
                config.max_results_per_page

        Returns:
            SearchOutcome tagged COMPLETE, PARTIAL or FAILED

        Raises:
            InvalidArgument: If a limit override is not positive
        """
        total_limit = self._limit("total_max_results", total_max_results)
        page_limit = self._limit("max_pages", max_pages)
        per_page = min(
            self._limit("max_results_per_page", max_results_per_page),
            self.config.max_results_per_page,
        )

        self.logger.debug(f'Starting search_all for: "{params.query}"')
        self.logger.info(
            f"Search limits: max {total_limit} results, max {page_limit} pages, "
            f"{per_page} per page"
        )

        collected: List[Dict[str, Any]] = []
        latest = SearchResponse()
        pages_fetched = 0
        page = 1

        try:
            while pages_fetched < page_limit:
                remaining = total_limit - len(collected)
                if remaining <= 0:
                    self.logger.debug(
                        f"Reached result limit ({total_limit}), stopping pagination"
                    )
                    break

                page_size = min(per_page, remaining)
                self.logger.debug(f"Fetching page {page} with {page_size} results per page")
                latest = await self.search(params.with_page(page, page_size))
                pages_fetched += 1

                items = latest.data
                if not items:
                    self.logger.debug("No more results found, stopping pagination")
                    break

                # Items without an identifier never match, so pages of unidentifiable
                # items are bounded by the page ceiling instead
                first_id = item_id(items[0])
                if collected and first_id is not None and first_id == item_id(collected[0]):
                    self.logger.debug("Duplicate results detected, stopping pagination")
                    break

                self.logger.debug(f"Adding {len(items)} results from page {page}")
                collected.extend(items[:remaining])

                if len(collected) >= total_limit:
                    self.logger.debug(
                        f"Reached result limit ({total_limit}), stopping pagination"
                    )
                    break

                page += 1
        except EasynewsSearchError as e:
            if collected:
                self.logger.warning(
                    f"Partial results returned due to error: {e} "
                    f"({len(collected)} results from {pages_fetched} pages)"
                )
                return SearchOutcome(
                    status=OutcomeStatus.PARTIAL,
                    response=latest.with_data(collected),
                    error=e,
                    pages_fetched=pages_fetched,
                )
            self.logger.debug(f"No results to return due to error: {e}")
            return SearchOutcome(
                status=OutcomeStatus.FAILED, error=e, pages_fetched=pages_fetched
            )

        self.logger.debug(f"search_all complete, returning {len(collected)} total results")
        return SearchOutcome(
            status=OutcomeStatus.COMPLETE,
            response=latest.with_data(collected),
            pages_fetched=pages_fetched,
        )

    async def search_all(
        self,
        params: SearchParameters,
        total_max_results: Optional[int] = None,
        max_pages: Optional[int] = None,
        max_results_per_page: Optional[int] = None,
    ) -> SearchResponse:
        """
        Fetch consecutive pages and return the combined response.

        A failure after at least one item was collected is logged and the
        partial response is returned. A failure before that is re-raised
        unchanged.

        Args:
            params: Search parameters (page and max_results are ignored)
            total_max_results: Result ceiling (default: config.total_max_results)
            max_pages: Page ceiling (default: config.max_pages)
            max_results_per_page: Page size ceiling

        Returns:
            Combined SearchResponse

        Raises:
            EasynewsSearchError: The first page's error when nothing was collected
        """
        outcome = await self.search_all_outcome(
            params,
            total_max_results=total_max_results,
            max_pages=max_pages,
            max_results_per_page=max_results_per_page,
        )
        return outcome.unwrap()

    def _limit(self, name: str, override: Optional[int]) -> int:
        if override is None:
            return int(getattr(self.config, name))
        if override <= 0:
            raise InvalidArgument(f"{name} must be positive, got {override}")
        return override
