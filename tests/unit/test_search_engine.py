"""
Unit tests for EasynewsSearchEngine.search.

Tests cover:
- Input validation before any network access
- Request construction (URL, parameters, Authorization header, timeout)
- Cache hits, misses and TTL expiry
- Error mapping (401, other statuses, timeouts, network errors, bad JSON)
- No caching on failure paths
"""

import base64
import pytest
from typing import Any, Dict
from unittest.mock import AsyncMock, MagicMock
import httpx
from easynews_search.cache import SearchCache
from easynews_search.clock import ManualClock
from easynews_search.config_loader import SearchConfig
from easynews_search.exceptions import (
    AuthenticationFailed,
    InvalidArgument,
    RemoteRequestFailed,
    RequestTimedOut,
    TransportError,
)
from easynews_search.models import SearchParameters, SearchResponse, SortSpec
from easynews_search.search_engine import EasynewsSearchEngine
from easynews_search.transport import HttpTransport


def ok_response(payload: Dict[str, Any]) -> httpx.Response:
    return httpx.Response(200, json=payload)


class TestEasynewsSearchEngine:
    """Test suite for single-page search."""

    @pytest.fixture
    def payload(self) -> Dict[str, Any]:
        """Create a minimal upstream response."""
        return {
            "data": [{"0": "hash1", "10": "Movie.2020.1080p.mkv"}],
            "results": 1,
            "returned": 1,
            "unfilteredResults": 1,
            "downURL": "https://members.easynews.com/dl",
        }

    @pytest.fixture
    def transport(self, payload: Dict[str, Any]) -> MagicMock:
        """Create mock transport returning the payload."""
        transport = MagicMock(spec=HttpTransport)
        transport.fetch = AsyncMock(return_value=ok_response(payload))
        transport.close = AsyncMock()
        return transport

    @pytest.fixture
    def clock(self) -> ManualClock:
        return ManualClock(1_000_000.0)

    @pytest.fixture
    def engine(self, transport: MagicMock, clock: ManualClock) -> EasynewsSearchEngine:
        """Create engine with mocked transport and manual clock."""
        return EasynewsSearchEngine(
            "test-user",
            "test-password",
            config=SearchConfig(cache_ttl=3600),
            transport=transport,
            clock=clock,
        )

    def test_missing_credentials(self, transport: MagicMock) -> None:
        """Test that an engine requires a username."""
        with pytest.raises(InvalidArgument, match="Missing credentials"):
            EasynewsSearchEngine("", "secret", transport=transport)

    def test_engines_do_not_share_cache(self, transport: MagicMock) -> None:
        """Test that every engine owns its cache."""
        first = EasynewsSearchEngine("u", "p", transport=transport)
        second = EasynewsSearchEngine("u", "p", transport=transport)
        assert first.cache is not second.cache

    def test_injected_empty_cache_is_used(self, transport: MagicMock) -> None:
        """Test that an empty injected cache and config are kept."""
        cache = SearchCache(ttl=60)
        config = SearchConfig(max_pages=3)
        engine = EasynewsSearchEngine("u", "p", config=config, cache=cache, transport=transport)
        assert engine.cache is cache
        assert engine.config is config
        assert engine.transport is transport

    @pytest.mark.asyncio
    async def test_empty_query(self, engine: EasynewsSearchEngine, transport: MagicMock) -> None:
        """Test that an empty query fails before any network call."""
        with pytest.raises(InvalidArgument, match="Query parameter is required"):
            await engine.search(SearchParameters(query=""))
        transport.fetch.assert_not_called()
        assert len(engine.cache) == 0

    @pytest.mark.asyncio
    async def test_search_success(
        self, engine: EasynewsSearchEngine, transport: MagicMock, payload: Dict[str, Any]
    ) -> None:
        """Test a successful search."""
        result = await engine.search(SearchParameters(query="test"))

        assert isinstance(result, SearchResponse)
        assert result.to_dict() == payload
        transport.fetch.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_request_construction(
        self, engine: EasynewsSearchEngine, transport: MagicMock
    ) -> None:
        """Test URL, query parameters, headers and timeout of the request."""
        await engine.search(
            SearchParameters(
                query="the matrix",
                page=2,
                max_results=50,
                sort1=SortSpec.of("dtime", "+"),
            )
        )

        args, kwargs = transport.fetch.call_args
        assert args[0] == "https://members.easynews.com/2.0/search/solr-search/advanced"
        params = kwargs["params"]
        assert params["gps"] == "the matrix"
        assert params["pno"] == "2"
        assert params["pby"] == "50"
        assert params["s1"] == "dtime"
        assert params["s1d"] == "+"
        assert params["s2"] == "relevance"
        assert params["s3"] == "dtime"
        assert params["st"] == "adv"
        assert params["fty[]"] == "VIDEO"
        assert "mkv" in params["fex"].split(",")
        expected_auth = "Basic " + base64.b64encode(b"test-user:test-password").decode()
        assert kwargs["headers"] == {"Authorization": expected_auth}
        assert kwargs["timeout"] == 20.0

    @pytest.mark.asyncio
    async def test_max_results_capped(
        self, engine: EasynewsSearchEngine, transport: MagicMock
    ) -> None:
        """Test that page size never exceeds the per-page ceiling."""
        await engine.search(SearchParameters(query="test", max_results=1000))
        assert transport.fetch.call_args.kwargs["params"]["pby"] == "250"

    @pytest.mark.asyncio
    async def test_cache_hit(self, engine: EasynewsSearchEngine, transport: MagicMock) -> None:
        """Test that an identical search is served from cache."""
        first = await engine.search(SearchParameters(query="test"))
        second = await engine.search(SearchParameters(query="test"))

        assert second == first
        assert second is not first
        assert transport.fetch.await_count == 1

    @pytest.mark.asyncio
    async def test_cache_isolated_from_callers(
        self, engine: EasynewsSearchEngine, transport: MagicMock, payload: Dict[str, Any]
    ) -> None:
        """Test that mutating a returned response does not change the cached page."""
        first = await engine.search(SearchParameters(query="test"))
        first.data.append({"0": "injected"})
        first.data[0]["10"] = "changed.mkv"
        first.raw["downURL"] = "https://elsewhere.test"

        second = await engine.search(SearchParameters(query="test"))
        second.data.clear()
        third = await engine.search(SearchParameters(query="test"))

        assert third.to_dict() == payload
        assert transport.fetch.await_count == 1

    @pytest.mark.asyncio
    async def test_cache_hit_with_explicit_defaults(
        self, engine: EasynewsSearchEngine, transport: MagicMock
    ) -> None:
        """Test that explicit defaults hit the entry stored by an implicit request."""
        await engine.search(SearchParameters(query="test"))
        await engine.search(
            SearchParameters(query="test", page=1, max_results=250, sort1=SortSpec.of("dsize"))
        )
        assert transport.fetch.await_count == 1

    @pytest.mark.asyncio
    async def test_cache_expiry(
        self, engine: EasynewsSearchEngine, transport: MagicMock, clock: ManualClock
    ) -> None:
        """Test that an expired entry triggers a new request."""
        await engine.search(SearchParameters(query="test"))
        clock.advance(3601)
        await engine.search(SearchParameters(query="test"))

        assert transport.fetch.await_count == 2
        assert len(engine.cache) == 1

    @pytest.mark.asyncio
    async def test_authentication_failed(
        self, engine: EasynewsSearchEngine, transport: MagicMock
    ) -> None:
        """Test 401 handling and that nothing is cached."""
        transport.fetch.return_value = httpx.Response(401)

        with pytest.raises(AuthenticationFailed, match="Authentication failed"):
            await engine.search(SearchParameters(query="test"))
        with pytest.raises(AuthenticationFailed):
            await engine.search(SearchParameters(query="test"))

        assert transport.fetch.await_count == 2
        assert len(engine.cache) == 0

    @pytest.mark.asyncio
    async def test_remote_request_failed(
        self, engine: EasynewsSearchEngine, transport: MagicMock
    ) -> None:
        """Test non-success status handling."""
        transport.fetch.return_value = httpx.Response(500)

        with pytest.raises(RemoteRequestFailed, match="Failed to fetch search results") as exc_info:
            await engine.search(SearchParameters(query="test"))

        assert exc_info.value.status_code == 500
        assert exc_info.value.reason == "Internal Server Error"
        assert len(engine.cache) == 0

    @pytest.mark.asyncio
    async def test_timeout(self, engine: EasynewsSearchEngine, transport: MagicMock) -> None:
        """Test timeout handling."""
        transport.fetch.side_effect = httpx.ReadTimeout("timed out")

        with pytest.raises(RequestTimedOut, match="timed out") as exc_info:
            await engine.search(SearchParameters(query="test"))

        assert isinstance(exc_info.value.__cause__, httpx.ReadTimeout)
        assert len(engine.cache) == 0

    @pytest.mark.asyncio
    async def test_network_error(self, engine: EasynewsSearchEngine, transport: MagicMock) -> None:
        """Test network error handling."""
        cause = httpx.ConnectError("connection refused")
        transport.fetch.side_effect = cause

        with pytest.raises(TransportError) as exc_info:
            await engine.search(SearchParameters(query="test"))

        assert exc_info.value.cause is cause
        assert len(engine.cache) == 0

    @pytest.mark.asyncio
    async def test_invalid_json(self, engine: EasynewsSearchEngine, transport: MagicMock) -> None:
        """Test that an undecodable body is a transport error."""
        transport.fetch.return_value = httpx.Response(200, content=b"<html>oops</html>")

        with pytest.raises(TransportError, match="Invalid JSON"):
            await engine.search(SearchParameters(query="test"))
        assert len(engine.cache) == 0

    @pytest.mark.asyncio
    async def test_failure_then_success_is_cached(
        self, engine: EasynewsSearchEngine, transport: MagicMock, payload: Dict[str, Any]
    ) -> None:
        """Test that a retry after failure fetches and caches normally."""
        transport.fetch.side_effect = [httpx.Response(503), ok_response(payload)]

        with pytest.raises(RemoteRequestFailed):
            await engine.search(SearchParameters(query="test"))
        result = await engine.search(SearchParameters(query="test"))

        assert result.data == payload["data"]
        assert len(engine.cache) == 1

    @pytest.mark.asyncio
    async def test_shared_cache(self, transport: MagicMock) -> None:
        """Test that a cache passed to two engines is shared."""
        cache = SearchCache(ttl=60)
        first = EasynewsSearchEngine("u", "p", cache=cache, transport=transport)
        second = EasynewsSearchEngine("u", "p", cache=cache, transport=transport)

        await first.search(SearchParameters(query="test"))
        await second.search(SearchParameters(query="test"))

        assert transport.fetch.await_count == 1

    @pytest.mark.asyncio
    async def test_context_manager_closes_transport(self, transport: MagicMock) -> None:
        """Test that leaving the context closes the transport."""
        async with EasynewsSearchEngine("u", "p", transport=transport) as engine:
            assert engine.transport is transport
        transport.close.assert_awaited_once()
