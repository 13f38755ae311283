"""
Data model for search requests, responses and aggregation outcomes.

SearchParameters is the immutable request record. Its cache key is a JSON
string with a fixed field order, built after every default is resolved, so
requests that only differ in omitted-vs-explicit defaults share one key.
SearchResponse keeps the upstream payload opaque apart from the result
list and the three count fields.
"""

import copy
import json
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from easynews_search.exceptions import EasynewsSearchError, InvalidArgument


class SortKey(Enum):
    """Sort keys understood by the remote search API."""

    SIZE = "dsize"
    RELEVANCE = "relevance"
    DATE = "dtime"


class SortDirection(Enum):
    """Sort direction flags."""

    ASCENDING = "+"
    DESCENDING = "-"


@dataclass(frozen=True)
class SortSpec:
    """One sort key/direction pair."""

    key: SortKey
    direction: SortDirection = SortDirection.DESCENDING

    @classmethod
    def of(
        cls,
        key: Union[SortKey, str],
        direction: Union[SortDirection, str] = SortDirection.DESCENDING,
    ) -> "SortSpec":
        """
        Build a sort spec from enum members or their raw API values.

        Raises:
            InvalidArgument: If the key or direction is not recognised
        """
        try:
            return cls(SortKey(key), SortDirection(direction))
        except ValueError as e:
            raise InvalidArgument(f"Invalid sort specification: {key!r} {direction!r}") from e


DEFAULT_SORT1 = SortSpec(SortKey.SIZE)
DEFAULT_SORT2 = SortSpec(SortKey.RELEVANCE)
DEFAULT_SORT3 = SortSpec(SortKey.DATE)


@dataclass(frozen=True)
class SearchParameters:
    """
    Parameters of a single search request.

    Attributes:
        query: Free-text query (required, non-empty)
        page: Page number, starting at 1
        max_results: Results per page; None means the engine's per-page ceiling
        sort1: Primary sort
        sort2: Secondary sort
        sort3: Tertiary sort
    """

    query: str
    page: int = 1
    max_results: Optional[int] = None
    sort1: SortSpec = DEFAULT_SORT1
    sort2: SortSpec = DEFAULT_SORT2
    sort3: SortSpec = DEFAULT_SORT3

    def validate(self) -> None:
        """
        Check the parameters before any cache or network access.

        Raises:
            InvalidArgument: If the query is empty or a number is out of range
        """
        if not self.query or not self.query.strip():
            raise InvalidArgument("Query parameter is required")
        if self.page < 1:
            raise InvalidArgument(f"Page number must be positive, got {self.page}")
        if self.max_results is not None and self.max_results < 1:
            raise InvalidArgument(f"max_results must be positive, got {self.max_results}")

    def with_page(self, page: int, max_results: int) -> "SearchParameters":
        """Return a copy targeting another page with the given page size."""
        return replace(self, page=page, max_results=max_results)

    def cache_key(self, default_max_results: int) -> str:
        """
        Build the canonical cache key.

        Args:
            default_max_results: Page size used when max_results is omitted

        Returns:
            JSON string with a fixed field order
        """
        max_results = self.max_results if self.max_results is not None else default_max_results
        # Field order is fixed by the list, never by dict sorting of user input
        fields = [
            ("query", self.query),
            ("page", self.page),
            ("max_results", max_results),
            ("sort1", self.sort1.key.value),
            ("sort1_direction", self.sort1.direction.value),
            ("sort2", self.sort2.key.value),
            ("sort2_direction", self.sort2.direction.value),
            ("sort3", self.sort3.key.value),
            ("sort3_direction", self.sort3.direction.value),
        ]
        return json.dumps(dict(fields), separators=(",", ":"), ensure_ascii=False)


@dataclass
class SearchResponse:
    """
    One page (or an aggregate of pages) returned by the remote API.

    Attributes:
        data: Ordered result items, passed through as decoded JSON objects
        results: Total number of matches reported upstream
        returned: Number of items returned upstream for the request
        unfiltered_results: Match count before upstream filtering
        raw: Every other upstream field, untouched
    """

    data: List[Dict[str, Any]] = field(default_factory=list)
    results: int = 0
    returned: int = 0
    unfiltered_results: int = 0
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_json(cls, payload: Dict[str, Any]) -> "SearchResponse":
        """
        Wrap a decoded JSON body.

        Args:
            payload: Decoded response body

        Returns:
            SearchResponse instance
        """
        extra = {
            k: v
            for k, v in payload.items()
            if k not in ("data", "results", "returned", "unfilteredResults")
        }
        return cls(
            data=list(payload.get("data") or []),
            results=payload.get("results") or 0,
            returned=payload.get("returned") or 0,
            unfiltered_results=payload.get("unfilteredResults") or 0,
            raw=extra,
        )

    def with_data(self, data: List[Dict[str, Any]]) -> "SearchResponse":
        """Return a copy carrying this response's metadata and ``data``."""
        return replace(self, data=list(data), raw=dict(self.raw))

    def copy(self) -> "SearchResponse":
        """Return a deep copy that shares no mutable state with this response."""
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        """Rebuild the upstream JSON shape."""
        payload = dict(self.raw)
        payload.update(
            {
                "data": list(self.data),
                "results": self.results,
                "returned": self.returned,
                "unfilteredResults": self.unfiltered_results,
            }
        )
        return payload


def item_id(item: Any) -> Any:
    """Stable identifier of a result item: its first positional field."""
    if isinstance(item, dict):
        return item.get("0")
    return None


class OutcomeStatus(Enum):
    """How a multi-page search ended."""

    COMPLETE = "complete"  # All requested pages fetched or a stop condition hit
    PARTIAL = "partial"  # A later page failed, earlier pages are returned
    FAILED = "failed"  # Failed before any item was collected


@dataclass
class SearchOutcome:
    """
    Tagged result of a multi-page search.

    Attributes:
        status: COMPLETE, PARTIAL or FAILED
        response: Aggregated response (None when FAILED)
        error: The error that ended pagination (PARTIAL and FAILED only)
        pages_fetched: Number of pages fetched successfully
    """

    status: OutcomeStatus
    response: Optional[SearchResponse] = None
    error: Optional[EasynewsSearchError] = None
    pages_fetched: int = 0

    @property
    def degraded(self) -> bool:
        """True when the response is missing pages because of an error."""
        return self.status is OutcomeStatus.PARTIAL

    def unwrap(self) -> SearchResponse:
        """
        Return the response, or raise the error of a failed outcome.

        Raises:
            EasynewsSearchError: The original error when status is FAILED
        """
        if self.status is OutcomeStatus.FAILED or self.response is None:
            if self.error is None:
                raise EasynewsSearchError(
                    f"Search outcome {self.status.value} carries no response"
                )
            raise self.error
        return self.response
