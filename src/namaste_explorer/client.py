"""Instrumented client for the NAMASTE / ICD-11 terminology API.

Every outbound call goes through TerminologyClient._request, which counts the
attempt, times it, and converts any failure into an ApiClientError.
"""

import logging
from collections.abc import Callable, Mapping
from typing import Any

import httpx
from pydantic import BaseModel

from namaste_explorer.config import ClientConfig
from namaste_explorer.errors import classify_error
from namaste_explorer.models import (
    ApiStats,
    BulkMapRequest,
    FHIRConditionParams,
    HealthStatus,
    MapParams,
    SearchParams,
    SearchResult,
    SearchViews,
    normalize_search_response,
)
from namaste_explorer.telemetry import CallTelemetry, CallTimer

logger = logging.getLogger(__name__)

HEALTH_PATH = "/health"
STATS_PATH = "/api/v1/stats"
SEARCH_PATH = "/api/v1/search"
MAP_PATH = "/api/v1/map"
BULK_MAP_PATH = "/api/v1/bulk-map"
FHIR_CONDITION_PATH = "/api/v1/fhir/condition"


class TerminologyClient:
    """Async client that records per-call telemetry and normalizes results."""

    def __init__(self, config: ClientConfig | None = None, transport: httpx.AsyncBaseTransport | None = None):
        self.config = config or ClientConfig()
        self.telemetry = CallTelemetry()
        self._http = httpx.AsyncClient(
            base_url=self.config.base_url,
            timeout=self.config.timeout_seconds,
            headers=self.config.headers,
            transport=transport,
        )

    async def __aenter__(self) -> "TerminologyClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # -- remote operations -------------------------------------------------

    async def check_health(self) -> HealthStatus:
        return await self._request("GET", HEALTH_PATH, parse=HealthStatus.model_validate)

    async def get_stats(self) -> ApiStats:
        """Fetch the server's own request statistics."""
        return await self._request("GET", STATS_PATH, parse=ApiStats.model_validate)

    async def search(self, params: SearchParams | Mapping) -> list[SearchResult]:
        """Search both vocabularies and return one flat, source-tagged list."""
        return await self._search(params, parse=normalize_search_response)

    async def search_raw(self, params: SearchParams | Mapping) -> dict[str, Any]:
        """Same call as search() but returns the server payload untouched.

        This issues its own request; use search_with_raw() when both views
        must describe the same response.
        """
        return await self._search(params)

    async def search_with_raw(self, params: SearchParams | Mapping) -> SearchViews:
        """One search request, returned both normalized and raw."""
        return await self._search(
            params,
            parse=lambda data: SearchViews(results=normalize_search_response(data), raw=data),
        )

    async def map_terminology(self, params: MapParams | Mapping) -> dict[str, Any]:
        # POST, but the endpoint takes its arguments in the query string
        return await self._request(
            "POST", MAP_PATH,
            prepare=lambda: {"params": _coerce(MapParams, params).model_dump()},
        )

    async def bulk_map(self, request: BulkMapRequest | Mapping) -> list[dict[str, Any]]:
        """Map several terms at once; results come back in input order."""
        return await self._request(
            "POST", BULK_MAP_PATH,
            prepare=lambda: {"json": _coerce(BulkMapRequest, request).to_body()},
        )

    async def get_fhir_condition(self, params: FHIRConditionParams | Mapping) -> dict[str, Any]:
        return await self._request(
            "GET", FHIR_CONDITION_PATH,
            prepare=lambda: {"params": _coerce(FHIRConditionParams, params).model_dump()},
        )

    # -- local telemetry ---------------------------------------------------

    def get_request_count(self) -> int:
        return self.telemetry.request_count

    def get_average_response_time(self) -> int:
        return self.telemetry.average_response_time()

    def get_response_times(self) -> list[int]:
        return self.telemetry.response_times()

    def reset_stats(self) -> None:
        self.telemetry.reset()

    # -- plumbing ----------------------------------------------------------

    async def _search(self, params, parse=None):
        return await self._request(
            "GET", SEARCH_PATH,
            prepare=lambda: {"params": _coerce(SearchParams, params).to_query()},
            parse=parse,
        )

    async def _request(
        self,
        method: str,
        path: str,
        prepare: Callable[[], dict] | None = None,
        parse: Callable[[Any], Any] | None = None,
    ) -> Any:
        """Perform one counted, timed call.

        `prepare` builds the httpx keyword arguments and `parse` shapes the
        decoded payload. Both run inside the bracket, so a call rejected
        locally still counts as an attempt and every failure is classified.
        """
        with CallTimer(self.telemetry) as timer:
            try:
                kwargs = prepare() if prepare else {}
                response = await self._http.request(method, path, **kwargs)
                response.raise_for_status()
                data = response.json()
                result = parse(data) if parse else data
            except Exception as exc:
                error = classify_error(exc)
                logger.warning("%s %s failed (%s): %s", method, path, error.kind, error.message)
                if error is exc:
                    raise
                raise error from exc
        logger.debug("%s %s -> %s in %d ms", method, path, response.status_code, timer.elapsed_ms)
        return result


def _coerce(model: type[BaseModel], value):
    if isinstance(value, model):
        return value
    return model.model_validate(value)
