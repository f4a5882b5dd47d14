"""Request and response models for the terminology API.

Raw payloads are validated here once; the rest of the package works with
these models and never probes raw dictionaries again.
"""

import logging
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)


def _code_as_text(value):
    # some rows carry numeric codes
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


Code = Annotated[str | None, BeforeValidator(_code_as_text)]

SourceFilter = Literal["namaste", "icd11", "both"]
AyushSystem = Literal["ayurveda", "yoga", "unani", "siddha", "homeopathy"]

NAMASTE_SOURCE = "NAMASTE"
ICD11_SOURCE = "ICD-11"


class SearchParams(BaseModel):
    """Query for /api/v1/search."""

    q: str = Field(min_length=1)
    source: SourceFilter = "both"
    ayush_system: AyushSystem | None = None

    def to_query(self) -> dict[str, str]:
        return self.model_dump(exclude_none=True)


class MapParams(BaseModel):
    """Query for /api/v1/map."""

    namaste_id: str = Field(min_length=1)
    include_fhir: bool = False


class BulkMapTerm(BaseModel):
    namaste_id: str = Field(min_length=1)
    patient_id: str | None = None


class BulkMapRequest(BaseModel):
    """Body for /api/v1/bulk-map."""

    terms: list[BulkMapTerm]

    def to_body(self) -> dict:
        return self.model_dump(exclude_none=True)


class FHIRConditionParams(BaseModel):
    """Query for /api/v1/fhir/condition."""

    namaste_id: str = Field(min_length=1)
    patient_id: str = Field(min_length=1)


class _SearchResultBase(BaseModel):
    # Upstream rows carry more fields than we model (category, uri, ...);
    # keep them so raw detail stays available to callers.
    model_config = ConfigDict(extra="allow")

    id: Code = None
    term: str = ""
    term_hindi: str | None = None
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    description: str | None = None
    synonyms: list[str] | None = None

    @field_validator("confidence", mode="before")
    @classmethod
    def _drop_bad_confidence(cls, value):
        """An unusable score blanks the score, not the row."""
        if value is None:
            return None
        try:
            score = float(value)
        except (TypeError, ValueError):
            score = None
        if score is None or not 0.0 <= score <= 1.0:
            logger.warning("Ignoring confidence %r outside 0.0-1.0", value)
            return None
        return score


class NamasteSearchResult(_SearchResultBase):
    source: Literal["NAMASTE"] = NAMASTE_SOURCE
    namaste_id: Code = None


class Icd11SearchResult(_SearchResultBase):
    source: Literal["ICD-11"] = ICD11_SOURCE
    icd11_code: Code = None


SearchResult = Annotated[
    Union[NamasteSearchResult, Icd11SearchResult],
    Field(discriminator="source"),
]


class SearchViews(BaseModel):
    """Normalized and raw views of the same search response."""

    results: list[SearchResult]
    raw: Any


class HealthStatus(BaseModel):
    model_config = ConfigDict(extra="allow")

    status: str = "unknown"
    timestamp: str | None = None
    version: str | None = None
    services: dict[str, Any] | None = None


class ApiStats(BaseModel):
    """Server-side request statistics reported by /api/v1/stats."""

    model_config = ConfigDict(extra="allow")

    total_requests: int = 0
    average_response_time: float = 0.0
    min_response_time: float = 0.0
    max_response_time: float = 0.0
    success_rate: float = 0.0
    uptime_seconds: float = 0.0
    recent_response_times: list[float] = []
    endpoint_counts: dict[str, int] = {}
    status_code_distribution: dict[str, int] = {}
    timestamp: str | None = None


def normalize_search_response(payload: dict) -> list[NamasteSearchResult | Icd11SearchResult]:
    """Flatten a raw search payload into one tagged list, NAMASTE rows first."""
    results: list[NamasteSearchResult | Icd11SearchResult] = []
    for row in _rows(payload, "namaste_results"):
        results.append(_tag(NamasteSearchResult, row, alias="namaste_id"))
    for row in _rows(payload, "icd11_results"):
        results.append(_tag(Icd11SearchResult, row, alias="icd11_code"))
    return results


def _rows(payload: dict, key: str) -> list[dict]:
    rows = payload.get(key) if isinstance(payload, dict) else None
    if not isinstance(rows, list):
        return []
    skipped = [row for row in rows if not isinstance(row, dict)]
    if skipped:
        logger.warning("Skipping %d malformed row(s) in %s", len(skipped), key)
    return [row for row in rows if isinstance(row, dict)]


def _tag(model: type[_SearchResultBase], row: dict, alias: str):
    data = dict(row)
    # The tag is ours; whatever the server put in "source" is discarded.
    data.pop("source", None)
    identifier = data.get("id")
    data[alias] = identifier if identifier is not None else data.get(alias)
    return model.model_validate(data)
