import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from namaste_explorer.models import (
    ApiStats,
    BulkMapRequest,
    HealthStatus,
    Icd11SearchResult,
    NamasteSearchResult,
    SearchParams,
    normalize_search_response,
)

FIXTURES = Path(__file__).parent / "fixtures"


class TestSearchParams:
    def test_defaults_to_both_sources(self):
        params = SearchParams(q="fever")
        assert params.source == "both"
        assert params.ayush_system is None

    def test_query_omits_unset_ayush_system(self):
        assert SearchParams(q="fever").to_query() == {"q": "fever", "source": "both"}

    def test_query_includes_ayush_system(self):
        params = SearchParams(q="jvara", source="namaste", ayush_system="siddha")
        assert params.to_query() == {"q": "jvara", "source": "namaste", "ayush_system": "siddha"}

    def test_rejects_unknown_source(self):
        with pytest.raises(ValidationError):
            SearchParams(q="fever", source="snomed")

    def test_rejects_empty_query(self):
        with pytest.raises(ValidationError):
            SearchParams(q="")


class TestBulkMapRequest:
    def test_body_drops_missing_patient_ids(self):
        request = BulkMapRequest(terms=[{"namaste_id": "NAM001"}, {"namaste_id": "NAM002", "patient_id": "P001"}])
        assert request.to_body() == {
            "terms": [{"namaste_id": "NAM001"}, {"namaste_id": "NAM002", "patient_id": "P001"}]
        }


class TestNormalizeSearchResponse:
    def test_tags_and_orders_results(self):
        payload = {
            "namaste_results": [{"id": "A1", "term": "Fever"}],
            "icd11_results": [{"id": "B2", "term": "Pyrexia"}],
        }
        results = normalize_search_response(payload)

        assert len(results) == 2
        first, second = results
        assert isinstance(first, NamasteSearchResult)
        assert (first.source, first.namaste_id, first.term) == ("NAMASTE", "A1", "Fever")
        assert isinstance(second, Icd11SearchResult)
        assert (second.source, second.icd11_code, second.term) == ("ICD-11", "B2", "Pyrexia")

    def test_missing_arrays_give_empty_list(self):
        assert normalize_search_response({"icd11_results": []}) == []
        assert normalize_search_response({}) == []

    def test_non_list_array_treated_as_empty(self):
        assert normalize_search_response({"namaste_results": None, "icd11_results": "oops"}) == []

    def test_alias_used_when_id_missing(self):
        results = normalize_search_response({"icd11_results": [{"icd11_code": "1A00", "term": "Cholera"}]})
        assert results[0].icd11_code == "1A00"

    def test_id_wins_over_alias(self):
        results = normalize_search_response({"namaste_results": [{"id": "A1", "namaste_id": "OLD", "term": "x"}]})
        assert results[0].namaste_id == "A1"

    def test_raw_source_is_ignored(self):
        payload = json.loads((FIXTURES / "search_response.json").read_text(encoding="utf-8"))
        results = normalize_search_response(payload)

        assert [r.source for r in results] == ["NAMASTE", "NAMASTE", "ICD-11"]
        assert results[1].namaste_id == "NAM014"

    def test_extra_fields_preserved(self):
        payload = json.loads((FIXTURES / "search_response.json").read_text(encoding="utf-8"))
        first = normalize_search_response(payload)[0]

        assert first.synonyms == ["Jwara", "Taapa"]
        assert first.model_dump()["ayush_system"] == "ayurveda"

    def test_out_of_range_confidence_blanks_only_that_row(self):
        results = normalize_search_response({
            "icd11_results": [
                {"id": "MG26", "term": "Fever", "confidence": 1.02},
                {"id": "1A00", "term": "Cholera", "confidence": 0.4},
            ]
        })

        assert [r.confidence for r in results] == [None, 0.4]

    def test_non_numeric_confidence_blanked(self):
        results = normalize_search_response({"namaste_results": [{"id": "A1", "term": "x", "confidence": "high"}]})
        assert results[0].confidence is None

    def test_numeric_codes_become_text(self):
        results = normalize_search_response({
            "namaste_results": [{"id": 101, "term": "Jvara"}],
            "icd11_results": [{"icd11_code": 26, "term": "Fever"}],
        })

        assert results[0].id == "101"
        assert results[0].namaste_id == "101"
        assert results[1].icd11_code == "26"

    def test_non_object_rows_skipped(self):
        results = normalize_search_response({"namaste_results": ["A1", 7, {"id": "A2", "term": "Fever"}]})
        assert [r.namaste_id for r in results] == ["A2"]


class TestResponseModels:
    def test_health_services_may_nest(self):
        health = HealthStatus.model_validate({"status": "ok", "services": {"db": {"ok": True}, "icd11": "up"}})
        assert health.services["db"] == {"ok": True}

    def test_health_keeps_unknown_fields(self):
        health = HealthStatus.model_validate({"status": "healthy", "region": "iad1"})
        assert health.status == "healthy"
        assert health.model_dump()["region"] == "iad1"

    def test_stats_defaults(self):
        stats = ApiStats.model_validate({"total_requests": 3})
        assert stats.total_requests == 3
        assert stats.recent_response_times == []
        assert stats.endpoint_counts == {}
