"""Tests for the normalization stage."""

import asyncio

import pytest

from amount_detector.llm_client import LLMResponseError, RPCCallError
from amount_detector.schemas import IngestResult, IngestStatus
from amount_detector.services.normalization import (
    NormalizationService,
    fallback_normalize,
    parse_number_array,
)


def ingest_of(text, *tokens):
    return IngestResult(
        status=IngestStatus.OK,
        raw_text=text,
        raw_tokens=tokens,
        confidence=0.9,
    )


class TestFallbackNormalize:
    """Tests for the deterministic cleaner."""

    def test_plain_numbers(self):
        assert fallback_normalize(["500", "50", "550"]) == [500.0, 50.0, 550.0]

    def test_commas_are_grouping(self):
        assert fallback_normalize(["1,200", "17,5"]) == [1200.0, 175.0]

    def test_unparseable_dropped(self):
        assert fallback_normalize(["abc", "12.50", ""]) == [12.5]

    def test_order_preserved(self):
        assert fallback_normalize(["3", "1", "2"]) == [3.0, 1.0, 2.0]


class TestParseNumberArray:
    """Tests for LLM payload validation."""

    def test_numbers(self):
        assert parse_number_array([1200, 1000.5]) == [1200.0, 1000.5]

    def test_empty(self):
        assert parse_number_array([]) == []

    @pytest.mark.parametrize(
        "payload",
        [
            {"amounts": [1]},
            "1200",
            None,
            [1, "2"],
            [True],
            [[1]],
            [float("nan"), 550],
            [float("inf")],
            [float("-inf")],
            [10**400],
        ],
    )
    def test_rejected(self, payload):
        with pytest.raises(LLMResponseError):
            parse_number_array(payload)


class TestNormalizationService:
    """Tests for the normalization service."""

    def test_without_llm_uses_fallback(self):
        ingest = ingest_of("Consultation: 500\nTax: 50\nTotal: 550", "500", "50", "550")

        result = asyncio.run(NormalizationService().normalize(ingest))

        assert result.normalized_amounts == (500.0, 50.0, 550.0)
        assert result.llm_succeeded is False
        assert result.confidence == pytest.approx(0.7)

    def test_llm_result_used(self, fake_llm, sample_pipe_bill):
        llm = fake_llm([1200, 1000, 200])
        ingest = ingest_of(sample_pipe_bill, "1,200", "1000", "200")

        result = asyncio.run(NormalizationService(llm).normalize(ingest))

        assert result.normalized_amounts == (1200.0, 1000.0, 200.0)
        assert result.llm_succeeded is True
        assert result.confidence == pytest.approx(0.95)

        call = llm.calls[0]
        assert sample_pipe_bill in call["user_message"]
        assert '["1,200", "1000", "200"]' in call["user_message"]
        assert call["response_schema"]["type"] == "ARRAY"

    def test_llm_may_filter_tokens(self, fake_llm):
        llm = fake_llm([550])
        ingest = ingest_of("Qty 2, GST 18%, Total 550", "2", "18", "550")

        result = asyncio.run(NormalizationService(llm).normalize(ingest))

        assert result.normalized_amounts == (550.0,)
        assert result.llm_succeeded is True

    def test_llm_failure_falls_back(self, fake_llm):
        llm = fake_llm(RPCCallError("API call failed after 3 attempts. Status: 503", 503))
        ingest = ingest_of("Total: INR 1,200", "1,200")

        result = asyncio.run(NormalizationService(llm).normalize(ingest))

        assert result.normalized_amounts == (1200.0,)
        assert result.llm_succeeded is False
        assert result.confidence == pytest.approx(0.7)

    def test_schema_mismatch_falls_back(self, fake_llm):
        llm = fake_llm(["twelve hundred"])
        ingest = ingest_of("Total: INR 1,200", "1,200")

        result = asyncio.run(NormalizationService(llm).normalize(ingest))

        assert result.normalized_amounts == (1200.0,)
        assert result.llm_succeeded is False

    def test_confidence_is_rounded(self):
        ingest = ingest_of("x", "1", "2", "abc")

        result = asyncio.run(NormalizationService().normalize(ingest))

        assert result.confidence == round(result.confidence, 2)

    def test_non_finite_llm_output_falls_back(self, fake_llm):
        llm = fake_llm([float("nan"), 550])
        ingest = ingest_of("Total: 550", "550")

        result = asyncio.run(NormalizationService(llm).normalize(ingest))

        assert result.normalized_amounts == (550.0,)
        assert result.llm_succeeded is False
