"""Tests for source reconciliation."""

import pytest

from amount_detector.ocr_client import TextAnnotation
from amount_detector.schemas import (
    SOURCE_NOT_FOUND,
    ClassificationResult,
    ClassifiedAmount,
    IngestResult,
    IngestStatus,
)
from amount_detector.services.reconciliation import (
    find_line_source,
    find_structured_source,
    reconcile,
)


def text_ingest(text, currency_hint=None):
    return IngestResult(
        status=IngestStatus.OK,
        raw_text=text,
        raw_tokens=("1",),
        currency_hint=currency_hint,
    )


def ocr_ingest(text):
    return IngestResult(
        status=IngestStatus.OK,
        raw_text=text,
        raw_tokens=("1",),
        detections=(TextAnnotation(text),),
    )


def classified(*pairs):
    return ClassificationResult(
        amounts=tuple(ClassifiedAmount(label, value) for label, value in pairs),
        confidence=0.5,
    )


class TestFindStructuredSource:
    """Tests for delimiter-based source search."""

    def test_pipe_segments(self, sample_pipe_bill):
        assert find_structured_source(1200, sample_pipe_bill) == "Total: INR 1,200"
        assert find_structured_source(1000, sample_pipe_bill) == "Paid: 1000"
        assert find_structured_source(200, sample_pipe_bill) == "Due: 200"

    def test_comma_before_word(self, sample_rupee_receipt):
        assert find_structured_source(1250, sample_rupee_receipt) == "Total: Rs. 1,250.00"
        assert find_structured_source(125, sample_rupee_receipt) == "Tax: Rs. 125.00"

    def test_semicolon_segments(self):
        text = "Subtotal 90; GST 10; Total 100"
        assert find_structured_source(10, text) == "GST 10"

    def test_newline_segments(self, sample_hospital_bill):
        assert find_structured_source(500, sample_hospital_bill) == "Consultation: 500"
        assert find_structured_source(50, sample_hospital_bill) == "Tax: 50"
        assert find_structured_source(550, sample_hospital_bill) == "Total: 550"

    def test_single_segment_text(self):
        assert find_structured_source(300, "Amount payable 300") is None

    def test_value_absent(self, sample_pipe_bill):
        assert find_structured_source(999, sample_pipe_bill) is None

    def test_tolerance(self, sample_pipe_bill):
        assert find_structured_source(200.004, sample_pipe_bill) == "Due: 200"
        assert find_structured_source(200.5, sample_pipe_bill) is None


class TestFindLineSource:
    """Tests for line-based source search."""

    def test_longest_line_first(self):
        text = "Tax 50\nService charge 50"
        assert find_line_source(50, text, set()) == "Service charge 50"

    def test_used_spans_not_reused(self):
        used = set()
        text = "Service 50\nTax 50"

        assert find_line_source(50, text, used) == "Service 50"
        assert find_line_source(50, text, used) == "Tax 50"
        assert find_line_source(50, text, used) is None
        assert used == {(0, 8), (1, 4)}

    def test_whitespace_collapsed(self):
        assert find_line_source(550, "Total     550  \n", set()) == "Total 550"

    def test_grouped_number(self):
        assert find_line_source(1200, "Grand total 1,200.", set()) == "Grand total 1,200."

    def test_blank_lines_ignored(self):
        assert find_line_source(5, "\n\n   \n", set()) is None


class TestReconcile:
    """Tests for the reconciliation stage."""

    def test_text_input(self, sample_pipe_bill):
        ingest = text_ingest(sample_pipe_bill, currency_hint="INR")
        classification = classified(("total_bill", 1200), ("paid", 1000), ("due", 200))

        result = reconcile(ingest, classification)

        assert result.currency == "INR"
        assert result.status == IngestStatus.OK
        assert [a.source for a in result.amounts] == [
            "Total: INR 1,200",
            "Paid: 1000",
            "Due: 200",
        ]
        assert [a.type for a in result.amounts] == ["total_bill", "paid", "due"]

    def test_unknown_currency(self, sample_hospital_bill):
        result = reconcile(text_ingest(sample_hospital_bill), classified(("total_bill", 550)))

        assert result.currency == "UNKNOWN"

    def test_text_falls_back_to_line_search(self):
        result = reconcile(text_ingest("Amount payable 300"), classified(("due", 300)))

        assert result.amounts[0].source == "Amount payable 300"

    def test_ocr_input_skips_structured_search(self):
        # Structured search would return the pipe segment "Service 50"
        ingest = ocr_ingest("Service 50 | Tax 50")
        result = reconcile(ingest, classified(("fee", 50), ("tax", 50)))

        assert [a.source for a in result.amounts] == ["Service 50 | Tax 50"] * 2

    def test_ocr_duplicate_values(self):
        ingest = ocr_ingest("Service 50\nTax 50")
        result = reconcile(
            ingest, classified(("fee", 50), ("tax", 50), ("unclassified", 50))
        )

        assert [a.source for a in result.amounts] == ["Service 50", "Tax 50", None]
        assert [a.source_found for a in result.amounts] == [True, True, False]

    def test_missing_source_rendering(self):
        result = reconcile(text_ingest("Total 550"), classified(("total_bill", 999)))

        assert result.to_dict()["amounts"] == [
            {"type": "total_bill", "value": 999, "source": SOURCE_NOT_FOUND}
        ]

    def test_found_source_rendering(self):
        result = reconcile(text_ingest("Total 550"), classified(("total_bill", 550)))

        assert result.to_dict() == {
            "currency": "UNKNOWN",
            "amounts": [
                {"type": "total_bill", "value": 550, "source": "text: 'Total 550'"}
            ],
            "status": "ok",
        }

    def test_used_spans_are_per_call(self):
        ingest = ocr_ingest("Tax 50")
        classification = classified(("tax", 50))

        first = reconcile(ingest, classification)
        second = reconcile(ingest, classification)

        assert first.amounts[0].source == second.amounts[0].source == "Tax 50"

    def test_empty_classification(self):
        result = reconcile(text_ingest("Total 550"), classified())

        assert result.amounts == ()

    @pytest.mark.parametrize("value", [550, 550.0, 550.009])
    def test_match_within_tolerance(self, value):
        result = reconcile(ocr_ingest("Total 550"), classified(("total_bill", value)))

        assert result.amounts[0].source == "Total 550"
