"""Tests for numeric token extraction."""

import pytest

from amount_detector.extractors.tokenizer import (
    clean_and_parse,
    find_currency_hint,
    parse_number,
    tokenize,
)


class TestTokenize:
    """Tests for tokenize()."""

    def test_rupee_receipt(self, sample_rupee_receipt):
        """Currency prefixes are not part of the tokens."""
        tokens, currency = tokenize(sample_rupee_receipt)

        assert tokens == ["1,250.00", "125.00"]
        assert currency == "Rs."

    def test_hospital_bill(self, sample_hospital_bill):
        """Plain integers in document order, no currency."""
        tokens, currency = tokenize(sample_hospital_bill)

        assert tokens == ["500", "50", "550"]
        assert currency is None

    def test_ungrouped_decimal_kept_whole(self):
        """1250.00 is one token, not "125" + "0.00"."""
        tokens, _ = tokenize("Amount due 1250.00")
        assert tokens == ["1250.00"]

    def test_european_grouping(self):
        tokens, currency = tokenize("Summe: 1.234,56 €")
        assert tokens == ["1.234,56"]
        assert currency == "€"

    def test_no_numbers(self):
        tokens, currency = tokenize("Thank you for visiting")
        assert tokens == []
        assert currency is None

    def test_percentages_and_quantities_are_tokens(self):
        """Filtering non-financial values is the normalizer's job."""
        tokens, _ = tokenize("Qty 2 x 150, GST 18%")
        assert tokens == ["2", "150", "18"]


class TestCurrencyHint:
    """Tests for currency detection."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("Total INR 1,200", "INR"),
            ("Paid $ 40", "$"),
            ("Amount ₹500", "₹"),
            ("Total: Rs 300", "Rs"),
            ("Total: Rs. 300", "Rs."),
            ("Balance 20 EUR", "EUR"),
        ],
    )
    def test_markers(self, text, expected):
        assert find_currency_hint(text) == expected

    def test_first_marker_wins(self):
        assert find_currency_hint("$ 10 then ₹ 20") == "$"

    def test_marker_inside_word_ignored(self):
        """Neither "hours" nor "Europe" carries a currency."""
        assert find_currency_hint("Charged for 3 hours in Europe") is None


class TestNumberParsing:
    """Tests for lenient number parsing."""

    def test_parse_number(self):
        assert parse_number("12.50") == 12.5
        assert parse_number("1.2.3") == 1.2
        assert parse_number("5.") == 5.0
        assert parse_number(".5") == 0.5
        assert parse_number(".") is None
        assert parse_number("") is None

    def test_clean_and_parse(self):
        assert clean_and_parse(" 1,250.00 ") == 1250.0
        assert clean_and_parse("₹500") == 500.0
        assert clean_and_parse("17,5") == 175.0
        assert clean_and_parse("abc") is None

    def test_clean_and_parse_is_deterministic(self):
        tokens = ["1,250.00", "12O", "3,4,5", "--"]
        assert [clean_and_parse(t) for t in tokens] == [clean_and_parse(t) for t in tokens]
