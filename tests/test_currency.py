"""Tests for currency lookup and formatting."""

from decimal import Decimal

import pytest

from budget_tracker.currency import (
    CURRENCIES,
    detect_user_currency,
    format_currency,
    format_number_with_commas,
    get_currency,
    is_supported_currency,
    is_valid_amount,
    parse_amount,
    parse_number_from_formatted,
)


class TestCurrencyLookup:
    """Tests for the supported currency table."""

    def test_codes_are_unique(self):
        codes = [c.code for c in CURRENCIES]
        assert len(codes) == len(set(codes))
        assert "USD" in codes

    def test_lookup_is_case_insensitive(self):
        assert get_currency("eur").symbol == "€"
        assert is_supported_currency(" gbp ")

    def test_unknown_falls_back_to_usd(self):
        assert get_currency("XYZ").code == "USD"
        assert get_currency(None).code == "USD"
        assert not is_supported_currency("XYZ")
        assert not is_supported_currency("")


class TestNumberFormatting:
    """Tests for thousands separators."""

    @pytest.mark.parametrize("value,expected", [
        (1234567, "1,234,567"),
        ("1234.5", "1,234.5"),
        (Decimal("999.99"), "999.99"),
        ("1000", "1,000"),
        ("1,000,000", "1,000,000"),
        (0, "0"),
    ])
    def test_format_number_with_commas(self, value, expected):
        assert format_number_with_commas(value) == expected

    def test_format_empty(self):
        assert format_number_with_commas(None) == ""
        assert format_number_with_commas("") == ""

    def test_format_non_numeric_unchanged(self):
        assert format_number_with_commas("abc") == "abc"

    def test_parse_number_from_formatted(self):
        assert parse_number_from_formatted("1,234,567.89") == "1234567.89"
        assert parse_number_from_formatted(None) == ""


class TestFormatCurrency:
    """Tests for amount + symbol formatting."""

    def test_symbol_before(self):
        assert format_currency(Decimal("1234.56"), "USD") == "$1,234.56"
        assert format_currency(Decimal("10.00"), "GBP") == "£10.00"

    def test_symbol_after(self):
        assert format_currency(Decimal("1234.56"), "EUR") == "1,234.56 €"
        assert format_currency(500, "NOK") == "500 kr"
        assert format_currency(5, "eur") == "5 €"

    def test_unknown_currency_uses_dollar(self):
        assert format_currency(5, "XYZ") == "$5"


class TestAmountParsing:
    """Tests for user-entered amounts."""

    def test_parse_with_separators(self):
        assert parse_amount("1,250.50") == Decimal("1250.50")

    @pytest.mark.parametrize("value", [None, "", "   ", "abc", "1.2.3", "nan", "inf"])
    def test_parse_invalid(self, value):
        assert parse_amount(value) is None

    def test_is_valid_amount(self):
        assert is_valid_amount("0.01")
        assert not is_valid_amount("0")
        assert not is_valid_amount("-5")
        assert not is_valid_amount("ten")


class TestDetectCurrency:
    """Tests for locale-based currency detection."""

    @pytest.mark.parametrize("locale_name,expected", [
        ("en-US", "USD"),
        ("de_DE", "EUR"),
        ("en_GB.UTF-8", "GBP"),
        ("ja-JP", "JPY"),
        ("hi_IN", "INR"),
    ])
    def test_known_locales(self, locale_name, expected):
        assert detect_user_currency(locale_name) == expected

    @pytest.mark.parametrize("locale_name", ["en", "xx-QQ", "C"])
    def test_unknown_locales_fall_back(self, locale_name):
        assert detect_user_currency(locale_name) == "USD"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
