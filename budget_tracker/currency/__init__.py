"""Currency lookup and formatting package."""

from budget_tracker.currency.currencies import (
    COUNTRY_CURRENCIES,
    CURRENCIES,
    SYMBOL_AFTER_AMOUNT,
    CurrencyInfo,
    detect_user_currency,
    format_currency,
    format_number_with_commas,
    get_currency,
    is_supported_currency,
    is_valid_amount,
    parse_amount,
    parse_number_from_formatted,
)

__all__ = [
    "COUNTRY_CURRENCIES",
    "CURRENCIES",
    "SYMBOL_AFTER_AMOUNT",
    "CurrencyInfo",
    "detect_user_currency",
    "format_currency",
    "format_number_with_commas",
    "get_currency",
    "is_supported_currency",
    "is_valid_amount",
    "parse_amount",
    "parse_number_from_formatted",
]
