"""
Currency Lookup and Formatting

A static table of supported currencies plus the formatting helpers the
UI needs. There is no exchange-rate logic here: amounts
in different currencies are shown side by side, never converted.
"""

import locale
import re
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict

from budget_tracker.models.ledger import DEFAULT_CURRENCY


class CurrencyInfo(BaseModel):
    """A supported currency."""
    model_config = ConfigDict(frozen=True)

    code: str
    symbol: str
    name: str


CURRENCIES: tuple[CurrencyInfo, ...] = (
    CurrencyInfo(code="USD", symbol="$", name="US Dollar"),
    CurrencyInfo(code="EUR", symbol="€", name="Euro"),
    CurrencyInfo(code="GBP", symbol="£", name="British Pound"),
    CurrencyInfo(code="JPY", symbol="¥", name="Japanese Yen"),
    CurrencyInfo(code="CAD", symbol="C$", name="Canadian Dollar"),
    CurrencyInfo(code="AUD", symbol="A$", name="Australian Dollar"),
    CurrencyInfo(code="CHF", symbol="CHF", name="Swiss Franc"),
    CurrencyInfo(code="CNY", symbol="¥", name="Chinese Yuan"),
    CurrencyInfo(code="INR", symbol="₹", name="Indian Rupee"),
    CurrencyInfo(code="KRW", symbol="₩", name="South Korean Won"),
    CurrencyInfo(code="BRL", symbol="R$", name="Brazilian Real"),
    CurrencyInfo(code="MXN", symbol="MX$", name="Mexican Peso"),
    CurrencyInfo(code="SGD", symbol="S$", name="Singapore Dollar"),
    CurrencyInfo(code="HKD", symbol="HK$", name="Hong Kong Dollar"),
    CurrencyInfo(code="NOK", symbol="kr", name="Norwegian Krone"),
    CurrencyInfo(code="SEK", symbol="kr", name="Swedish Krona"),
    CurrencyInfo(code="DKK", symbol="kr", name="Danish Krone"),
    CurrencyInfo(code="PLN", symbol="zł", name="Polish Zloty"),
    CurrencyInfo(code="RUB", symbol="₽", name="Russian Ruble"),
    CurrencyInfo(code="TRY", symbol="₺", name="Turkish Lira"),
    CurrencyInfo(code="ZAR", symbol="R", name="South African Rand"),
    CurrencyInfo(code="VND", symbol="₫", name="Vietnamese Dong"),
)

_BY_CODE = {currency.code: currency for currency in CURRENCIES}

# These write the symbol after the amount: "1,234.56 €"
SYMBOL_AFTER_AMOUNT = frozenset({"EUR", "NOK", "SEK", "DKK", "PLN"})

COUNTRY_CURRENCIES = {
    "US": "USD", "CA": "CAD", "GB": "GBP", "AU": "AUD",
    "JP": "JPY", "DE": "EUR", "FR": "EUR", "IT": "EUR",
    "ES": "EUR", "NL": "EUR", "BE": "EUR", "AT": "EUR",
    "CH": "CHF", "CN": "CNY", "IN": "INR", "KR": "KRW",
    "BR": "BRL", "MX": "MXN", "SG": "SGD", "HK": "HKD",
    "NO": "NOK", "SE": "SEK", "DK": "DKK", "PL": "PLN",
    "RU": "RUB", "TR": "TRY", "ZA": "ZAR", "VN": "VND",
}

_THOUSANDS = re.compile(r"\B(?=(\d{3})+(?!\d))")

Number = Union[int, float, Decimal, str]


def is_supported_currency(code: Optional[str]) -> bool:
    return bool(code) and code.strip().upper() in _BY_CODE


def get_currency(code: Optional[str]) -> CurrencyInfo:
    """Look up a currency, falling back to the default currency."""
    if code:
        found = _BY_CODE.get(code.strip().upper())
        if found is not None:
            return found
    return _BY_CODE[DEFAULT_CURRENCY]


def parse_number_from_formatted(value: Optional[Number]) -> str:
    """Strip thousands separators: "1,234.5" -> "1234.5"."""
    if value is None or value == "":
        return ""
    return str(value).replace(",", "")


def format_number_with_commas(value: Optional[Number]) -> Union[str, Number]:
    """
    Add thousands separators to the integer part of a number.

    The decimal part is left exactly as given. Empty input gives "";
    input that isn't a number is returned unchanged.
    """
    if value is None or value == "":
        return ""

    clean = parse_number_from_formatted(value)
    try:
        Decimal(clean)
    except InvalidOperation:
        return value

    integer_part, dot, fraction = clean.partition(".")
    return _THOUSANDS.sub(",", integer_part) + dot + fraction


def format_currency(amount: Number, currency_code: str = DEFAULT_CURRENCY) -> str:
    """Format an amount with its currency symbol, e.g. "$1,234.56"."""
    currency = get_currency(currency_code)
    formatted = format_number_with_commas(amount)

    if currency.code in SYMBOL_AFTER_AMOUNT:
        return f"{formatted} {currency.symbol}"
    return f"{currency.symbol}{formatted}"


def parse_amount(value: Optional[Number]) -> Optional[Decimal]:
    """Parse user-entered amount text ("1,250.50") to a Decimal, or None."""
    clean = parse_number_from_formatted(value).strip()
    if not clean:
        return None
    try:
        amount = Decimal(clean)
    except InvalidOperation:
        return None
    if not amount.is_finite():
        return None
    return amount


def is_valid_amount(value: Optional[Number]) -> bool:
    """True when the value parses to a number greater than zero."""
    amount = parse_amount(value)
    return amount is not None and amount > 0


def detect_user_currency(locale_name: Optional[str] = None) -> str:
    """
    Guess the user's currency from a locale like "en-US" or "de_DE".

    Without an explicit locale the process locale is used. Anything
    unrecognised falls back to the default currency.
    """
    if locale_name is None:
        try:
            locale_name = locale.getlocale()[0]
        except ValueError:
            locale_name = None
    if not locale_name:
        return DEFAULT_CURRENCY

    parts = re.split(r"[-_.]", locale_name)
    if len(parts) < 2:
        return DEFAULT_CURRENCY
    return COUNTRY_CURRENCIES.get(parts[1].upper(), DEFAULT_CURRENCY)
