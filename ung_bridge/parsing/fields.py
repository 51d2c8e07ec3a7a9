"""Field-level parsing utilities for the tool's human-readable tables."""

import re
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional

from dateutil import parser as date_parser

DEFAULT_CURRENCY = "USD"

# Two or more consecutive whitespace characters separate columns;
# a single space is part of the data.
FIELD_SEPARATOR = re.compile(r"\s{2,}")

CURRENCY_SYMBOLS = {"$": "USD", "€": "EUR", "£": "GBP", "¥": "JPY"}

_CURRENCY_CODE = re.compile(r"\b([A-Z]{3})\b")
_NUMBER = re.compile(r"\(?-?[$€£¥]?\d[\d,]*(?:\.\d+)?\)?")

_COLON_DURATION = re.compile(r"(\d+):(\d{1,2})")
_HOURS = re.compile(r"(\d+(?:\.\d+)?)\s*h", re.IGNORECASE)
_MINUTES = re.compile(r"(\d+)\s*m", re.IGNORECASE)

_SUMMARY_LINE = re.compile(r"^\s*(grand\s+total|sub\s*total|total)\b", re.IGNORECASE)
_RULE_LINE = re.compile(r"^[\s\-=─━│┃|+┼┬┴├┤┌┐└┘]+$")
_EMPTY_MESSAGE = re.compile(r"^\s*no\b.*\b(found|yet|available)\b", re.IGNORECASE)

_TRUE_VALUES = {"true", "yes", "y", "1", "✓", "✔", "active", "on"}
_FALSE_VALUES = {"false", "no", "n", "0", "✗", "✘", "inactive", "off"}

MISSING_MARKERS = {"", "-", "—", "n/a", "none", "null"}


def split_fields(line: str) -> list[str]:
    """Split a table line on runs of two or more whitespace characters."""
    stripped = line.strip()
    if not stripped:
        return []
    return FIELD_SEPARATOR.split(stripped)


def is_summary_line(line: str) -> bool:
    """Trailing aggregate lines such as 'Total: $1,200.00'."""
    return bool(_SUMMARY_LINE.match(line))


def is_rule_line(line: str) -> bool:
    """Separator lines made only of dashes or box-drawing characters."""
    return bool(_RULE_LINE.match(line))


def is_empty_message(line: str) -> bool:
    """Messages like 'No invoices found' printed instead of a table."""
    return bool(_EMPTY_MESSAGE.match(line))


def optional_text(token: Optional[str]) -> Optional[str]:
    """Return None for placeholder tokens like '-'."""
    if token is None:
        return None
    token = token.strip()
    if token.lower() in MISSING_MARKERS:
        return None
    return token


def parse_int(token: str) -> Optional[int]:
    """Parse an integer field, returning None when it is not one."""
    token = token.strip()
    if not re.fullmatch(r"-?\d+", token):
        return None
    return int(token)


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "123.45"
    - "$123.45"
    - "-123.45"
    - "1,234.56"
    - "(123.45)" (negative in parentheses)

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    amount_str = amount_str.strip()

    # Handle parentheses notation (negative)
    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    amount_str = re.sub(r"[$€£¥]", "", amount_str)
    amount_str = amount_str.replace(",", "").strip()

    try:
        amount = Decimal(amount_str)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}': {e}") from e

    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    return -amount if is_negative else amount


def parse_money(token: str, default_currency: str = DEFAULT_CURRENCY) -> tuple[Decimal, str]:
    """
    Extract an amount and currency from a compound token.

    "500.00 USD" -> (500.00, "USD"), "$1,234.56" -> (1234.56, "USD"),
    "80.00 EUR/hr" -> (80.00, "EUR"). An amount that cannot be parsed, or
    that is negative, becomes 0.

    Args:
        token: Raw column text
        default_currency: Currency used when the token names none

    Returns:
        Tuple of (non-negative amount, ISO currency code)
    """
    token = token.strip()

    currency = default_currency
    code = _CURRENCY_CODE.search(token)
    if code:
        currency = code.group(1)
    else:
        for symbol, symbol_currency in CURRENCY_SYMBOLS.items():
            if symbol in token:
                currency = symbol_currency
                break

    number = _NUMBER.search(token)
    if not number:
        return Decimal("0"), currency

    try:
        amount = parse_amount(number.group())
    except ValueError:
        return Decimal("0"), currency

    if amount < 0:
        return Decimal("0"), currency
    return amount, currency


def parse_decimal(token: str) -> Decimal:
    """Parse a plain number such as '12.5 hours', defaulting to 0."""
    number = _NUMBER.search(token or "")
    if not number:
        return Decimal("0")
    try:
        return parse_amount(number.group())
    except ValueError:
        return Decimal("0")


def parse_duration_minutes(token: str) -> int:
    """
    Normalize a duration to integer minutes.

    Accepts "2h 30m", "2:30", "150m" and "2.5h". The colon form takes
    precedence over the hour/minute decomposition when both match.
    Anything else (e.g. "ongoing") is 0.
    """
    if not token:
        return 0

    colon = _COLON_DURATION.search(token)
    if colon:
        minutes = Decimal(int(colon.group(1)) * 60 + int(colon.group(2)))
    else:
        minutes = Decimal("0")
        hours = _HOURS.search(token)
        if hours:
            minutes += Decimal(hours.group(1)) * 60
        mins = _MINUTES.search(token)
        if mins:
            minutes += Decimal(mins.group(1))

    return int(minutes.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def parse_date(token: str) -> Optional[date]:
    """Parse the date part of a date or timestamp column."""
    token = optional_text(token)
    if token is None:
        return None
    try:
        return date_parser.parse(token).date()
    except (ValueError, OverflowError):
        return None


def parse_bool(token: Optional[str], default: bool = False) -> bool:
    """Interpret yes/no, true/false and check-mark columns."""
    if token is None:
        return default
    value = token.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    return default
