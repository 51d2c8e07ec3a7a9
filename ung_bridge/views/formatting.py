"""Display formatting for durations and money."""

from decimal import ROUND_HALF_UP, Decimal

_SYMBOLS = {"USD": "$", "EUR": "€", "GBP": "£", "JPY": "¥"}


def format_minutes(minutes: int) -> str:
    """150 -> '2h 30m', 120 -> '2h', 45 -> '45m'."""
    hours, mins = divmod(max(int(minutes), 0), 60)
    if hours > 0:
        return f"{hours}h {mins}m" if mins > 0 else f"{hours}h"
    return f"{mins}m"


def format_money(amount: Decimal, currency: str) -> str:
    """Two decimals with thousands separators, symbol-prefixed when known."""
    text = f"{amount.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP):,}"
    symbol = _SYMBOLS.get(currency)
    if symbol:
        return f"{symbol}{text}"
    return f"{text} {currency}"
