# storefront/utils/money.py
from datetime import datetime

from storefront.utils.settings import CURRENCY

_SYMBOLS = {"USD": "$", "EUR": "€", "GBP": "£"}


def format_price(amount: int, currency: str = CURRENCY) -> str:
    """Render minor units for humans, e.g. 2500 -> "$25.00". Display only."""
    sign = "-" if amount < 0 else ""
    major, minor = divmod(abs(amount), 100)
    symbol = _SYMBOLS.get(currency)
    if symbol:
        return f"{sign}{symbol}{major:,}.{minor:02d}"
    return f"{sign}{major:,}.{minor:02d} {currency}"


def format_order_number(order_id: str, created_at: datetime) -> str:
    """ON-YYYYMMDD-XXXX, where XXXX is the first four hex digits of the id."""
    short_id = order_id.replace("-", "")[:4].upper()
    return f"ON-{created_at:%Y%m%d}-{short_id}"
