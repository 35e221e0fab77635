from datetime import date, datetime
from typing import Iterable, Optional

from database import get_invoice_series, list_unavailable_numbers


def next_series_number(last_invoice_number: int, unavailable: Iterable[int]) -> int:
    """First number after ``last_invoice_number`` that is not used, skipped or reserved."""
    taken = set(unavailable)
    number = last_invoice_number + 1
    while number in taken:
        number += 1
    return number


def format_series_number(number: int, padding: int = 4, year_prefix: bool = False, today: Optional[date] = None) -> str:
    formatted = str(number).zfill(padding or 4)
    if year_prefix:
        today = today or date.today()
        return f"{today.year % 100:02d}{formatted}"
    return formatted


def default_invoice_number(now: Optional[datetime] = None) -> str:
    """``INV-YYMM-NNNNN``, the tail being the last five digits of the epoch in milliseconds."""
    now = now or datetime.now()
    millis = str(int(now.timestamp() * 1000))
    return f"INV-{now.year % 100:02d}{now.month:02d}-{millis[-5:]}"


def next_invoice_number(db, today: Optional[date] = None) -> dict:
    series = get_invoice_series(db)
    number = next_series_number(series.last_invoice_number, list_unavailable_numbers(db))
    return {
        "number": number,
        "invoice_number": format_series_number(number, series.padding, series.year_prefix, today),
    }
