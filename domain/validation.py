import math
import re
import time
from datetime import datetime, tzinfo
from decimal import Decimal
from fractions import Fraction
from numbers import Rational

from .errors import InvalidAmountError

_INTEGER_PREFIX = re.compile(r"\s*([+-]?[0-9]+)")
_HALF = Fraction(1, 2)


def parse_amount(value) -> int:
    """Interpret arbitrary input as a base-10 integer.

    Leading digits of a string are used and the rest ignored ("12abc" -> 12,
    "3.7" -> 3). Anything without a usable integer part normalizes to 0.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else 0
    if isinstance(value, Decimal):
        return int(value) if value.is_finite() else 0
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    if not isinstance(value, str):
        return 0
    match = _INTEGER_PREFIX.match(value)
    if match is None:
        return 0
    return int(match.group(1))


def round_half_up(value) -> int:
    """Round to the nearest integer, halves away from zero.

    Floats are rounded at their exact binary value; non-finite input gives 0.
    """
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            return 0
        value = Fraction(value)
    elif isinstance(value, Decimal):
        if not value.is_finite():
            return 0
        value = Fraction(value)
    elif not isinstance(value, Rational):
        raise TypeError(f"Cannot round value of type {type(value).__name__}")
    magnitude = math.floor(abs(value) + _HALF)
    return magnitude if value >= 0 else -magnitude


def require_positive_amount(amount) -> int:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmountError(f"Amount must be an integer, got {amount!r}")
    if amount <= 0:
        raise InvalidAmountError("Amount must be positive")
    return amount


def now_ms() -> int:
    return time.time_ns() // 1_000_000


def from_epoch_ms(value: int, tz: tzinfo | None = None) -> datetime:
    return datetime.fromtimestamp(value / 1000, tz)


def parse_month(value: str) -> tuple[int, int]:
    period = (value or "").strip()
    if not re.fullmatch(r"\d{4}-\d{2}", period):
        raise ValueError("Invalid month format. Use YYYY-MM")
    year, month = map(int, period.split("-"))
    if not (1 <= month <= 12):
        raise ValueError("Invalid month")
    return year, month


def month_bounds_ms(year: int, month: int, tz: tzinfo | None = None) -> tuple[int, int]:
    """Return [start, end) of a calendar month as epoch milliseconds."""
    if not (1 <= month <= 12):
        raise ValueError("Invalid month")
    start = datetime(year, month, 1, tzinfo=tz)
    if month == 12:
        end = datetime(year + 1, 1, 1, tzinfo=tz)
    else:
        end = datetime(year, month + 1, 1, tzinfo=tz)
    return int(start.timestamp() * 1000), int(end.timestamp() * 1000)
