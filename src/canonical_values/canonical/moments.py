"""Conversions between timezone-aware moments and epoch milliseconds."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation
from typing import Final

EPOCH: Final[datetime] = datetime(1970, 1, 1, tzinfo=UTC)
_ONE_MICROSECOND: Final[timedelta] = timedelta(microseconds=1)


def normalize_moment(value: datetime, path: str = "moment") -> datetime:
    """Return ``value`` converted to UTC; naive datetimes are rejected."""
    if not isinstance(value, datetime):
        raise TypeError(f"{path}: expected datetime, got {type(value).__name__}")
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"{path}: datetime must be timezone-aware")
    return value.astimezone(UTC)


def epoch_ms_decimal(value: datetime) -> Decimal:
    """Exact number of milliseconds since the epoch, microseconds as a fraction."""
    micros = (normalize_moment(value) - EPOCH) // _ONE_MICROSECOND
    return Decimal(micros) / 1000


def epoch_ms_text(value: datetime) -> str:
    """Shortest exact decimal text for the epoch milliseconds of ``value``."""
    amount = epoch_ms_decimal(value)
    if amount == amount.to_integral_value():
        return str(int(amount))
    return format(amount.normalize(), "f")


def epoch_ms(value: datetime) -> int | float:
    """Epoch milliseconds as an ``int`` when whole, else a ``float``."""
    amount = epoch_ms_decimal(value)
    if amount == amount.to_integral_value():
        return int(amount)
    return float(amount)


def from_epoch_ms(value: int | float | str | Decimal) -> datetime:
    """Build a UTC moment from epoch milliseconds, rounded to microseconds."""
    if isinstance(value, bool):
        raise TypeError("epoch milliseconds must be a number, got bool")
    try:
        amount = Decimal(value.strip()) if isinstance(value, str) else Decimal(value)
    except InvalidOperation as exc:
        raise ValueError(f"invalid epoch milliseconds: {value!r}") from exc
    if not amount.is_finite():
        raise ValueError(f"epoch milliseconds must be finite, got {value!r}")
    micros = int((amount * 1000).to_integral_value(rounding=ROUND_HALF_EVEN))
    try:
        return EPOCH + timedelta(microseconds=micros)
    except OverflowError as exc:
        raise ValueError(f"epoch milliseconds out of range: {value!r}") from exc


__all__ = [
    "EPOCH",
    "epoch_ms",
    "epoch_ms_decimal",
    "epoch_ms_text",
    "from_epoch_ms",
    "normalize_moment",
]
