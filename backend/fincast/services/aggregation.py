from __future__ import annotations

from calendar import monthrange
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, Literal

from fincast.models.enums import TransactionKind
from fincast.utils.decimal_math import money


Bucket = Literal["day", "month"]


@dataclass(frozen=True)
class TimeSeriesPoint:
    period_key: str
    value: float


@dataclass(frozen=True)
class TransactionRecord:
    date: date
    amount: Decimal | float
    kind: TransactionKind = TransactionKind.income
    category: str | None = None


def bucket_key(day: date, bucket: Bucket) -> str:
    if bucket == "month":
        return f"{day.year:04d}-{day.month:02d}"
    if bucket == "day":
        return day.isoformat()
    raise ValueError(f"Unsupported bucket {bucket!r}; expected 'day' or 'month'.")


def period_start(period_key: str) -> date:
    """First calendar day of a ``YYYY-MM`` or ``YYYY-MM-DD`` key."""
    if len(period_key) == 7:
        return date.fromisoformat(f"{period_key}-01")
    return date.fromisoformat(period_key)


def add_months(day: date, months: int) -> date:
    """Shift ``day`` by whole calendar months, clamping to the last day of a shorter month."""
    month_index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    return date(year, month, min(day.day, monthrange(year, month)[1]))


def _signed_amount(record: TransactionRecord) -> Decimal:
    amount = money(record.amount)
    if TransactionKind(record.kind) == TransactionKind.expense:
        return -abs(amount)
    return amount


def aggregate(records: Iterable[TransactionRecord], bucket: Bucket = "month") -> list[TimeSeriesPoint]:
    """Sum signed amounts per day or month bucket.

    Buckets without activity are not synthesized, so consumers must tolerate
    uneven spacing between points. Empty input yields an empty series.
    """
    if bucket not in ("day", "month"):
        raise ValueError(f"Unsupported bucket {bucket!r}; expected 'day' or 'month'.")
    totals: dict[str, Decimal] = {}
    for record in records:
        key = bucket_key(record.date, bucket)
        totals[key] = money(totals.get(key, money(0)) + _signed_amount(record))
    return [TimeSeriesPoint(period_key=key, value=float(totals[key])) for key in sorted(totals)]
