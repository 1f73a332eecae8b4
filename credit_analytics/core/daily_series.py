"""
Calendar-anchored daily usage series.

Turns sparse dated usage records into one slot per day of a window,
filling days without data with zero.

All date keys are computed in UTC. A timestamp carrying an offset is
converted to UTC before its calendar date is taken, and naive values
are read as UTC, so a record never shifts onto a neighbouring day.
"""

import calendar
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from .errors import InvalidInput
from credit_analytics.storage.models import DailyUsagePoint

logger = logging.getLogger(__name__)

SourceRecord = Union[DailyUsagePoint, Mapping[str, Any]]


@dataclass(frozen=True)
class MonthAnchor:
    """Calendar year and month a daily window starts from."""
    year: int
    month: int

    def __post_init__(self):
        """Validate the month is a real calendar month."""
        if not 1 <= self.month <= 12:
            raise ValueError("month must be between 1 and 12")
        if not 1 <= self.year <= 9999:
            raise ValueError("year must be between 1 and 9999")

    @classmethod
    def current(cls) -> "MonthAnchor":
        """Anchor on the current UTC month."""
        now = datetime.now(timezone.utc)
        return cls(year=now.year, month=now.month)

    def days_in_month(self) -> int:
        return calendar.monthrange(self.year, self.month)[1]

    def date_for(self, day_index: int) -> date:
        """Calendar date of a 1-based day index.

        Indexes past the end of the month roll over into the following
        month, the same way UTC date construction does.
        """
        return date(self.year, self.month, 1) + timedelta(days=day_index - 1)


@dataclass(frozen=True)
class DailySlot:
    """Credits spent on one day of a series window."""
    day_index: int
    calendar_date: date
    credits_spent: int


def utc_date_key(value: Any) -> date:
    """Reduce a date, datetime or ISO string to its UTC calendar date.

    Raises:
        ValueError: If the value cannot be read as a date
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if len(text) == 10:
            return date.fromisoformat(text)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return utc_date_key(datetime.fromisoformat(text))
    raise ValueError(f"Unsupported date value: {value!r}")


def _credits_of(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"credits must be a number, got {value!r}")
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"credits must be a whole number, got {value!r}")
    if value < 0:
        raise ValueError(f"credits cannot be negative, got {value!r}")
    return int(value)


def index_credits_by_date(records: Iterable[SourceRecord]) -> Dict[date, int]:
    """Sum credits per UTC calendar date.

    Pre-aggregated input (one record per date) passes through unchanged.

    Raises:
        ValueError, KeyError, TypeError, AttributeError: If a record is malformed
    """
    totals: Dict[date, int] = {}
    for record in records:
        if isinstance(record, Mapping):
            record = DailyUsagePoint.from_payload(record)
        key = utc_date_key(record.date)
        totals[key] = totals.get(key, 0) + _credits_of(record.credits_spent)
    return totals


def zero_series(window_days: int, anchor: MonthAnchor) -> List[DailySlot]:
    return [
        DailySlot(day_index=i, calendar_date=anchor.date_for(i), credits_spent=0)
        for i in range(1, window_days + 1)
    ]


def build_daily_series(
    records: Optional[Iterable[SourceRecord]],
    window_days: int,
    anchor: MonthAnchor,
) -> List[DailySlot]:
    """Build exactly window_days slots starting at the anchor month's first day.

    Args:
        records: Dated usage records; None when the source was unavailable
        window_days: Number of consecutive days in the series
        anchor: Year and month of day index 1

    Returns:
        One DailySlot per day, zero where no record exists

    Raises:
        InvalidInput: If window_days is not a positive integer, or the
            window runs past the last representable calendar date
    """
    if isinstance(window_days, bool) or not isinstance(window_days, int) or window_days <= 0:
        raise InvalidInput(f"window_days must be a positive integer, got {window_days!r}")
    try:
        anchor.date_for(window_days)
    except OverflowError:
        raise InvalidInput(f"window_days {window_days} runs past {date.max.isoformat()}")

    if records is None:
        logger.warning("No daily usage data available, using a zero-filled series")
        return zero_series(window_days, anchor)

    try:
        totals = index_credits_by_date(records)
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        # Partial data never aborts the view; the whole series degrades
        logger.warning("Malformed daily usage data, using a zero-filled series: %s", e)
        return zero_series(window_days, anchor)

    series = []
    for day_index in range(1, window_days + 1):
        day = anchor.date_for(day_index)
        series.append(DailySlot(
            day_index=day_index,
            calendar_date=day,
            credits_spent=totals.get(day, 0),
        ))
    return series
