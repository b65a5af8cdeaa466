"""
Price change arithmetic over token price series.

Everything here is pure: series are passed in, results are returned, and the
only notion of time is the `now` argument, which defaults to the current UTC
time.
"""
import datetime
from decimal import Decimal
from enum import Enum
from typing import Iterable, List, Optional, Union

from .models import PricePoint, PriceChange, PriceChangeResult
from . import config

SECONDS_PER_DAY = 86400

Number = Union[Decimal, int, float, str]


class InvalidIntervalError(ValueError):
    """Raised when an interval is not a positive integer number of seconds."""
    pass


class InvalidTimeframeError(ValueError):
    """Raised when a timeframe is not one of the recognized lookback windows."""
    pass


class Timeframe(str, Enum):
    ALL = "ALL"
    WEEK = "WEEK"
    MONTH = "MONTH"


LOOKBACK_SECONDS = {
    Timeframe.ALL: None,
    Timeframe.WEEK: 7 * SECONDS_PER_DAY,
    Timeframe.MONTH: 30 * SECONDS_PER_DAY,
}

# Daily records needed to cover each lookback window, including the window's first day
DAILY_ENTRIES = {
    Timeframe.ALL: config.MAX_DAILY_ENTRIES,
    Timeframe.WEEK: 8,
    Timeframe.MONTH: 31,
}


def _to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _now() -> int:
    return int(datetime.datetime.now(datetime.UTC).timestamp())


def _as_points(series: Iterable[Union[PricePoint, dict]]) -> List[PricePoint]:
    return [p if isinstance(p, PricePoint) else PricePoint.model_validate(p) for p in series]


def parse_timeframe(timeframe: Union[Timeframe, str]) -> Timeframe:
    if isinstance(timeframe, Timeframe):
        return timeframe
    try:
        return Timeframe(timeframe)
    except ValueError:
        raise InvalidTimeframeError(
            f"Invalid timeframe {timeframe!r}. Expected one of: {', '.join(t.value for t in Timeframe)}"
        )


def validate_interval(interval_seconds: int) -> int:
    if isinstance(interval_seconds, bool) or not isinstance(interval_seconds, int) or interval_seconds <= 0:
        raise InvalidIntervalError(f"Interval must be a positive integer, got {interval_seconds!r}")
    return interval_seconds


def timeframe_cutoff(timeframe: Union[Timeframe, str], now: Optional[int] = None) -> Optional[int]:
    """Returns the earliest timestamp inside the lookback window, or None for no cutoff."""
    lookback = LOOKBACK_SECONDS[parse_timeframe(timeframe)]
    if lookback is None:
        return None
    return (_now() if now is None else now) - lookback


def daily_entries_for(timeframe: Union[Timeframe, str]) -> int:
    """Number of daily records to request from the subgraph for a timeframe."""
    return DAILY_ENTRIES[parse_timeframe(timeframe)]


def daily_entries_for_duration(duration_seconds: int) -> int:
    """Number of daily records needed to reach back `duration_seconds` from today."""
    return min(-(-duration_seconds // SECONDS_PER_DAY) + 1, config.MAX_DAILY_ENTRIES)


def compute_change(current_price: Number, previous_price: Number) -> Decimal:
    """
    Percentage change from `previous_price` to `current_price`.

    A previous price of zero yields a change of 0 instead of a division error.
    """
    current = _to_decimal(current_price)
    previous = _to_decimal(previous_price)

    if previous == 0:
        return Decimal(0)

    return (current - previous) / previous * 100


def compute_interval_series(
    series: Iterable[Union[PricePoint, dict]],
    interval_seconds: int,
    timeframe: Union[Timeframe, str],
    now: Optional[int] = None,
    max_buckets: int = config.MAX_INTERVAL_BUCKETS,
) -> List[PriceChangeResult]:
    """
    Buckets a price series into fixed intervals and computes the change of
    each bucket against the previous one.

    Buckets start at the earliest sample inside the timeframe and run up to
    the bucket holding the latest sample. A bucket's price is its last sample;
    a bucket without samples carries the previous bucket's price forward. The
    first bucket has a change of 0.

    Raises:
        InvalidIntervalError: If `interval_seconds` is not a positive integer,
            or would produce more than `max_buckets` buckets.
        InvalidTimeframeError: If `timeframe` is not ALL, WEEK or MONTH.
    """
    validate_interval(interval_seconds)
    cutoff = timeframe_cutoff(timeframe, now)

    points = sorted(
        (p for p in _as_points(series) if cutoff is None or p.timestamp >= cutoff),
        key=lambda p: p.timestamp,
    )
    if not points:
        return []

    start = points[0].timestamp
    bucket_count = (points[-1].timestamp - start) // interval_seconds + 1
    if bucket_count > max_buckets:
        raise InvalidIntervalError(
            f"Interval of {interval_seconds}s produces {bucket_count} buckets, the maximum is {max_buckets}"
        )

    results = []
    index = 0
    previous_price = None

    for bucket in range(bucket_count):
        bucket_start = start + bucket * interval_seconds
        bucket_end = bucket_start + interval_seconds

        price = previous_price
        while index < len(points) and points[index].timestamp < bucket_end:
            price = points[index].price
            index += 1

        if price is None:
            continue

        if previous_price is None:
            results.append(PriceChangeResult(
                timestamp=bucket_start,
                price_change=Decimal(0),
                previous_price=price,
                current_price=price,
            ))
        else:
            results.append(PriceChangeResult(
                timestamp=bucket_start,
                price_change=compute_change(price, previous_price),
                previous_price=previous_price,
                current_price=price,
            ))
        previous_price = price

    return results


def compute_duration_change(
    current_price: Number,
    series: Iterable[Union[PricePoint, dict]],
    duration_seconds: int,
    now: Optional[int] = None,
) -> PriceChange:
    """
    Change between `current_price` and the price `duration_seconds` ago.

    The previous price is the latest sample at or before `now - duration_seconds`.
    When the series does not reach that far back its oldest sample is used, and
    an empty series compares the current price with itself.
    """
    validate_interval(duration_seconds)
    current = _to_decimal(current_price)
    target = (_now() if now is None else now) - duration_seconds

    points = sorted(_as_points(series), key=lambda p: p.timestamp)
    previous = current
    if points:
        previous = points[0].price
        for point in points:
            if point.timestamp > target:
                break
            previous = point.price

    return PriceChange(
        price_change=compute_change(current, previous),
        current_price=current,
        previous_price=previous,
    )
