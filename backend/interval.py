from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Union

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
ONE_SECOND = timedelta(seconds=1)

# Longer than any datetime range, and still fits a SQLite INTEGER
MAX_INTERVAL_SECONDS = 2 ** 62

Instant = Union[datetime, int, float]


@dataclass(frozen=True)
class Interval:
    seconds: int  # whole seconds, always >= 1

    def __post_init__(self):
        if self.seconds < 1:
            raise ValueError(f"Interval must be at least one second, got {self.seconds}")

    @property
    def ms(self) -> int:
        return self.seconds * 1000

    def __repr__(self):
        return f"<Interval {self.seconds}s>"


def normalize_interval(interval_ms: int) -> Interval:
    """
    Turn a requested resolution into a whole number of seconds.

    Sub-second, zero and negative requests all become one second so that
    nothing downstream ever steps or divides by zero. Huge requests are
    capped; any interval past the range length yields a single bucket.
    """
    return Interval(min(max(interval_ms // 1000, 1), MAX_INTERVAL_SECONDS))


def epoch_seconds(value: Instant) -> int:
    """
    Truncate an instant to whole seconds since the epoch.

    Datetimes without a timezone are treated as UTC. Numbers are taken as
    epoch seconds. Truncation floors toward the past, also before 1970.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return (value - EPOCH) // ONE_SECOND
    return int(value // 1)
