import logging
from dataclasses import dataclass
from typing import Iterable, List

from interval import Instant, Interval, epoch_seconds
from schemas import TimeRange

logger = logging.getLogger(__name__)


@dataclass
class SparsePoint:
    value: int
    timestamp: Instant


@dataclass
class DensePoint:
    value: int
    timestamp_ms: int

    def as_pair(self) -> List[int]:
        return [self.value, self.timestamp_ms]


def bucket_count(time_range: TimeRange, interval: Interval) -> int:
    start = epoch_seconds(time_range.start)
    end = epoch_seconds(time_range.end)
    return (end - start) // interval.seconds + 1


def fill_datapoints(
    time_range: TimeRange, interval: Interval, points: Iterable[SparsePoint]
) -> List[DensePoint]:
    """
    Rebuild a dense, zero-filled series from sparse points.

    Buckets start at the range start truncated to whole seconds and step by
    the interval up to and including the range end. Each point lands in
    bucket floor((t - start) / interval); when several points share a
    bucket the last one wins. Points outside the range are dropped with a
    warning since they mean storage aggregated against a different range.
    """
    start = epoch_seconds(time_range.start)
    elements = bucket_count(time_range, interval)

    data = [0] * elements
    times = [start * 1000 + i * interval.ms for i in range(elements)]

    for point in points:
        index = (epoch_seconds(point.timestamp) - start) // interval.seconds
        if not 0 <= index < elements:
            logger.warning(f"Dropping point {point}: bucket {index} outside of 0..{elements - 1}")
            continue
        data[index] = point.value

    return [DensePoint(value, time) for value, time in zip(data, times)]
