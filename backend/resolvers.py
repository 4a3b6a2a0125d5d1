"""
Turn storage rows for a metric into the series or table the dashboard draws.

The resolvers are pure: they receive rows already fetched by `storage` and
never touch the database themselves. `run_query` ties validation, storage
access, resolution and response assembly together for one request.
"""
import itertools
import logging
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import storage
from bucketing import DensePoint, SparsePoint, bucket_count, fill_datapoints
from config import QueryContext
from database import get_db
from errors import InvalidRange, InvalidTargetCount, TooManyBuckets, UnknownTarget
from interval import Interval, normalize_interval
from schemas import (
    Metric,
    QueryRequest,
    QueryResponse,
    SeriesResponse,
    TableColumn,
    TableResponse,
    Target,
    TimeRange,
)

logger = logging.getLogger(__name__)

OUTBOUND_SERIES = "outbound_data"
BLOG_COLUMNS = (("article", "string"), ("count", "number"))

# A week at one second resolution
MAX_BUCKETS = 7 * 24 * 3600 + 1


@dataclass
class Series:
    name: str
    points: List[DensePoint]


@dataclass
class Table:
    columns: List[Tuple[str, str]]
    rows: List[list]


def validate_query(targets: Sequence[Target], time_range: TimeRange) -> Tuple[Metric, TimeRange]:
    """
    Check that the request names exactly one known metric over an ordered range.

    Raises InvalidTargetCount, InvalidRange or UnknownTarget, in that order.
    """
    if len(targets) != 1:
        raise InvalidTargetCount(len(targets))

    if time_range.start > time_range.end:
        raise InvalidRange(time_range.start, time_range.end)

    name = targets[0].target
    try:
        metric = Metric(name)
    except ValueError:
        raise UnknownTarget(name) from None

    return metric, time_range


def resolve_sites(rows: Sequence[storage.SiteRow], time_range: TimeRange, interval: Interval) -> List[Series]:
    """One series per host, each bucketed over the same range and interval."""
    ordered = sorted(rows, key=lambda row: (row.host, row.timestamp))

    series = []
    for host, group in itertools.groupby(ordered, key=lambda row: row.host):
        points = [SparsePoint(row.count, row.timestamp) for row in group]
        series.append(Series(host, fill_datapoints(time_range, interval, points)))
    return series


def resolve_outbound(rows: Sequence[storage.OutboundRow], time_range: TimeRange, interval: Interval) -> List[Series]:
    points = [SparsePoint(row.bytes, row.timestamp) for row in rows]
    return [Series(OUTBOUND_SERIES, fill_datapoints(time_range, interval, points))]


def resolve_blog_posts(rows: Sequence[storage.BlogPostRow]) -> Table:
    # Row values must follow the column order: article, then count
    return Table(list(BLOG_COLUMNS), [[row.referer, row.views] for row in rows])


def assemble_series(series: Sequence[Series]) -> QueryResponse:
    return [
        SeriesResponse(target=s.name, datapoints=[p.as_pair() for p in s.points])
        for s in series
    ]


def assemble_table(table: Table) -> QueryResponse:
    columns = [TableColumn(text=text, type=kind) for text, kind in table.columns]
    return [TableResponse(columns=columns, rows=table.rows)]


def resolve_metric(conn, metric: Metric, time_range: TimeRange, interval: Interval, ctx: QueryContext) -> QueryResponse:
    """Fetch and resolve the rows of a validated metric."""
    if metric is Metric.SITES:
        rows = storage.sites(conn, time_range, interval)
        return assemble_series(resolve_sites(rows, time_range, interval))
    if metric is Metric.OUTBOUND_DATA:
        rows = storage.outbound(conn, time_range, ctx, interval)
        return assemble_series(resolve_outbound(rows, time_range, interval))
    if metric is Metric.BLOG_HITS:
        rows = storage.blog_posts(conn, time_range, ctx)
        return assemble_table(resolve_blog_posts(rows))
    raise UnknownTarget(metric.value)


def run_query(query: QueryRequest, ctx: QueryContext) -> QueryResponse:
    """
    Answer a dashboard query end to end.

    Validation, including the cap on datapoints per series, happens before
    the database is opened, so rejected requests never reach storage. The
    connection is closed on every exit path.
    """
    metric, time_range = validate_query(query.targets, query.range)
    interval = normalize_interval(query.interval_ms)
    count = bucket_count(time_range, interval)
    if count > MAX_BUCKETS:
        raise TooManyBuckets(count, MAX_BUCKETS)
    logger.debug(f"Resolving {metric.value} over {time_range.start} - {time_range.end} every {interval.seconds}s")

    with get_db(ctx.db) as conn:
        return resolve_metric(conn, metric, time_range, interval, ctx)
