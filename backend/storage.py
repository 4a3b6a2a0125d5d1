import logging
import sqlite3
from dataclasses import dataclass
from typing import List

from config import QueryContext
from errors import DataAccessFailure
from interval import Interval, epoch_seconds
from schemas import TimeRange

logger = logging.getLogger(__name__)


@dataclass
class SiteRow:
    host: str
    timestamp: int  # epoch seconds, start of the bucket
    count: int


@dataclass
class OutboundRow:
    timestamp: int  # epoch seconds, start of the bucket
    bytes: int


@dataclass
class BlogPostRow:
    referer: str
    views: int


def _bounds(time_range: TimeRange):
    return epoch_seconds(time_range.start), epoch_seconds(time_range.end)


def sites(conn, time_range: TimeRange, interval: Interval) -> List[SiteRow]:
    """
    Count requests per virtual host and time bucket.

    Buckets are aligned to the start of the range so that they line up with
    the dense series built from them.
    """
    start, end = _bounds(time_range)
    cursor = conn.cursor()
    try:
        cursor.execute("""
            SELECT host, ? + ((epoch - ?) / ?) * ? AS bucket_start, COUNT(*) AS views
            FROM logs
            WHERE epoch BETWEEN ? AND ?
            GROUP BY host, bucket_start
        """, (start, start, interval.seconds, interval.seconds, start, end))
        rows = cursor.fetchall()
    except sqlite3.Error as error:
        raise DataAccessFailure("sites") from error

    return [SiteRow(row["host"] or "", int(row["bucket_start"]), int(row["views"])) for row in rows]


def outbound(conn, time_range: TimeRange, ctx: QueryContext, interval: Interval) -> List[OutboundRow]:
    """Sum the bytes sent per time bucket, leaving out requests from `ctx.ip`."""
    start, end = _bounds(time_range)
    cursor = conn.cursor()
    try:
        cursor.execute("""
            SELECT ? + ((epoch - ?) / ?) * ? AS bucket_start,
                   COALESCE(SUM(body_bytes_sent), 0) AS bytes
            FROM logs
            WHERE epoch BETWEEN ? AND ? AND remote_addr IS NOT ?
            GROUP BY bucket_start
            ORDER BY bucket_start
        """, (start, start, interval.seconds, interval.seconds, start, end, ctx.ip))
        rows = cursor.fetchall()
    except sqlite3.Error as error:
        raise DataAccessFailure("outbound data") from error

    return [OutboundRow(int(row["bucket_start"]), int(row["bytes"])) for row in rows]


def blog_posts(conn, time_range: TimeRange, ctx: QueryContext) -> List[BlogPostRow]:
    """
    Count article views in the range, most viewed first.

    An article view is a GET of the comment widget asset on the blog host;
    the referer of that request is the article.
    """
    start, end = _bounds(time_range)
    cursor = conn.cursor()
    try:
        cursor.execute("""
            SELECT referer, COUNT(*) AS views
            FROM logs
            WHERE epoch BETWEEN ? AND ?
              AND host = ?
              AND method = 'GET'
              AND path = ?
              AND remote_addr IS NOT ?
            GROUP BY referer
            ORDER BY views DESC, referer
        """, (start, end, ctx.blog_host, ctx.blog_asset, ctx.ip))
        rows = cursor.fetchall()
    except sqlite3.Error as error:
        raise DataAccessFailure("blog posts") from error

    return [BlogPostRow(row["referer"], int(row["views"])) for row in rows]
