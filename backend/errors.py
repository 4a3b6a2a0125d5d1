from datetime import datetime


class QueryError(Exception):
    """Base class for failures that end a single query request."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidTargetCount(QueryError):
    status_code = 400

    def __init__(self, count: int):
        super().__init__(f"Expected exactly one target, received {count}")
        self.count = count


class InvalidRange(QueryError):
    status_code = 400

    def __init__(self, start: datetime, end: datetime):
        super().__init__(
            f"Range start {start.isoformat()} is after range end {end.isoformat()}"
        )
        self.start = start
        self.end = end


class UnknownTarget(QueryError):
    status_code = 400

    def __init__(self, target: str):
        super().__init__(f"Unrecognized target: {target}")
        self.target = target


class ConnectionFailure(QueryError):
    status_code = 503

    def __init__(self, db: str):
        super().__init__(f"Unable to open database: {db}")
        self.db = db


class DataAccessFailure(QueryError):
    """A storage query failed. The sqlite3 error is chained as __cause__."""

    status_code = 500

    def __init__(self, metric: str):
        super().__init__(f"Unable to query {metric}")
        self.metric = metric


class TooManyBuckets(QueryError):
    status_code = 400

    def __init__(self, count: int, limit: int):
        super().__init__(
            f"Query would produce {count} datapoints per series, the limit is {limit}; "
            f"use a shorter range or a longer interval"
        )
        self.count = count
        self.limit = limit
