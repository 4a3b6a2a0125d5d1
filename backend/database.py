import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path

from errors import ConnectionFailure

logger = logging.getLogger(__name__)

LOG_COLUMNS = (
    "epoch",
    "remote_addr",
    "remote_user",
    "method",
    "path",
    "version",
    "status",
    "body_bytes_sent",
    "referer",
    "user_agent",
    "host",
)


def get_connection(db: str, read_only: bool = True):
    """
    Open a SQLite connection with rows addressable by column name.

    Read-only connections never create the file, so a missing database
    surfaces here instead of as an empty result.
    """
    try:
        if read_only:
            uri = f"{Path(db).resolve().as_uri()}?mode=ro"
            conn = sqlite3.connect(uri, uri=True)
        else:
            conn = sqlite3.connect(db)
    except sqlite3.Error as error:
        logger.error(f"Unable to open database {db}: {error}")
        raise ConnectionFailure(db) from error
    conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def get_db(db: str, read_only: bool = True):
    """Context manager for database connections."""
    conn = get_connection(db, read_only=read_only)
    try:
        yield conn
    finally:
        conn.close()


def init_db(db: str):
    """Initialize the database with the access log table."""
    with get_db(db, read_only=False) as conn:
        cursor = conn.cursor()

        cursor.execute('''
        CREATE TABLE IF NOT EXISTS logs (
            epoch INTEGER NOT NULL,
            remote_addr TEXT,
            remote_user TEXT,
            method TEXT,
            path TEXT,
            version TEXT,
            status INTEGER,
            body_bytes_sent INTEGER,
            referer TEXT,
            user_agent TEXT,
            host TEXT
        )
        ''')

        # Every query filters on the time range first
        cursor.execute('''
        CREATE INDEX IF NOT EXISTS idx_logs_epoch ON logs(epoch)
        ''')

        conn.commit()
