import argparse
import csv
import logging
import time
from typing import Iterable, Sequence

from config import configure_logging
from database import LOG_COLUMNS, get_db, init_db

logger = logging.getLogger(__name__)

INSERT_LOG = f"INSERT INTO logs ({', '.join(LOG_COLUMNS)}) VALUES ({', '.join('?' * len(LOG_COLUMNS))})"
INTEGER_COLUMNS = {"epoch", "status", "body_bytes_sent"}


def parse_record(parts: Sequence[str]) -> tuple:
    """Convert one CSV line into a `logs` row, raising ValueError if it is malformed."""
    if len(parts) != len(LOG_COLUMNS):
        raise ValueError(f"expected {len(LOG_COLUMNS)} fields, found {len(parts)}")
    return tuple(
        int(value) if column in INTEGER_COLUMNS else value
        for column, value in zip(LOG_COLUMNS, parts)
    )


def insert_logs(db: str, records: Iterable[tuple], batch_size: int = 100_000) -> int:
    """
    Insert access log rows into the database.

    Args:
        db: Path to the SQLite database, created if missing
        records: Rows with one value per entry of LOG_COLUMNS
        batch_size: Number of records to insert in a single batch

    Returns:
        int: Number of rows inserted
    """
    init_db(db)

    total_rows = 0
    batch = []

    with get_db(db, read_only=False) as conn:
        cursor = conn.cursor()
        for record in records:
            batch.append(record)
            total_rows += 1

            if len(batch) >= batch_size:
                cursor.executemany(INSERT_LOG, batch)
                conn.commit()
                logger.info(f"Inserted {total_rows} rows so far...")
                batch = []

        # Insert any remaining records
        if batch:
            cursor.executemany(INSERT_LOG, batch)
            conn.commit()

    return total_rows


def read_csv_records(csv_file_path: str) -> Iterable[tuple]:
    """Yield rows from a CSV export, skipping the header and malformed lines."""
    with open(csv_file_path, 'r', newline='') as file:
        header = file.readline()
        if not header.startswith("epoch,"):
            logger.warning("CSV file does not have the expected header. Continuing anyway.")
            file.seek(0)

        for parts in csv.reader(file):
            try:
                yield parse_record(parts)
            except ValueError as e:
                logger.warning(f"Error processing line: {','.join(parts)}. Error: {e}")
                continue


def load_logs_from_csv(db: str, csv_file_path: str, batch_size: int = 100_000) -> int:
    """Load an access log CSV export into the database and report what was loaded."""
    logger.info(f"Loading data from {csv_file_path}...")
    start_time = time.time()

    total_rows = insert_logs(db, read_csv_records(csv_file_path), batch_size)

    duration = time.time() - start_time
    logger.info(f"Data loading completed. Inserted {total_rows} rows in {duration:.2f} seconds.")

    with get_db(db) as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT COUNT(*), MIN(epoch), MAX(epoch) FROM logs")
        count, min_ts, max_ts = cursor.fetchone()
        logger.info(f"Total records in database: {count}")
        logger.info(f"Timestamp range: {min_ts} to {max_ts}")

    return total_rows


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Load an access log CSV export")
    parser.add_argument("db")
    parser.add_argument("csv")
    args = parser.parse_args()

    configure_logging()
    load_logs_from_csv(args.db, args.csv)
