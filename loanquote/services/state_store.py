"""Local state cache for LoanQuote, backed by SQLite."""
import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from typing import Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from loanquote.config import STATE_DB_NAME, STATE_MAX_AGE_DAYS, DATE_FORMAT_STORAGE
from loanquote.data_structures import SavedState
from loanquote.exceptions import StorageError

logger = logging.getLogger(__name__)

STATE_KEY = "loanCalculatorState"


class StateStore:
    """Best-effort cache holding the latest calculator snapshot."""

    def __init__(self, db_name=STATE_DB_NAME, max_age_days=STATE_MAX_AGE_DAYS):
        self.db_name = db_name
        self.max_age = relativedelta(days=max_age_days)
        try:
            self.conn = sqlite3.connect(db_name)
        except sqlite3.Error as e:
            raise StorageError(f"Could not open state cache: {e}", {'db_name': db_name})
        self._closed = False
        self.create_tables()

    def close(self):
        """Close the database connection."""
        if self.conn and not self._closed:
            self.conn.close()
            self._closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    @contextmanager
    def transaction(self):
        """Context manager committing on success and rolling back on failure.

        Raises:
            StorageError: If SQLite reports an error inside the block.
        """
        try:
            yield self.conn.cursor()
            self.conn.commit()
        except sqlite3.Error as e:
            self.conn.rollback()
            raise StorageError(f"State cache transaction failed: {e}")
        except Exception:
            self.conn.rollback()
            raise

    def create_tables(self):
        with self.transaction() as cursor:
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS saved_state (
                    key TEXT PRIMARY KEY,
                    payload TEXT NOT NULL,
                    saved_at TEXT NOT NULL
                )
            """)

    def save_state(self, snapshot: SavedState) -> None:
        """Replace the stored snapshot.

        Raises:
            StorageError: If the cache is closed or the write fails.
        """
        if self._closed:
            raise StorageError("State cache is closed")
        data = snapshot.to_dict()
        with self.transaction() as cursor:
            cursor.execute(
                "INSERT OR REPLACE INTO saved_state (key, payload, saved_at) VALUES (?, ?, ?)",
                (STATE_KEY, json.dumps(data), data['saved_at'])
            )

    def load_state(self, now: datetime = None) -> Optional[SavedState]:
        """Load the stored snapshot.

        Snapshots older than the maximum age, and rows that cannot be
        decoded, are deleted and reported as absent.

        Args:
            now: Reference time for the age check (default: current time).
        """
        if self._closed:
            raise StorageError("State cache is closed")
        cursor = self.conn.cursor()
        try:
            cursor.execute("SELECT payload FROM saved_state WHERE key=?", (STATE_KEY,))
            row = cursor.fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Could not read state cache: {e}")
        if not row:
            return None

        try:
            data = json.loads(row[0])
            saved_at = date_parser.isoparse(data['saved_at'])
            if saved_at.tzinfo is not None:
                # Compare in naive local time
                saved_at = saved_at.astimezone().replace(tzinfo=None)
            snapshot = SavedState(
                loan_amount=float(data['loan_amount']),
                loan_term=float(data['loan_term']),
                has_quoted=bool(data.get('has_quoted', False)),
                saved_at=saved_at,
            )
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Failed to load saved loan state: {e}")
            self.clear_state()
            return None

        now = now or datetime.now()
        if snapshot.saved_at < now - self.max_age:
            logger.info(f"Discarding saved loan state from {snapshot.saved_at.strftime(DATE_FORMAT_STORAGE)}")
            self.clear_state()
            return None
        return snapshot

    def clear_state(self) -> None:
        with self.transaction() as cursor:
            cursor.execute("DELETE FROM saved_state WHERE key=?", (STATE_KEY,))
