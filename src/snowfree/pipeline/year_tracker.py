"""SQLite-based per-year processing tracker.

Tracks each year through pipeline stages (acquired, fused, reduced) and
records recoverable per-year conditions (empty years, failed acquisitions)
as diagnostics instead of aborting the run.
"""

import sqlite3
import logging
from pathlib import Path
from datetime import datetime, timezone
from typing import Optional, Dict, List
import threading

import pandas as pd

logger = logging.getLogger(__name__)


class YearProcessingTracker:
    """Tracks year processing state through pipeline stages.

    **Pipeline Stages:**

    1. **Acquired**: Both sensor series queried for the year
    2. **Fused**: Streams joined and fused into one daily series
    3. **Reduced**: Melt/accumulation summary appended to the stacks

    **Database Schema:**

    SQLite table `year_processing` (one row per year):

    - year: Year number (primary key)
    - sensor_a, sensor_b: Source dataset identifiers
    - Status: pending, processing, completed, empty, failed
    - Day counts: days_a, days_b, days_fused
    - Timestamps: acquired_at, fused_at, reduced_at (ISO format)
    - error_message: Reason for an empty or failed year

    **Thread Safety:**

    All methods are thread-safe via internal locking. The loader thread
    and the processor thread write to the same tracker.

    Example::

        with YearProcessingTracker(db_path) as tracker:
            tracker.register_year(2003, "MOD10A1", "MYD10A1")
            tracker.mark_stage_complete(2003, "acquired", days_a=365, days_b=363)
            stats = tracker.get_statistics()
    """

    VALID_STAGES = ('acquired', 'fused', 'reduced')

    def __init__(self, db_path: Path | str):
        """Initialize tracker.

        Parameters
        ----------
        db_path : Path or str
            Path to SQLite database file. Created if it doesn't exist.
            Typically: output_dirs/analysis/year_processing.db
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._conn = None
        self._lock = threading.Lock()

        self._init_database()
        logger.info(f"Year tracker initialized: {self.db_path}")

    def _get_connection(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def _init_database(self):
        """Create database schema if it doesn't exist."""
        conn = self._get_connection()

        with self._lock:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS year_processing (
                    year INTEGER PRIMARY KEY,
                    sensor_a TEXT,
                    sensor_b TEXT,

                    days_a INTEGER,
                    days_b INTEGER,
                    days_fused INTEGER,

                    acquired_at TEXT,
                    fused_at TEXT,
                    reduced_at TEXT,

                    status TEXT DEFAULT 'pending',
                    error_message TEXT,

                    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
                    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_status ON year_processing(status)")
            conn.commit()

    def register_year(self, year: int, sensor_a: str, sensor_b: str) -> bool:
        """Register a year for tracking.

        Returns
        -------
        bool
            True if newly registered, False if the year already exists.
            Safe to call multiple times.
        """
        conn = self._get_connection()

        with self._lock:
            cursor = conn.execute("SELECT year FROM year_processing WHERE year = ?", (year,))
            if cursor.fetchone():
                return False

            conn.execute("""
                INSERT INTO year_processing (year, sensor_a, sensor_b, status)
                VALUES (?, ?, ?, 'pending')
            """, (year, sensor_a, sensor_b))
            conn.commit()

            logger.debug(f"Registered year: {year}")
            return True

    def mark_stage_complete(self, year: int, stage: str,
                            error: Optional[str] = None,
                            days_a: Optional[int] = None,
                            days_b: Optional[int] = None,
                            days_fused: Optional[int] = None):
        """Mark a pipeline stage as complete or failed for a year.

        Parameters
        ----------
        year : int
            Year (must be registered via register_year).
        stage : str
            'acquired', 'fused' or 'reduced'. Completing 'reduced' marks the
            year completed.
        error : str, optional
            Error message; sets status to 'failed'.
        days_a, days_b, days_fused : int, optional
            Day counts to record alongside the stage.

        Raises
        ------
        ValueError
            If stage is not a valid pipeline stage.
        """
        if stage not in self.VALID_STAGES:
            raise ValueError(f"Invalid stage: {stage}. Must be one of {list(self.VALID_STAGES)}")

        if error:
            new_status = 'failed'
        elif stage == 'reduced':
            new_status = 'completed'
        else:
            new_status = 'processing'

        now = datetime.now(timezone.utc).isoformat()
        updates = {
            f"{stage}_at": now,
            "status": new_status,
            "error_message": error,
            "updated_at": now,
        }
        for column, value in (("days_a", days_a), ("days_b", days_b), ("days_fused", days_fused)):
            if value is not None:
                updates[column] = value

        assignments = ", ".join(f"{column} = ?" for column in updates)
        conn = self._get_connection()

        with self._lock:
            conn.execute(
                f"UPDATE year_processing SET {assignments} WHERE year = ?",
                (*updates.values(), year)
            )
            conn.commit()

            logger.debug(f"Marked {stage} complete: {year} ({new_status})")

    def mark_empty(self, year: int, message: str):
        """Record a year whose fused series has no days."""
        conn = self._get_connection()

        with self._lock:
            conn.execute("""
                UPDATE year_processing
                SET status = 'empty', error_message = ?, days_fused = 0, updated_at = ?
                WHERE year = ?
            """, (message, datetime.now(timezone.utc).isoformat(), year))
            conn.commit()

    def get_year_status(self, year: int) -> Optional[Dict]:
        """Full status row for a year, or None if not registered."""
        conn = self._get_connection()

        with self._lock:
            cursor = conn.execute("SELECT * FROM year_processing WHERE year = ?", (year,))
            row = cursor.fetchone()
            return dict(row) if row else None

    def get_failed_years(self) -> List[int]:
        conn = self._get_connection()

        with self._lock:
            cursor = conn.execute(
                "SELECT year FROM year_processing WHERE status = 'failed' ORDER BY year"
            )
            return [row['year'] for row in cursor.fetchall()]

    def get_statistics(self) -> Dict:
        """Summary statistics for processing progress.

        Returns
        -------
        dict
            ``total``, per-stage counts (``acquired``, ``fused``,
            ``reduced``) and per-status counts (``completed``, ``empty``,
            ``failed``, ``processing``, ``pending``).
        """
        conn = self._get_connection()

        with self._lock:
            cursor = conn.execute("""
                SELECT
                    COUNT(*) as total,
                    COUNT(acquired_at) as acquired,
                    COUNT(fused_at) as fused,
                    COUNT(reduced_at) as reduced,
                    SUM(CASE WHEN status = 'completed' THEN 1 ELSE 0 END) as completed,
                    SUM(CASE WHEN status = 'empty' THEN 1 ELSE 0 END) as empty,
                    SUM(CASE WHEN status = 'failed' THEN 1 ELSE 0 END) as failed,
                    SUM(CASE WHEN status = 'processing' THEN 1 ELSE 0 END) as processing,
                    SUM(CASE WHEN status = 'pending' THEN 1 ELSE 0 END) as pending
                FROM year_processing
            """)
            row = cursor.fetchone()
            return dict(row) if row else {}

    def to_dataframe(self) -> pd.DataFrame:
        """All year rows as a DataFrame indexed by year."""
        conn = self._get_connection()

        with self._lock:
            df = pd.read_sql_query("SELECT * FROM year_processing ORDER BY year", conn)
        return df.set_index("year")

    def reset_failed(self):
        """Reset failed years to pending so a rerun retries them."""
        conn = self._get_connection()

        with self._lock:
            conn.execute("""
                UPDATE year_processing
                SET status = 'pending', error_message = NULL, updated_at = ?
                WHERE status = 'failed'
            """, (datetime.now(timezone.utc).isoformat(),))
            conn.commit()

            logger.info("Reset failed years to pending")

    def close(self):
        """Close database connection. Safe to call multiple times."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
