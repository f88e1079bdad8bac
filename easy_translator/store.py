"""
Resumable job state.

One SQLite file holds every chunk of one job. Rows are seeded once, then each
row moves pending -> success | failure as translations complete. The file is
kept after the run so an interrupted job can resume from it.
"""
from __future__ import annotations

import datetime as dt
import logging
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Tuple, Union

from .errors import StoreError

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS translations (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    sequence_number INTEGER NOT NULL,
    source_text TEXT NOT NULL,
    translated_text TEXT,
    source_lang TEXT,
    target_lang TEXT,
    status TEXT DEFAULT 'pending',
    timestamp TEXT,
    error_message TEXT,
    chunk_size INTEGER
);
CREATE UNIQUE INDEX IF NOT EXISTS idx_translations_sequence
    ON translations (sequence_number);
"""

COLUMNS = (
    "id, sequence_number, source_text, translated_text, source_lang, "
    "target_lang, status, error_message, timestamp, chunk_size"
)


class ChunkStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass
class ChunkRecord:
    id: int
    sequence_number: int
    source_text: str
    translated_text: Optional[str]
    source_lang: str
    target_lang: str
    status: ChunkStatus
    error_message: Optional[str] = None
    timestamp: Optional[str] = None
    chunk_size: Optional[int] = None

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "ChunkRecord":
        return cls(
            id=row["id"],
            sequence_number=row["sequence_number"],
            source_text=row["source_text"],
            translated_text=row["translated_text"],
            source_lang=row["source_lang"],
            target_lang=row["target_lang"],
            status=ChunkStatus(row["status"]),
            error_message=row["error_message"],
            timestamp=row["timestamp"],
            chunk_size=row["chunk_size"],
        )


@dataclass
class JobStats:
    total: int = 0
    success: int = 0
    failure: int = 0
    pending: int = 0

    @property
    def is_complete(self) -> bool:
        return self.pending == 0

    def needs_work(self, retry_failed: bool = True) -> bool:
        return self.pending > 0 or (retry_failed and self.failure > 0)


# sqlite3 name for a private, non-persistent database
MEMORY_DB = ":memory:"


def default_db_path(input_path: Union[str, Path]) -> Path:
    """Store location for an input file: same path, ``.db`` suffix."""
    return Path(input_path).with_suffix(".db")


def _now() -> str:
    return dt.datetime.now(dt.timezone.utc).isoformat()


class StateDB:
    def __init__(self, db_path: Union[str, Path]):
        self.db_path = Path(db_path)
        with self._errors("open"):
            self.conn = sqlite3.connect(str(self.db_path))
            self.conn.row_factory = sqlite3.Row
            self.conn.executescript(SCHEMA)
            self.conn.commit()

    @contextmanager
    def _errors(self, action: str) -> Iterator[None]:
        try:
            yield
        except sqlite3.Error as e:
            raise StoreError(f"Failed to {action} job store {self.db_path}: {e}") from e

    def __enter__(self) -> "StateDB":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ---------------------- Seeding ----------------------
    def seed(self, chunks: Sequence[str], source_lang: str, target_lang: str, chunk_size: int) -> None:
        """Replace every record with one pending record per chunk, atomically."""
        now = _now()
        rows = [(i, text, source_lang, target_lang, ChunkStatus.PENDING.value, now, chunk_size) for i, text in enumerate(chunks)]
        with self._errors("seed"):
            with self.conn:
                self.conn.execute("DELETE FROM translations")
                self.conn.executemany(
                    """
                    INSERT INTO translations
                        (sequence_number, source_text, source_lang, target_lang, status, timestamp, chunk_size)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    rows,
                )
        logger.debug(f"Seeded {len(rows)} chunks into {self.db_path}")

    # ---------------------- Queries ----------------------
    def stats(self) -> JobStats:
        with self._errors("read stats from"):
            row = self.conn.execute(
                """
                SELECT
                    COUNT(*) AS total,
                    SUM(CASE WHEN status = 'success' THEN 1 ELSE 0 END) AS success,
                    SUM(CASE WHEN status = 'failure' THEN 1 ELSE 0 END) AS failure,
                    SUM(CASE WHEN status = 'pending' THEN 1 ELSE 0 END) AS pending
                FROM translations
                """
            ).fetchone()
        # SUM() over zero rows is NULL
        return JobStats(
            total=row["total"] or 0,
            success=row["success"] or 0,
            failure=row["failure"] or 0,
            pending=row["pending"] or 0,
        )

    def _select(self, where: str = "", params: Tuple = ()) -> List[ChunkRecord]:
        sql = f"SELECT {COLUMNS} FROM translations {where} ORDER BY sequence_number"
        with self._errors("read"):
            cur = self.conn.execute(sql, params)
            return [ChunkRecord.from_row(r) for r in cur.fetchall()]

    def pending_and_failed(self) -> List[ChunkRecord]:
        """Resume work-list: every record not yet translated, in sequence order."""
        return self._select("WHERE status IN (?, ?)", (ChunkStatus.PENDING.value, ChunkStatus.FAILURE.value))

    def pending(self) -> List[ChunkRecord]:
        return self._select("WHERE status = ?", (ChunkStatus.PENDING.value,))

    def all_in_sequence_order(self) -> List[ChunkRecord]:
        return self._select()

    def job_settings(self) -> Optional[Tuple[str, str, int]]:
        """(source_lang, target_lang, chunk_size) the job was seeded with, or None when empty."""
        with self._errors("read"):
            row = self.conn.execute(
                "SELECT source_lang, target_lang, chunk_size FROM translations ORDER BY sequence_number LIMIT 1"
            ).fetchone()
        if row is None:
            return None
        return row["source_lang"], row["target_lang"], row["chunk_size"]

    # ---------------------- Updates ----------------------
    def record_success(self, record_id: int, translated_text: str) -> None:
        with self._errors("update"):
            with self.conn:
                self.conn.execute(
                    """
                    UPDATE translations
                    SET translated_text = ?, status = ?, error_message = NULL, timestamp = ?
                    WHERE id = ?
                    """,
                    (translated_text, ChunkStatus.SUCCESS.value, _now(), record_id),
                )

    def record_failure(self, record_id: int, error_message: str) -> None:
        with self._errors("update"):
            with self.conn:
                self.conn.execute(
                    """
                    UPDATE translations
                    SET status = ?, error_message = ?, timestamp = ?
                    WHERE id = ?
                    """,
                    (ChunkStatus.FAILURE.value, error_message, _now(), record_id),
                )

    def close(self) -> None:
        with self._errors("close"):
            self.conn.close()
