"""SQLite store for period summaries.

One table holds every layer. UNIQUE(owner_id, layer, period_start) is the
authority on "one summary per period": a second insert for the same period
fails and is reported as ``already_exists`` instead of creating a duplicate.
"""

from __future__ import annotations

import json
import sqlite3
import uuid
from collections.abc import Sequence
from datetime import date
from pathlib import Path

from ..core.time import format_utc_iso8601, get_current_utc, parse_utc_iso8601
from ..observability.loguru_config import get_logger
from ..rollups.contracts import PersistenceError, PersistResult, SummaryExistsError
from ..rollups.layers import validate_layer
from ..rollups.models import PeriodSummary
from ..rollups.time_windows import Period

__all__ = [
    "SummaryStore",
    "create_summary_store",
]

logger = get_logger("storage")


class SummaryStore:
    """SQLite-backed implementation of the summary repository.

    Example:
        >>> with SummaryStore(":memory:") as store:
        ...     store.list_summaries("alice", "weekly")
        []
    """

    def __init__(self, db_path: Path | str) -> None:
        """Initialize store.

        Parameters
        ----------
        db_path
            Path to SQLite database file, or ":memory:"
        """
        self.db_path = db_path if str(db_path) == ":memory:" else Path(db_path)
        self._conn: sqlite3.Connection | None = None
        self._init_database()

    def _init_database(self) -> None:
        if isinstance(self.db_path, Path):
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

        conn = self._get_connection()
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS period_summaries (
                id TEXT PRIMARY KEY,
                owner_id TEXT NOT NULL,
                layer TEXT NOT NULL,
                period_start TEXT NOT NULL,
                period_end TEXT NOT NULL,
                content TEXT NOT NULL,
                supplementary_content TEXT,
                source_child_ids TEXT NOT NULL DEFAULT '[]',
                created_at TEXT NOT NULL,
                UNIQUE (owner_id, layer, period_start)
            )
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_period_summaries_owner_layer
            ON period_summaries(owner_id, layer, period_start)
        """)

        conn.commit()

    def _get_connection(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(str(self.db_path))
            self._conn.row_factory = sqlite3.Row
        return self._conn

    @staticmethod
    def _row_to_summary(row: sqlite3.Row) -> PeriodSummary:
        return PeriodSummary(
            id=row["id"],
            owner_id=row["owner_id"],
            layer=row["layer"],
            period_start=date.fromisoformat(row["period_start"]),
            period_end=date.fromisoformat(row["period_end"]),
            content=row["content"],
            supplementary_content=row["supplementary_content"],
            source_child_ids=tuple(json.loads(row["source_child_ids"])),
            created_at=parse_utc_iso8601(row["created_at"]),
        )

    def add_summary(self, summary: PeriodSummary) -> PeriodSummary:
        """Insert a summary.

        Raises
        ------
        SummaryExistsError
            If the owner already has a summary for that layer and period start
        PersistenceError
            On any other database failure
        """
        validate_layer(summary.layer)
        conn = self._get_connection()

        try:
            conn.execute(
                """
                INSERT INTO period_summaries
                (id, owner_id, layer, period_start, period_end, content,
                 supplementary_content, source_child_ids, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    summary.id,
                    summary.owner_id,
                    summary.layer,
                    summary.period_start.isoformat(),
                    summary.period_end.isoformat(),
                    summary.content,
                    summary.supplementary_content,
                    json.dumps(list(summary.source_child_ids)),
                    format_utc_iso8601(summary.created_at),
                ),
            )
            conn.commit()
        except sqlite3.IntegrityError as exc:
            conn.rollback()
            raise SummaryExistsError(
                f"{summary.layer} summary for {summary.owner_id} starting "
                f"{summary.period_start.isoformat()} already exists"
            ) from exc
        except sqlite3.Error as exc:
            conn.rollback()
            raise PersistenceError(f"Failed to store summary {summary.id}: {exc}") from exc

        logger.debug(
            "Stored summary",
            summary_id=summary.id,
            owner_id=summary.owner_id,
            layer=summary.layer,
            period_start=summary.period_start.isoformat(),
        )
        return summary

    def get_summary(self, owner_id: str, layer: str, period_start: date) -> PeriodSummary | None:
        """Get the summary of one period, or None."""
        cursor = self._get_connection().execute(
            "SELECT * FROM period_summaries WHERE owner_id = ? AND layer = ? AND period_start = ?",
            (owner_id, layer, period_start.isoformat()),
        )
        row = cursor.fetchone()
        return self._row_to_summary(row) if row is not None else None

    def list_summaries(self, owner_id: str, layer: str) -> list[PeriodSummary]:
        """All summaries of a layer for an owner, oldest period first."""
        validate_layer(layer)
        try:
            cursor = self._get_connection().execute(
                "SELECT * FROM period_summaries WHERE owner_id = ? AND layer = ? ORDER BY period_start ASC",
                (owner_id, layer),
            )
            return [self._row_to_summary(row) for row in cursor.fetchall()]
        except sqlite3.Error as exc:
            raise PersistenceError(f"Failed to list {layer} summaries for {owner_id}: {exc}") from exc

    def persist_parent_summary(
        self,
        owner_id: str,
        layer: str,
        period: Period,
        content: str,
        supplementary_content: str | None,
        source_child_ids: Sequence[str],
    ) -> PersistResult:
        """Store a freshly generated parent summary.

        A uniqueness clash is not an error: it means a concurrent writer won.
        """
        summary = PeriodSummary(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            layer=layer,
            period_start=period.start,
            period_end=period.end,
            content=content,
            supplementary_content=supplementary_content,
            source_child_ids=tuple(source_child_ids),
            created_at=get_current_utc(),
        )

        try:
            self.add_summary(summary)
        except SummaryExistsError:
            existing = self.get_summary(owner_id, layer, period.start)
            return PersistResult(
                success=False,
                summary_id=existing.id if existing else None,
                already_exists=True,
            )

        return PersistResult(success=True, summary_id=summary.id)

    def count(self, owner_id: str | None = None, layer: str | None = None) -> int:
        """Number of stored summaries, optionally filtered."""
        query = "SELECT COUNT(*) FROM period_summaries WHERE 1 = 1"
        params: list[str] = []
        if owner_id is not None:
            query += " AND owner_id = ?"
            params.append(owner_id)
        if layer is not None:
            query += " AND layer = ?"
            params.append(layer)

        return self._get_connection().execute(query, params).fetchone()[0]

    def close(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> SummaryStore:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def create_summary_store(db_path: Path | str) -> SummaryStore:
    """Create a summary store at ``db_path``."""
    return SummaryStore(db_path)
