"""Read-only access to the Wakapi SQLite database.

Wakapi keeps one row per heartbeat in the ``heartbeats`` table. Only the
``time`` and ``project`` columns matter here; ``user_id`` optionally narrows
the rows to one account of a multi-user instance.
"""

import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path

from wakasync.errors import SourceConnectionError, ValidationError
from wakasync.models import Heartbeat, TimeRange, parse_datetime

logger = logging.getLogger(__name__)


def _param(value: datetime) -> str:
    """Format a bound the way Wakapi's text timestamps compare."""
    return value.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def _connect(db_path: Path) -> sqlite3.Connection:
    """Open a read-only connection; the source is never written to."""
    if not db_path.is_file():
        raise SourceConnectionError(f"Wakapi database not found: {db_path}")
    try:
        conn = sqlite3.connect(
            f"{db_path.resolve().as_uri()}?mode=ro",
            uri=True,
            timeout=30.0,
        )
        conn.execute("PRAGMA query_only=ON")
        conn.execute("PRAGMA busy_timeout=30000")
        has_table = conn.execute(
            "SELECT 1 FROM sqlite_master WHERE type='table' AND name='heartbeats'"
        ).fetchone()
    except sqlite3.Error as e:
        raise SourceConnectionError(f"Failed to open Wakapi database {db_path}: {e}")

    if has_table is None:
        conn.close()
        raise SourceConnectionError(f"{db_path} has no heartbeats table; is it a Wakapi database?")
    conn.row_factory = sqlite3.Row
    return conn


def parse_heartbeat(row) -> Heartbeat:
    """Validate one ``(time, project)`` row; malformed rows abort the run."""
    project = row["project"]
    if not isinstance(project, str) or not project:
        raise ValidationError(f"Heartbeat at {row['time']!r} has no project")
    return Heartbeat(timestamp=parse_datetime(row["time"]), project=project)


class WakapiDatabase:
    """Heartbeat source backed by a Wakapi SQLite file."""

    def __init__(self, conn: sqlite3.Connection, path: Path | None = None):
        self._conn = conn
        self.path = path

    @classmethod
    def open(cls, db_path) -> "WakapiDatabase":
        db_path = Path(db_path).expanduser()
        logger.debug("Opening Wakapi database %s", db_path)
        return cls(_connect(db_path), db_path)

    def close(self):
        self._conn.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _where(self, time_range: TimeRange, user_id: str | None) -> tuple[str, list]:
        # datetime() normalises stored offsets to UTC; rows it cannot read
        # come back NULL and are range-checked after parsing instead.
        clause = (
            "(datetime(time) IS NULL OR (datetime(time) >= ? AND datetime(time) < ?))"
            " AND project IS NOT NULL AND project != ''"
        )
        params = [_param(time_range.start), _param(time_range.end)]
        if user_id:
            clause += " AND user_id = ?"
            params.append(user_id)
        return clause, params

    def _query(self, sql: str, params: list) -> list:
        try:
            return self._conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise SourceConnectionError(f"Failed to query Wakapi database: {e}")

    def _read(self, time_range: TimeRange, user_id: str | None) -> list[Heartbeat]:
        clause, params = self._where(time_range, user_id)
        rows = self._query(f"SELECT time, project FROM heartbeats WHERE {clause}", params)
        heartbeats = [parse_heartbeat(row) for row in rows]
        # Rows SQLite could not place in time are bounded here.
        inside = [hb for hb in heartbeats if time_range.start <= hb.timestamp < time_range.end]
        inside.sort(key=lambda hb: (hb.timestamp, hb.project))
        return inside

    def get_heartbeats(self, time_range: TimeRange, user_id: str | None = None) -> list[Heartbeat]:
        heartbeats = self._read(time_range, user_id)
        logger.info("Read %d heartbeats for %s", len(heartbeats), time_range.format())
        return heartbeats

    def get_projects(self, time_range: TimeRange, user_id: str | None = None) -> list[str]:
        return sorted({hb.project for hb in self._read(time_range, user_id)})


class StaticHeartbeatSource:
    """In-memory heartbeat source with the same query surface as WakapiDatabase."""

    def __init__(self, heartbeats):
        self._heartbeats = list(heartbeats)

    def get_heartbeats(self, time_range: TimeRange, user_id: str | None = None) -> list[Heartbeat]:
        return sorted(
            (hb for hb in self._heartbeats if time_range.start <= hb.timestamp < time_range.end),
            key=lambda hb: hb.timestamp,
        )

    def get_projects(self, time_range: TimeRange, user_id: str | None = None) -> list[str]:
        return sorted({hb.project for hb in self.get_heartbeats(time_range, user_id)})

    def close(self):
        pass
