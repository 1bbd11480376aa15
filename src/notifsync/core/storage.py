"""SQLite storage for pending queues and the sync audit log."""

import json
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

import aiosqlite

from notifsync.utils.constants import SQLITE_BUSY_TIMEOUT_MS, QueueName
from notifsync.utils.exceptions import StorageError


@dataclass
class AuditEntry:
    """Audit log entry."""
    id: int
    timestamp: float
    event_type: str
    queue: Optional[str]
    details: dict


SCHEMA = """
CREATE TABLE IF NOT EXISTS pending_updates (
    queue           TEXT NOT NULL,
    notification_id TEXT NOT NULL,
    queued_at       REAL,
    PRIMARY KEY (queue, notification_id)
);

CREATE TABLE IF NOT EXISTS audit_log (
    id              INTEGER PRIMARY KEY,
    timestamp       REAL,
    event_type      TEXT,
    queue           TEXT,
    details         TEXT
);

CREATE INDEX IF NOT EXISTS idx_pending_queue ON pending_updates(queue);
CREATE INDEX IF NOT EXISTS idx_audit_timestamp ON audit_log(timestamp);
"""


class Storage:
    """Async SQLite storage with WAL mode."""

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._conn: Optional[aiosqlite.Connection] = None

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def connect(self):
        """Open database connection."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = await aiosqlite.connect(self.db_path)
        self._conn.row_factory = aiosqlite.Row

        await self._conn.execute("PRAGMA journal_mode=WAL")
        await self._conn.execute(f"PRAGMA busy_timeout={SQLITE_BUSY_TIMEOUT_MS}")
        await self._conn.execute("PRAGMA synchronous=NORMAL")

        await self._conn.executescript(SCHEMA)
        await self._conn.commit()

    async def close(self):
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    @property
    def conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise StorageError("Storage is not connected")
        return self._conn

    async def list_tables(self) -> list[str]:
        """List all tables (for testing)."""
        cursor = await self.conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table'"
        )
        rows = await cursor.fetchall()
        return [row["name"] for row in rows]

    # Pending updates

    @staticmethod
    def _check_queue(queue: str):
        if queue not in QueueName.ALL:
            raise StorageError(f"Unknown queue: {queue}")

    async def add_pending(self, queue: str, ids: Iterable[str]):
        """Persist queued ids; re-queueing an id keeps its first timestamp."""
        self._check_queue(queue)
        now = time.time()
        await self.conn.executemany(
            """
            INSERT OR IGNORE INTO pending_updates (queue, notification_id, queued_at)
            VALUES (?, ?, ?)
            """,
            [(queue, notification_id, now) for notification_id in ids],
        )
        await self.conn.commit()

    async def remove_pending(self, queue: str, ids: Iterable[str]):
        """Remove ids from a queue (after the service confirmed them)."""
        self._check_queue(queue)
        await self.conn.executemany(
            "DELETE FROM pending_updates WHERE queue = ? AND notification_id = ?",
            [(queue, notification_id) for notification_id in ids],
        )
        await self.conn.commit()

    async def get_pending(self, queue: str) -> list[str]:
        """Queued ids in the order they were queued."""
        self._check_queue(queue)
        cursor = await self.conn.execute(
            """
            SELECT notification_id FROM pending_updates
            WHERE queue = ? ORDER BY queued_at, rowid
            """,
            (queue,),
        )
        rows = await cursor.fetchall()
        return [row["notification_id"] for row in rows]

    async def pending_counts(self) -> dict[str, int]:
        counts = {name: 0 for name in QueueName.ALL}
        cursor = await self.conn.execute(
            "SELECT queue, COUNT(*) AS n FROM pending_updates GROUP BY queue"
        )
        for row in await cursor.fetchall():
            counts[row["queue"]] = row["n"]
        return counts

    async def clear_pending(self, queue: Optional[str] = None):
        """Drop every queued id, or those of one queue."""
        if queue is None:
            await self.conn.execute("DELETE FROM pending_updates")
        else:
            self._check_queue(queue)
            await self.conn.execute(
                "DELETE FROM pending_updates WHERE queue = ?", (queue,)
            )
        await self.conn.commit()

    # Audit log

    async def log_audit(
        self,
        event_type: str,
        queue: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        """Append to audit log."""
        now = time.time()
        details_json = json.dumps(details) if details else None
        await self.conn.execute(
            """
            INSERT INTO audit_log (timestamp, event_type, queue, details)
            VALUES (?, ?, ?, ?)
            """,
            (now, event_type, queue, details_json),
        )
        await self.conn.commit()

    async def get_audit_log(self, limit: int = 100) -> list[AuditEntry]:
        """Get recent audit log entries."""
        cursor = await self.conn.execute(
            "SELECT * FROM audit_log ORDER BY timestamp DESC, id DESC LIMIT ?",
            (limit,),
        )
        rows = await cursor.fetchall()
        entries = []
        for row in rows:
            d = dict(row)
            d["details"] = json.loads(d["details"]) if d["details"] else {}
            entries.append(AuditEntry(**d))
        return entries
