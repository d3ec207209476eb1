"""SQLite sink for datapoints.

Datapoints are recorded synchronously with the standard sqlite3 module,
since emit() runs on the scrape thread. Reading back and housekeeping are
async and go through aiosqlite so they can be served from an event loop.
"""

import asyncio
import json
import math
import sqlite3
import threading
import uuid
from collections.abc import AsyncIterable, AsyncIterator, Iterator
from contextlib import asynccontextmanager, contextmanager
from typing import Any

import aiosqlite

from promemit.core.models import Datapoint, DatapointKind

_DATAPOINTS_SCHEMA = """
CREATE TABLE IF NOT EXISTS datapoints (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    timestamp REAL NOT NULL,
    value REAL,
    kind TEXT NOT NULL,
    interval REAL,
    attributes TEXT NOT NULL DEFAULT '{}'
);
CREATE INDEX IF NOT EXISTS idx_datapoints_timestamp ON datapoints(timestamp);
"""

_INSERT_DATAPOINT = """
INSERT INTO datapoints (name, timestamp, value, kind, interval, attributes)
VALUES (?, ?, ?, ?, ?, ?)
"""

_SELECT_DATAPOINTS_SINCE = """
SELECT name, timestamp, value, kind, interval, attributes FROM datapoints
WHERE timestamp > ?
ORDER BY timestamp ASC, id ASC
"""

_COUNT_DATAPOINTS = "SELECT COUNT(*) FROM datapoints"

_DELETE_DATAPOINTS_BEFORE = "DELETE FROM datapoints WHERE timestamp < ?"

_CLEAR_DATAPOINTS = "DELETE FROM datapoints"


def _to_row(datapoint: Datapoint) -> tuple[Any, ...]:
    # SQLite stores NaN as NULL; _from_row maps it back.
    value = None if math.isnan(datapoint.value) else datapoint.value
    return (
        datapoint.name,
        datapoint.timestamp,
        value,
        datapoint.kind.value,
        datapoint.interval,
        json.dumps(datapoint.attributes),
    )


def _from_row(row: sqlite3.Row | aiosqlite.Row) -> Datapoint:
    return Datapoint(
        name=row[0],
        timestamp=row[1],
        value=math.nan if row[2] is None else row[2],
        kind=DatapointKind(row[3]),
        interval=row[4],
        attributes=json.loads(row[5]),
    )


class _AsyncConnections:
    """aiosqlite connections with one-time schema initialization.

    In-memory databases only live while a connection is open, so a single
    persistent connection is kept for them.
    """

    def __init__(self, db_path: str, in_memory: bool = False) -> None:
        self._db_path = db_path
        self._in_memory = in_memory
        self._initialized = False
        self._init_lock: asyncio.Lock | None = None
        self._persistent_conn: aiosqlite.Connection | None = None

    def _get_lock(self) -> asyncio.Lock:
        # Created lazily so it binds to the running loop.
        if self._init_lock is None:
            self._init_lock = asyncio.Lock()
        return self._init_lock

    async def _ensure_initialized(self) -> None:
        if self._initialized:
            return
        async with self._get_lock():
            if self._initialized:
                return
            if self._in_memory:
                self._persistent_conn = await aiosqlite.connect(
                    self._db_path, uri=True
                )
                await self._persistent_conn.executescript(_DATAPOINTS_SCHEMA)
            else:
                async with aiosqlite.connect(self._db_path) as db:
                    await db.execute("PRAGMA journal_mode=WAL")
                    await db.executescript(_DATAPOINTS_SCHEMA)
            self._initialized = True

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        await self._ensure_initialized()
        if self._persistent_conn is not None:
            yield self._persistent_conn
            return
        db = await aiosqlite.connect(self._db_path)
        try:
            yield db
        finally:
            await db.close()

    async def close(self) -> None:
        if self._persistent_conn is not None:
            await self._persistent_conn.close()
            self._persistent_conn = None
            self._initialized = False


class _SyncConnections:
    """sqlite3 connections with one-time schema initialization."""

    def __init__(self, db_path: str, in_memory: bool = False) -> None:
        self._db_path = db_path
        self._in_memory = in_memory
        self._initialized = False
        self._lock = threading.Lock()
        self._persistent_conn: sqlite3.Connection | None = None

    def _ensure_initialized(self) -> None:
        if self._initialized:
            return
        with self._lock:
            if self._initialized:
                return
            if self._in_memory:
                self._persistent_conn = sqlite3.connect(
                    self._db_path, uri=True, check_same_thread=False
                )
                self._persistent_conn.executescript(_DATAPOINTS_SCHEMA)
            else:
                db = sqlite3.connect(self._db_path)
                try:
                    db.execute("PRAGMA journal_mode=WAL")
                    db.executescript(_DATAPOINTS_SCHEMA)
                finally:
                    db.close()
            self._initialized = True

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        self._ensure_initialized()
        if self._persistent_conn is not None:
            # One shared connection; serialize access across threads.
            with self._lock:
                yield self._persistent_conn
            return
        conn = sqlite3.connect(self._db_path)
        try:
            yield conn
        finally:
            conn.close()

    def close(self) -> None:
        if self._persistent_conn is not None:
            self._persistent_conn.close()
            self._persistent_conn = None
            self._initialized = False


class SQLiteSink:
    """SQLite implementation of SinkPort.

    Uses WAL mode for file databases so the async readers do not block the
    synchronous writer. ":memory:" opens a private shared-cache database
    that the writer and the async readers both see; it lives until close().

    Args:
        db_path: Path to the database file, or ":memory:".
    """

    def __init__(self, db_path: str) -> None:
        in_memory = db_path == ":memory:"
        if in_memory:
            # Unique per sink so separate sinks never share data.
            target = f"file:promemit-{uuid.uuid4().hex}?mode=memory&cache=shared"
        else:
            target = db_path
        self._async = _AsyncConnections(target, in_memory)
        self._sync = _SyncConnections(target, in_memory)

    def record(self, datapoint: Datapoint) -> None:
        """Record a datapoint synchronously."""
        with self._sync.connection() as conn:
            conn.execute(_INSERT_DATAPOINT, _to_row(datapoint))
            conn.commit()

    def read_sync(self, since: float = 0) -> list[Datapoint]:
        """Synchronous read for non-async contexts."""
        with self._sync.connection() as conn:
            cursor = conn.execute(_SELECT_DATAPOINTS_SINCE, (since,))
            return [_from_row(row) for row in cursor]

    async def read(self, since: float = 0) -> AsyncIterable[Datapoint]:
        """Read datapoints with timestamp > since, oldest first."""
        async with self._async.connection() as db:
            async with db.execute(_SELECT_DATAPOINTS_SINCE, (since,)) as cursor:
                async for row in cursor:
                    yield _from_row(row)

    async def count(self) -> int:
        """Return total number of stored datapoints."""
        async with self._async.connection() as db:
            async with db.execute(_COUNT_DATAPOINTS) as cursor:
                row = await cursor.fetchone()
                return row[0] if row else 0

    async def delete_before(self, timestamp: float) -> int:
        """Delete datapoints with timestamp < given value."""
        async with self._async.connection() as db:
            cursor = await db.execute(_DELETE_DATAPOINTS_BEFORE, (timestamp,))
            deleted = cursor.rowcount
            await db.commit()
            return deleted

    async def clear(self) -> None:
        """Delete all datapoints."""
        async with self._async.connection() as db:
            await db.execute(_CLEAR_DATAPOINTS)
            await db.commit()

    async def close(self) -> None:
        """Close persistent connections (for :memory: databases)."""
        await self._async.close()
        self._sync.close()
