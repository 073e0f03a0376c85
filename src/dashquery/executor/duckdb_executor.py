"""DuckDB data store gateway for dashquery.

duckdb is embedded, so there's no server to pool connections against - the
"pool" here is a set of cursors derived from one connection. each cursor is
its own duckdb connection to the same database and is only ever used by one
thread at a time, which is the rule duckdb's python api wants you to follow.

queries run on worker threads owned by the gateway so the event loop stays
free. if the awaiting task gets cancelled we interrupt the cursor, otherwise
a cancelled batch would keep burning cpu on queries nobody is waiting for.
"""

import asyncio
import logging
import threading
from collections.abc import Callable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from functools import partial
from typing import Any, TypeVar

import duckdb

from dashquery.errors import ExecutionError, NoRowsError
from dashquery.models.result import RowSet, Scalar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_OPEN = 25
DEFAULT_MAX_IDLE = 5

# seconds between interrupt attempts on an abandoned query
INTERRUPT_RETRY_INTERVAL = 0.01


def _execute(
    cursor: duckdb.DuckDBPyConnection,
    sql: str,
    args: Sequence[Any],
    cancelled: threading.Event,
) -> duckdb.DuckDBPyConnection:
    if cancelled.is_set():
        raise ExecutionError("query cancelled before it started")
    return cursor.execute(sql, list(args))


def _fetch_scalar(
    cursor: duckdb.DuckDBPyConnection,
    sql: str,
    args: Sequence[Any],
    cancelled: threading.Event,
) -> Scalar:
    row = _execute(cursor, sql, args, cancelled).fetchone()
    if row is None:
        raise NoRowsError("no rows returned")
    # extra rows are ignored, first row wins
    return Scalar.of(row[0])


def _fetch_rows(
    cursor: duckdb.DuckDBPyConnection,
    sql: str,
    args: Sequence[Any],
    cancelled: threading.Event,
) -> RowSet:
    result = _execute(cursor, sql, args, cancelled)
    # result.description gives us (name, type_code, ...) tuples
    columns = [desc[0] for desc in result.description]
    return RowSet.from_records(columns, result.fetchall())


class DuckDBGateway:
    """Execute parameterized queries against DuckDB.

    thin async wrapper around duckdb that handles the cursor pool,
    cancellation, and result normalization. keeps the duckdb-specific bits
    isolated from the engine.
    """

    def __init__(
        self,
        database_path: str | None = None,
        max_open: int = DEFAULT_MAX_OPEN,
        max_idle: int = DEFAULT_MAX_IDLE,
    ) -> None:
        """Initialize the gateway.

        Args:
            database_path: Path to DuckDB file, or None for in-memory.
            max_open: Ceiling on concurrently executing queries.
            max_idle: How many idle cursors to keep around for reuse.
        """
        if max_open < 1:
            raise ValueError("max_open must be at least 1")
        if max_idle > max_open:
            raise ValueError("max_idle cannot exceed max_open")

        self.database_path = database_path
        self.max_open = max_open
        self.max_idle = max_idle

        self._conn: duckdb.DuckDBPyConnection | None = None  # lazy init
        self._closed = False
        self._idle: list[duckdb.DuckDBPyConnection] = []
        self._lock = threading.Lock()  # guards _conn, _idle and _closed
        self._slots: asyncio.Semaphore | None = None
        self._slots_loop: asyncio.AbstractEventLoop | None = None
        self._workers = ThreadPoolExecutor(max_workers=max_open, thread_name_prefix="dashquery-db")

    @property
    def conn(self) -> duckdb.DuckDBPyConnection:
        """Get or create the root DuckDB connection.

        lazy initialization so we don't open a db until we actually need it.
        ":memory:" is the duckdb convention for in-memory database.
        """
        with self._lock:
            return self._open()

    def _open(self) -> duckdb.DuckDBPyConnection:
        # caller holds self._lock
        if self._closed:
            raise ExecutionError("gateway is closed")
        if self._conn is None:
            path = self.database_path or ":memory:"
            try:
                self._conn = duckdb.connect(path)
            except duckdb.Error as exc:
                raise ExecutionError(f"failed to open database {path!r}: {exc}") from exc
            logger.info("Opened DuckDB database %s", path)
        return self._conn

    def ping(self) -> None:
        """Open the database and make sure it answers."""
        try:
            self.conn.execute("SELECT 1").fetchone()
        except duckdb.Error as exc:
            raise ExecutionError(f"failed to connect to database: {exc}") from exc

    # --- pool ---

    def _checkout(self) -> duckdb.DuckDBPyConnection:
        with self._lock:
            root = self._open()
            if self._idle:
                return self._idle.pop()
            logger.debug("Creating new pooled cursor")
            return root.cursor()

    def _checkin(self, cursor: duckdb.DuckDBPyConnection) -> None:
        with self._lock:
            if not self._closed and len(self._idle) < self.max_idle:
                self._idle.append(cursor)
                return
        cursor.close()

    def _slots_for_loop(self) -> asyncio.Semaphore:
        """Concurrency limiter for the running event loop.

        asyncio primitives belong to one loop, and the sync store calls
        asyncio.run() per query, so each new loop gets a fresh semaphore.
        """
        loop = asyncio.get_running_loop()
        if self._slots_loop is not loop:
            self._slots = asyncio.Semaphore(self.max_open)
            self._slots_loop = loop
        return self._slots

    def _abandon(
        self,
        job: "Future[Any]",
        cursor: duckdb.DuckDBPyConnection,
        cancelled: threading.Event,
        slots: asyncio.Semaphore,
    ) -> None:
        """Stop a query whose caller was cancelled.

        the job may still be queued, about to call execute(), or running.
        queued jobs are dropped, the event stops one that hasn't reached
        execute() yet, and running ones get interrupted until the worker
        lets go of the cursor.
        """
        loop = asyncio.get_running_loop()
        cancelled.set()
        job.cancel()  # only succeeds while the job is still queued
        job.add_done_callback(partial(self._discard, cursor, slots, loop))
        self._interrupt_until_done(job, cursor, loop)

    def _interrupt_until_done(
        self,
        job: "Future[Any]",
        cursor: duckdb.DuckDBPyConnection,
        loop: asyncio.AbstractEventLoop,
    ) -> None:
        # interrupt() is a no-op when nothing is executing yet, so keep trying
        if job.done():
            return
        try:
            cursor.interrupt()
        except duckdb.Error:
            # _discard closed the cursor between the done() check and here
            return
        loop.call_later(INTERRUPT_RETRY_INTERVAL, self._interrupt_until_done, job, cursor, loop)

    def _discard(
        self,
        cursor: duckdb.DuckDBPyConnection,
        slots: asyncio.Semaphore,
        loop: asyncio.AbstractEventLoop,
        job: "Future[Any]",
    ) -> None:
        """Done-callback for queries whose caller went away.

        runs on whichever thread finished the job. the worker is done with the
        cursor by now, so it can be closed and the slot handed back.
        """
        if not job.cancelled() and job.exception() is not None:
            logger.debug("Abandoned query ended with: %s", job.exception())
        cursor.close()
        # the semaphore belongs to that loop, nothing to release once it's gone
        if not loop.is_closed():
            loop.call_soon_threadsafe(slots.release)

    async def _run(
        self,
        fetch: Callable[[duckdb.DuckDBPyConnection, str, Sequence[Any], threading.Event], T],
        sql: str,
        args: Sequence[Any],
    ) -> T:
        slots = self._slots_for_loop()
        await slots.acquire()
        try:
            cursor = self._checkout()
        except BaseException:
            slots.release()
            raise

        cancelled = threading.Event()
        try:
            job = self._workers.submit(fetch, cursor, sql, args, cancelled)
        except RuntimeError as exc:
            # workers already shut down by close()
            cursor.close()
            slots.release()
            raise ExecutionError("gateway is closed") from exc

        abandoned = False
        reusable = False
        try:
            result = await asyncio.wrap_future(job)
            reusable = True
            return result
        except asyncio.CancelledError:
            abandoned = True
            self._abandon(job, cursor, cancelled, slots)
            raise
        except NoRowsError:
            reusable = True
            raise
        except duckdb.Error as exc:
            raise ExecutionError(f"query failed: {exc}") from exc
        finally:
            # abandoned cursors are cleaned up by _discard once the worker stops
            if not abandoned:
                if reusable:
                    self._checkin(cursor)
                else:
                    cursor.close()
                slots.release()

    # --- queries ---

    async def query_scalar(self, sql: str, args: Sequence[Any] = ()) -> Scalar:
        """Execute a query and return the first column of the first row.

        zero rows is an error (NoRowsError), not a null - a scalar metric that
        produced nothing means something is off with the query or the data.
        """
        return await self._run(_fetch_scalar, sql, args)

    async def query_rows(self, sql: str, args: Sequence[Any] = ()) -> RowSet:
        """Execute a query and return every row as column -> Scalar.

        zero rows is just an empty RowSet.
        """
        return await self._run(_fetch_rows, sql, args)

    def execute(self, sql: str, args: Sequence[Any] | None = None) -> None:
        """Run a statement synchronously on the root connection.

        meant for setup work (schema, seed data) - not for metric queries.
        """
        try:
            self.conn.execute(sql, args)
        except duckdb.Error as exc:
            raise ExecutionError(f"statement failed: {exc}") from exc

    def executemany(self, sql: str, rows: Sequence[Sequence[Any]]) -> None:
        # executemany is more efficient than individual inserts
        try:
            self.conn.executemany(sql, rows)
        except duckdb.Error as exc:
            raise ExecutionError(f"statement failed: {exc}") from exc

    def close(self) -> None:
        """Close idle cursors, the root connection and the worker threads."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            idle, self._idle = self._idle, []
            conn, self._conn = self._conn, None

        for cursor in idle:
            cursor.close()
        if conn is not None:
            conn.close()
            logger.info("Closed DuckDB database %s", self.database_path or ":memory:")
        self._workers.shutdown(wait=False, cancel_futures=True)

    # context manager support for clean resource management
    def __enter__(self) -> "DuckDBGateway":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
