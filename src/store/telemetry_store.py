"""SQLite destination store with chunk-scoped transactions.

This module owns the database connection, the per-chunk transaction
discipline and single-row inserts. Insert problems are returned as
``IngestFailure`` values so one bad record never aborts a chunk.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
import sqlite3
from typing import Iterator

from core.errors import SensorlogStoreError
from core.logging_config import get_logger
from core.types import FailureKind, IngestFailure, TableRecord
from store.schema import build_insert_statement, create_tables, quote_identifier

_LOGGER = get_logger(__name__)


@dataclass
class ChunkTransaction:
    """Outcome of one chunk transaction, filled in when the scope exits."""

    committed: bool = False


class TelemetryStore:
    """Relational store for ingested telemetry.

    The connection runs in autocommit mode; transactions are opened
    and committed explicitly, once per input chunk.
    """

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._statements: dict[tuple[str, tuple[str, ...]], str] = {}

    @classmethod
    def open(cls, database_path: Path) -> "TelemetryStore":
        """Open or create the database at ``database_path``.

        Args:
            database_path: SQLite database file.

        Returns:
            Connected store.

        Raises:
            SensorlogStoreError: If the database cannot be opened.
        """
        try:
            database_path.parent.mkdir(parents=True, exist_ok=True)
            connection = sqlite3.connect(str(database_path), isolation_level=None)
            connection.execute("PRAGMA schema_version").fetchone()
        except (OSError, sqlite3.Error) as error:
            raise SensorlogStoreError(
                f"Failed to open destination store at {database_path}: {error}. "
                "Check that the path is writable and is a SQLite database."
            ) from error
        _LOGGER.info("store_opened", database_path=str(database_path))
        return cls(connection)

    def __enter__(self) -> "TelemetryStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def initialize_schema(self) -> None:
        """Create all destination tables that are missing.

        Raises:
            SensorlogStoreError: If table creation fails.
        """
        try:
            create_tables(self._connection)
        except sqlite3.Error as error:
            raise SensorlogStoreError(
                f"Failed to create destination tables: {error}."
            ) from error

    @contextmanager
    def chunk_transaction(self) -> Iterator[ChunkTransaction]:
        """Open one transaction for the records of a single chunk.

        The transaction is committed when the scope exits normally. A
        failed commit is logged and rolled back; it does not raise, so
        ingestion continues with the next chunk.

        Yields:
            Transaction outcome, ``committed`` is set on exit.

        Raises:
            SensorlogStoreError: If the transaction cannot be started.
        """
        outcome = ChunkTransaction()
        try:
            self._connection.execute("BEGIN")
        except sqlite3.Error as error:
            raise SensorlogStoreError(f"Failed to begin transaction: {error}.") from error
        try:
            yield outcome
        except BaseException:
            self._rollback()
            raise
        outcome.committed = self._commit()

    def insert(self, record: TableRecord) -> IngestFailure | None:
        """Insert one row inside the current transaction.

        Args:
            record: Row to insert.

        Returns:
            ``None`` when exactly one row was inserted, else a failure.
        """
        statement = self._insert_statement(record)
        try:
            cursor = self._connection.execute(statement, record.values)
        except sqlite3.Error as error:
            return IngestFailure(
                FailureKind.PERSISTENCE, f"insert into {record.table} failed: {error}"
            )
        if cursor.rowcount != 1:
            return IngestFailure(
                FailureKind.PERSISTENCE,
                f"insert into {record.table} affected {cursor.rowcount} rows, expected 1",
            )
        return None

    def count_rows(self, table: str) -> int:
        """Return the number of rows stored in ``table``."""
        row = self._connection.execute(
            f"SELECT COUNT(*) FROM {quote_identifier(table)}"
        ).fetchone()
        return int(row[0])

    def fetch_rows(self, table: str) -> list[tuple[object, ...]]:
        """Return all rows of ``table`` in insertion order."""
        cursor = self._connection.execute(
            f"SELECT * FROM {quote_identifier(table)} ORDER BY rowid"
        )
        return [tuple(row) for row in cursor.fetchall()]

    def vacuum(self) -> None:
        """Compact the database file after ingestion.

        Raises:
            SensorlogStoreError: If compaction fails.
        """
        try:
            self._connection.execute("VACUUM")
        except sqlite3.Error as error:
            raise SensorlogStoreError(f"Failed to vacuum destination store: {error}.") from error
        _LOGGER.info("store_vacuumed")

    def close(self) -> None:
        """Close the database connection."""
        self._connection.close()

    def _insert_statement(self, record: TableRecord) -> str:
        key = (record.table, record.columns)
        statement = self._statements.get(key)
        if statement is None:
            statement = build_insert_statement(record.table, record.columns)
            self._statements[key] = statement
        return statement

    def _commit(self) -> bool:
        try:
            self._connection.execute("COMMIT")
        except sqlite3.Error as error:
            _LOGGER.error("commit_failed", error=str(error))
            self._rollback()
            return False
        return True

    def _rollback(self) -> None:
        if not self._connection.in_transaction:
            return
        try:
            self._connection.execute("ROLLBACK")
        except sqlite3.Error as error:
            _LOGGER.error("rollback_failed", error=str(error))
