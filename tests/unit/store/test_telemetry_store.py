"""Unit tests for the SQLite telemetry store."""

from __future__ import annotations

from pathlib import Path
import sqlite3

import pytest

from core.errors import SensorlogStoreError
from core.types import FailureKind, TableRecord
from store.telemetry_store import TelemetryStore


def _output_record(text: str) -> TableRecord:
    return TableRecord(
        table="output",
        columns=("Timestamp", "Node", "Output Stdout"),
        values=("2021-01-01 00:00:00.000000", "n", text),
    )


def _open(tmp_path: Path) -> TelemetryStore:
    store = TelemetryStore.open(tmp_path / "store.db")
    store.initialize_schema()
    return store


def test_insert_inside_committed_transaction(tmp_path: Path) -> None:
    """Rows inserted in a chunk transaction persist after commit."""
    store = _open(tmp_path)

    with store.chunk_transaction() as transaction:
        assert store.insert(_output_record("a")) is None
        assert store.insert(_output_record("b")) is None
    store.close()

    reopened = TelemetryStore.open(tmp_path / "store.db")
    assert transaction.committed is True
    assert [row[2] for row in reopened.fetch_rows("output")] == ["a", "b"]
    reopened.close()


def test_rejected_insert_does_not_roll_back_chunk(tmp_path: Path) -> None:
    """A failing insert is reported while earlier rows still commit."""
    store = _open(tmp_path)
    bad_record = TableRecord(table="missing_table", columns=("x",), values=(1,))

    with store.chunk_transaction():
        store.insert(_output_record("kept"))
        failure = store.insert(bad_record)
        store.insert(_output_record("also kept"))

    assert failure is not None and failure.kind is FailureKind.PERSISTENCE
    assert store.count_rows("output") == 2
    store.close()


def test_wrong_row_count_is_a_persistence_failure(tmp_path: Path) -> None:
    """An insert ignored by a trigger affects zero rows and is rejected."""
    store = _open(tmp_path)
    store._connection.execute(
        'CREATE TRIGGER drop_output BEFORE INSERT ON "output" '
        "BEGIN SELECT RAISE(IGNORE); END"
    )

    with store.chunk_transaction():
        failure = store.insert(_output_record("ignored"))

    assert failure is not None and "affected 0 rows" in failure.cause
    store.close()


def test_commit_failure_is_logged_not_raised(tmp_path: Path) -> None:
    """A failed commit is rolled back and reported on the outcome."""
    store = _open(tmp_path)
    store._connection.execute("PRAGMA foreign_keys=ON")
    store._connection.execute("CREATE TABLE parent (id INTEGER PRIMARY KEY)")
    store._connection.execute(
        "CREATE TABLE child (parent_id INTEGER REFERENCES parent(id) "
        "DEFERRABLE INITIALLY DEFERRED)"
    )

    with store.chunk_transaction() as transaction:
        store.insert(_output_record("lost"))
        store.insert(TableRecord(table="child", columns=("parent_id",), values=(42,)))

    assert transaction.committed is False
    assert store.count_rows("output") == 0

    with store.chunk_transaction() as next_transaction:
        store.insert(_output_record("next chunk"))

    assert next_transaction.committed is True
    assert store.count_rows("output") == 1
    store.close()


def test_exception_inside_transaction_rolls_back(tmp_path: Path) -> None:
    """Unexpected errors propagate and discard the chunk."""
    store = _open(tmp_path)

    with pytest.raises(RuntimeError):
        with store.chunk_transaction():
            store.insert(_output_record("discarded"))
            raise RuntimeError("boom")

    assert store.count_rows("output") == 0
    store.close()


def test_open_fails_for_directory_path(tmp_path: Path) -> None:
    """A path that is a directory cannot be opened as a database."""
    with pytest.raises(SensorlogStoreError):
        TelemetryStore.open(tmp_path)


def test_vacuum_after_ingestion(tmp_path: Path) -> None:
    """Compaction runs outside of any transaction."""
    store = _open(tmp_path)
    with store.chunk_transaction():
        store.insert(_output_record("row"))

    store.vacuum()

    assert store.count_rows("output") == 1
    store.close()


def test_sqlite_connection_is_in_autocommit_mode(tmp_path: Path) -> None:
    """Transactions are only opened explicitly per chunk."""
    store = _open(tmp_path)

    assert store._connection.isolation_level is None
    assert isinstance(store._connection, sqlite3.Connection)
    store.close()
