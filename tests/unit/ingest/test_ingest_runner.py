"""Unit tests for two-stream ingest orchestration."""

from __future__ import annotations

from pathlib import Path

import pytest

from core.config import SensorlogConfig
from core.errors import SensorlogIoError, SensorlogStoreError
from core.types import IngestOptions
from ingest.pipeline import ingest_testbed, initialize_store
from store.telemetry_store import TelemetryStore
from tests.compression import write_zstd
from tests.fixture_paths import fixture_path


def _options(tmp_path: Path, vacuum: bool = True) -> IngestOptions:
    serial_text = fixture_path("serial_sample.log").read_text(encoding="utf-8")
    server_text = fixture_path("server_sample.csv").read_text(encoding="utf-8")
    return IngestOptions(
        database_path=tmp_path / "out" / "testbed.db",
        serial_path=write_zstd(tmp_path / "serial.log.zst", serial_text),
        server_path=write_zstd(tmp_path / "server.csv.zst", server_text),
        vacuum=vacuum,
    )


def test_ingest_testbed_loads_both_streams(tmp_path: Path) -> None:
    """Both streams land in one database with per-stream statistics."""
    options = _options(tmp_path)

    report = ingest_testbed(options, SensorlogConfig(chunk_size=128))

    with TelemetryStore.open(options.database_path) as store:
        assert store.count_rows("stats") == 2
        assert store.count_rows("server") == 2
    assert report.serial.inserted == 7
    assert report.server.inserted == 2


def test_ingest_testbed_without_vacuum(tmp_path: Path) -> None:
    """Skipping compaction does not change the loaded rows."""
    options = _options(tmp_path, vacuum=False)

    report = ingest_testbed(options, SensorlogConfig())

    assert report.serial.chunks == 1 and report.server.chunks == 1


def test_ingest_testbed_fails_for_missing_input(tmp_path: Path) -> None:
    """A missing server input aborts the run after the serial stream."""
    options = _options(tmp_path)
    (tmp_path / "server.csv.zst").unlink()

    with pytest.raises(SensorlogIoError):
        ingest_testbed(options, SensorlogConfig())

    with TelemetryStore.open(options.database_path) as store:
        assert store.count_rows("stats") == 2


def test_ingest_testbed_fails_when_store_cannot_open(tmp_path: Path) -> None:
    """A directory in place of the database file is a fatal store error."""
    options = _options(tmp_path)
    options.database_path.mkdir(parents=True)

    with pytest.raises(SensorlogStoreError):
        ingest_testbed(options, SensorlogConfig())


def test_initialize_store_creates_all_tables(tmp_path: Path) -> None:
    """init-db style initialization creates empty destination tables."""
    database_path = tmp_path / "empty.db"

    initialize_store(database_path)

    with TelemetryStore.open(database_path) as store:
        assert store.count_rows("neighbor_stats") == 0
        assert store.count_rows("server") == 0
