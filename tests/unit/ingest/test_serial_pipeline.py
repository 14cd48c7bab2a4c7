"""Unit tests for the serial-stream pipeline."""

from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest

from core.config import SensorlogConfig
from ingest.chunk_source import ChunkSource
from ingest.serial_pipeline import SerialIngestPipeline
from store.telemetry_store import TelemetryStore
from tests.compression import zstd_stream
from tests.fixture_paths import fixture_path


@pytest.fixture
def store(tmp_path: Path) -> Iterator[TelemetryStore]:
    with TelemetryStore.open(tmp_path / "telemetry.db") as opened:
        opened.initialize_schema()
        yield opened


def _run(store: TelemetryStore, text: str, chunk_size: int = 1 << 16) -> SerialIngestPipeline:
    pipeline = SerialIngestPipeline(store, SensorlogConfig(chunk_size=chunk_size))
    pipeline.run(ChunkSource(zstd_stream(text), limit=chunk_size))
    return pipeline


def test_header_line_is_not_inserted(store: TelemetryStore) -> None:
    """Only the second stats line of a node becomes a row."""
    pipeline = _run(store, "1.0;nodeA;stats,10,200,1,2,3,4,5,6\n")
    assert store.count_rows("stats") == 0

    pipeline.ingest_batch(["2.0;nodeA;stats,11,210,1,2,3,4,5,6"])

    assert store.count_rows("stats") == 1
    assert pipeline.stats.headers == 1


def test_info_lines_are_always_inserted(store: TelemetryStore) -> None:
    """Two consecutive info lines from one node yield two rows."""
    _run(store, "1.0;nodeA;info,booted\n2.0;nodeA;info,ready\n")

    assert store.count_rows("info") == 2


def test_malformed_line_does_not_abort_chunk(store: TelemetryStore) -> None:
    """A valid line right after a malformed one is still inserted."""
    text = (
        "1.0;n;stats,h1,h2,h3,h4,h5,h6,h7,h8\n"
        "2.0;n;stats,abc,1,2,3,4,5,6,7\n"
        "3.0;n;stats,1,2,3,4,5,6,7,8\n"
    )

    pipeline = _run(store, text)

    assert store.count_rows("stats") == 1
    assert pipeline.stats.skipped == 1
    assert pipeline.stats.chunks == 1


def test_unparseable_serial_timestamp_skips_line(store: TelemetryStore) -> None:
    """Data lines need a numeric epoch timestamp."""
    pipeline = _run(store, "1.0;n;Hello\nyesterday;n;Goodbye\n")

    assert store.count_rows("output") == 1
    assert pipeline.stats.skipped == 1


def test_out_of_range_serial_timestamp_skips_only_that_line(store: TelemetryStore) -> None:
    """An epoch past the supported date range is skipped like any parse error."""
    pipeline = _run(store, "1.0;n;hello\n1e12;n;boom\n2.0;n;after\n")

    assert store.count_rows("output") == 2
    assert pipeline.stats.skipped == 1


def test_malformed_envelope_is_skipped(store: TelemetryStore) -> None:
    """Lines without three envelope fields are logged and skipped."""
    pipeline = _run(store, "garbage without delimiters\n1.0;n;ok\n")

    assert store.count_rows("output") == 1
    assert pipeline.stats.skipped == 1


def test_rows_keep_line_order_across_chunks(store: TelemetryStore) -> None:
    """Insertion order follows input order regardless of chunking."""
    lines = [f"{index}.0;n;message {index}" for index in range(20)]

    pipeline = _run(store, "\n".join(lines) + "\n", chunk_size=37)

    payloads = [row[2] for row in store.fetch_rows("output")]
    assert payloads == [f"message {index}" for index in range(20)]
    assert pipeline.stats.chunks > 1


def test_sample_fixture_counts(store: TelemetryStore) -> None:
    """The sample serial log exercises every classification path."""
    text = fixture_path("serial_sample.log").read_text(encoding="utf-8")

    pipeline = _run(store, text, chunk_size=64)

    stats = pipeline.stats
    assert (stats.lines, stats.inserted, stats.headers) == (15, 7, 6)
    assert (stats.skipped, stats.unknown_tags, stats.commit_failures) == (1, 1, 0)
    assert store.count_rows("stats") == 2
    assert store.count_rows("neighbor_stats") == 1
    assert store.count_rows("udp") == 1
    assert store.count_rows("output") == 1
    assert store.count_rows("info") == 2
    assert store.count_rows("rpl_stats_parent") == 0


def test_stats_row_values_are_normalized(store: TelemetryStore) -> None:
    """Stored rows carry the canonical UTC timestamp and parsed integers."""
    text = fixture_path("serial_sample.log").read_text(encoding="utf-8")

    _run(store, text)

    first_row = store.fetch_rows("stats")[0]
    assert first_row == (
        "2021-02-03 11:47:59.000000",
        "m3-1",
        2,
        10,
        1200,
        11,
        3,
        1310,
        10,
        1,
    )
