"""Chunk-scoped batch ingestion shared by both stream pipelines.

Each chunk's complete lines are processed inside one store transaction.
A line that fails to parse or insert is logged and skipped; the rest of
the chunk still commits.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import asdict
from typing import Sequence

from core.logging_config import get_logger
from core.types import IngestFailure, IngestStats, TableRecord
from ingest.chunk_source import ChunkSource
from ingest.line_reassembler import LineReassembler, iter_line_batches
from store.telemetry_store import TelemetryStore

_LOGGER = get_logger(__name__)


class ChunkedIngestPipeline(ABC):
    """Base runner owning the reassembly buffer and run statistics.

    Subclasses implement ``process_line`` for their stream format.
    """

    stream_name = "stream"

    def __init__(self, store: TelemetryStore) -> None:
        self._store = store
        self._reassembler = LineReassembler()
        self.stats = IngestStats()

    def run(self, source: ChunkSource) -> IngestStats:
        """Ingest every line of ``source``.

        Args:
            source: Chunk source to exhaust.

        Returns:
            Statistics for this run.

        Raises:
            SensorlogDecodeError: If the input cannot be decompressed or decoded.
            SensorlogIoError: If reading the input fails.
            SensorlogStoreError: If a transaction cannot be started.
        """
        _LOGGER.info("stream_ingest_started", stream=self.stream_name, chunk_limit=source.limit)
        for lines in iter_line_batches(source, self._reassembler):
            self.ingest_batch(lines)
        _LOGGER.info("stream_ingest_completed", stream=self.stream_name, **asdict(self.stats))
        return self.stats

    def ingest_batch(self, lines: Sequence[str]) -> None:
        """Process one chunk's lines in a single transaction, in order."""
        self.stats.chunks += 1
        inserted_before = self.stats.inserted
        with self._store.chunk_transaction() as transaction:
            for line in lines:
                self.stats.lines += 1
                self._ingest_line(line)
        if not transaction.committed:
            self.stats.commit_failures += 1
            _LOGGER.error(
                "chunk_not_committed",
                stream=self.stream_name,
                chunk=self.stats.chunks,
                lost_records=self.stats.inserted - inserted_before,
            )
            return
        _LOGGER.info(
            "chunk_committed",
            stream=self.stream_name,
            chunk=self.stats.chunks,
            line_count=len(lines),
            inserted=self.stats.inserted - inserted_before,
        )

    @abstractmethod
    def process_line(self, line: str) -> TableRecord | IngestFailure | None:
        """Turn one line into a record to insert.

        Returns:
            A record, a failure to log and skip, or ``None`` when the
            line is consumed without insertion.
        """

    def _ingest_line(self, line: str) -> None:
        outcome = self.process_line(line)
        if outcome is None:
            return
        if isinstance(outcome, IngestFailure):
            self._skip(outcome, line)
            return
        failure = self._store.insert(outcome)
        if failure is not None:
            self._skip(failure, line)
            return
        self.stats.inserted += 1

    def _skip(self, failure: IngestFailure, line: str) -> None:
        self.stats.skipped += 1
        _LOGGER.warning(
            "line_skipped",
            stream=self.stream_name,
            kind=failure.kind.value,
            cause=failure.cause,
            line=line,
        )
