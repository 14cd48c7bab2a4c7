"""Ingest orchestration for a full testbed run.

This module opens the destination store, loads the serial stream and
then the server stream, and compacts the store when both are done.
"""

from __future__ import annotations

from dataclasses import asdict
from pathlib import Path

from core.config import SensorlogConfig
from core.logging_config import get_logger
from core.types import IngestOptions, IngestReport, IngestStats
from ingest.batch_pipeline import ChunkedIngestPipeline
from ingest.chunk_source import ChunkSource
from ingest.serial_pipeline import SerialIngestPipeline
from ingest.server_pipeline import ServerIngestPipeline
from store.telemetry_store import TelemetryStore

_LOGGER = get_logger(__name__)


class TelemetryIngestRunner:
    """Sequential runner for the serial and server pipelines.

    Both pipelines share the store handle and never run concurrently.
    """

    def __init__(self, options: IngestOptions, config: SensorlogConfig) -> None:
        self._options = options
        self._config = config

    def run(self) -> IngestReport:
        """Execute the full ingestion and return per-stream statistics."""
        with TelemetryStore.open(self._options.database_path) as store:
            store.initialize_schema()
            serial_stats = self._ingest_stream(
                SerialIngestPipeline(store, self._config), self._options.serial_path
            )
            server_stats = self._ingest_stream(
                ServerIngestPipeline(store, self._config), self._options.server_path
            )
            if self._options.vacuum:
                store.vacuum()
        report = IngestReport(serial=serial_stats, server=server_stats)
        _log_ingest_completion(self._options, report)
        return report

    def _ingest_stream(self, pipeline: ChunkedIngestPipeline, input_path: Path) -> IngestStats:
        _LOGGER.info("input_selected", stream=pipeline.stream_name, input_path=str(input_path))
        with ChunkSource.open(input_path, self._config.chunk_size) as source:
            return pipeline.run(source)


def ingest_testbed(options: IngestOptions, config: SensorlogConfig) -> IngestReport:
    """Load both telemetry streams into the destination store.

    Args:
        options: Ingest request options.
        config: Runtime configuration.

    Returns:
        Statistics for the serial and server streams.

    Raises:
        SensorlogIoError: If an input file cannot be opened or read.
        SensorlogDecodeError: If an input cannot be decompressed or decoded.
        SensorlogStoreError: If the destination store cannot be opened.
    """
    runner = TelemetryIngestRunner(options, config)
    return runner.run()


def initialize_store(database_path: Path) -> None:
    """Create the destination store and its tables without ingesting."""
    with TelemetryStore.open(database_path) as store:
        store.initialize_schema()


def _log_ingest_completion(options: IngestOptions, report: IngestReport) -> None:
    """Log run completion with contextual metadata."""
    _LOGGER.info(
        "ingest_completed",
        database_path=str(options.database_path),
        serial_path=str(options.serial_path),
        server_path=str(options.server_path),
        vacuumed=options.vacuum,
        serial=asdict(report.serial),
        server=asdict(report.server),
    )
