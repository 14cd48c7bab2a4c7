"""Public SDK surface for Sensorlog.

This module provides a stable import path for library users.
It re-exports the ingest entry points and typed option models.
"""

from __future__ import annotations

from core.config import SensorlogConfig
from core.errors import (
    SensorlogConfigError,
    SensorlogDecodeError,
    SensorlogError,
    SensorlogIoError,
    SensorlogStoreError,
)
from core.types import FailureKind, IngestFailure, IngestOptions, IngestReport, IngestStats
from ingest.chunk_source import ChunkSource
from ingest.pipeline import ingest_testbed, initialize_store
from ingest.serial_pipeline import SerialIngestPipeline
from ingest.server_pipeline import ServerIngestPipeline
from store.telemetry_store import TelemetryStore

__all__ = [
    "ChunkSource",
    "FailureKind",
    "IngestFailure",
    "IngestOptions",
    "IngestReport",
    "IngestStats",
    "SensorlogConfig",
    "SensorlogConfigError",
    "SensorlogDecodeError",
    "SensorlogError",
    "SensorlogIoError",
    "SensorlogStoreError",
    "SerialIngestPipeline",
    "ServerIngestPipeline",
    "TelemetryStore",
    "ingest_testbed",
    "initialize_store",
]
