"""Sensorlog exception hierarchy.

This module defines the fatal errors that abort an ingestion run.
Per-line and per-record problems are reported as ``IngestFailure``
values instead (see ``core.types``) so a batch never aborts on them.
"""

from __future__ import annotations


class SensorlogError(Exception):
    """Base exception for all Sensorlog failures."""


class SensorlogConfigError(SensorlogError):
    """Raised for invalid runtime configuration."""


class SensorlogIoError(SensorlogError):
    """Raised when an input file cannot be opened or read."""


class SensorlogDecodeError(SensorlogError):
    """Raised when decompression or text decoding of an input fails."""


class SensorlogStoreError(SensorlogError):
    """Raised when the destination store cannot be opened or maintained."""
