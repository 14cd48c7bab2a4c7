"""Shared typed models.

This module defines the data models exchanged between the reader,
classifier, router and store layers to keep interfaces explicit.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class FailureKind(str, Enum):
    """Kinds of recoverable failure reported for a single line or record."""

    IO = "io"
    DECODE = "decode"
    PARSE = "parse"
    PERSISTENCE = "persistence"


@dataclass(frozen=True)
class IngestFailure:
    """Recoverable failure for one line or record.

    Attributes:
        kind: Failure category.
        cause: Human-readable description of what went wrong.
        line: Offending input line, when known.
    """

    kind: FailureKind
    cause: str
    line: str | None = None


@dataclass(frozen=True)
class Envelope:
    """Outer fields of one serial-stream line.

    Attributes:
        timestamp_raw: Timestamp text exactly as found in the line.
        source_id: Identifier of the emitting node.
        payload: Everything after the second envelope delimiter.
        fields: Payload split on the field delimiter.
    """

    timestamp_raw: str
    source_id: str
    payload: str
    fields: tuple[str, ...]


@dataclass(frozen=True)
class TableRecord:
    """Typed row bound for a single-row insert.

    Attributes:
        table: Destination table name.
        columns: Ordered destination column names.
        values: Values aligned with ``columns``.
    """

    table: str
    columns: tuple[str, ...]
    values: tuple[object, ...]


@dataclass
class IngestStats:
    """Counters collected over one pipeline run."""

    chunks: int = 0
    lines: int = 0
    inserted: int = 0
    headers: int = 0
    skipped: int = 0
    unknown_tags: int = 0
    commit_failures: int = 0


@dataclass(frozen=True)
class IngestOptions:
    """Ingest command options.

    Attributes:
        database_path: Destination SQLite database path.
        serial_path: Zstandard-compressed serial stream path.
        server_path: Zstandard-compressed server stream path.
        vacuum: Compact the database after both streams are loaded.
    """

    database_path: Path
    serial_path: Path
    server_path: Path
    vacuum: bool = True


@dataclass(frozen=True)
class IngestReport:
    """Statistics for a full two-stream ingestion run."""

    serial: IngestStats = field(default_factory=IngestStats)
    server: IngestStats = field(default_factory=IngestStats)
