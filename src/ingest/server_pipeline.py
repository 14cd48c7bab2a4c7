"""Server-stream ingestion.

The server stream is a CSV-like log of delivery confirmations:
``timestamp,ipv6_address,port,payload``. Its first line is a column
header and is discarded.
"""

from __future__ import annotations

from core.config import SensorlogConfig
from core.constants import SERVER_DELIMITER
from core.timestamps import normalize_server_timestamp
from core.types import FailureKind, IngestFailure, TableRecord
from ingest.batch_pipeline import ChunkedIngestPipeline
from ingest.record_router import parse_integer
from store.schema import SERVER_SHAPE
from store.telemetry_store import TelemetryStore

_SERVER_FIELD_COUNT = 4


class ServerIngestPipeline(ChunkedIngestPipeline):
    """Pipeline for the server stream, without per-source state."""

    stream_name = "server"

    def __init__(self, store: TelemetryStore, config: SensorlogConfig) -> None:
        super().__init__(store)
        self._utc_offset_minutes = config.server_utc_offset_minutes
        self._header_pending = True

    def process_line(self, line: str) -> TableRecord | IngestFailure | None:
        if self._header_pending:
            self._header_pending = False
            self.stats.headers += 1
            return None
        parts = line.split(SERVER_DELIMITER, _SERVER_FIELD_COUNT - 1)
        if len(parts) != _SERVER_FIELD_COUNT:
            return IngestFailure(
                FailureKind.PARSE,
                f"expected {_SERVER_FIELD_COUNT} fields, got {len(parts)}",
            )
        timestamp_raw, address, port_raw, payload = parts
        try:
            timestamp = normalize_server_timestamp(timestamp_raw, self._utc_offset_minutes)
        except ValueError as error:
            return IngestFailure(FailureKind.PARSE, f"unparseable timestamp: {error}")
        try:
            port = parse_integer(port_raw)
        except ValueError as error:
            return IngestFailure(FailureKind.PARSE, f"invalid receiver port: {error}")
        return TableRecord(
            table=SERVER_SHAPE.table,
            columns=SERVER_SHAPE.columns,
            values=(timestamp, address, port, payload),
        )
