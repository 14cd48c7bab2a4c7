"""Serial-stream ingestion.

Lines look like ``timestamp;source_id;tag,field_1,...`` for structured
records or ``timestamp;source_id;free text`` for raw process output.
"""

from __future__ import annotations

from core.config import SensorlogConfig
from core.timestamps import normalize_serial_timestamp
from core.types import FailureKind, IngestFailure, TableRecord
from ingest.batch_pipeline import ChunkedIngestPipeline
from ingest.record_classifier import HeaderLine, InfoLine, OutputLine, RecordClassifier
from ingest.record_router import RecordRouter, info_record, output_record
from store.telemetry_store import TelemetryStore


class SerialIngestPipeline(ChunkedIngestPipeline):
    """Pipeline for the per-node serial stream with header discovery."""

    stream_name = "serial"

    def __init__(
        self,
        store: TelemetryStore,
        config: SensorlogConfig,
        classifier: RecordClassifier | None = None,
        router: RecordRouter | None = None,
    ) -> None:
        super().__init__(store)
        self._utc_offset_minutes = config.serial_utc_offset_minutes
        self.classifier = classifier or RecordClassifier()
        self._router = router or RecordRouter()

    def process_line(self, line: str) -> TableRecord | IngestFailure | None:
        classification = self.classifier.classify(line)
        if isinstance(classification, IngestFailure):
            return classification
        if isinstance(classification, HeaderLine):
            self.stats.headers += 1
            return None
        envelope = classification.envelope
        try:
            timestamp = normalize_serial_timestamp(
                envelope.timestamp_raw, self._utc_offset_minutes
            )
        except ValueError as error:
            return IngestFailure(FailureKind.PARSE, f"unparseable timestamp: {error}")
        if isinstance(classification, OutputLine):
            return output_record(timestamp, envelope)
        if isinstance(classification, InfoLine):
            return info_record(timestamp, envelope)
        record = self._router.route(timestamp, envelope)
        if record is None:
            self.stats.unknown_tags += 1
        return record
