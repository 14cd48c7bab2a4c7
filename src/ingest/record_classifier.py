"""Header/data disambiguation for the serial stream.

Nodes print the header of each record type once per session before
streaming rows of that type, and nothing else marks a line as a header.
The first line of every (source, tag) pair is therefore treated as the
header declaration and every later one as data. ``info`` lines are
always data.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Union

from core.constants import ENVELOPE_DELIMITER, FIELD_DELIMITER, INFO_TAG
from core.logging_config import get_logger
from core.types import Envelope, FailureKind, IngestFailure
from store.schema import INFO_SHAPE, RECORD_SHAPES

_LOGGER = get_logger(__name__)

# Seeded column names for tags whose header line is usually not captured.
_KNOWN_HEADER_COLUMNS: Mapping[str, tuple[str, ...]] = {
    INFO_TAG: INFO_SHAPE.field_names,
    "rpl_stats_parent": RECORD_SHAPES["rpl_stats_parent"].field_names,
}


@dataclass(frozen=True)
class OutputLine:
    """Free-form process output without any field delimiter."""

    envelope: Envelope


@dataclass(frozen=True)
class InfoLine:
    """Informational message, inserted on every occurrence."""

    envelope: Envelope


@dataclass(frozen=True)
class HeaderLine:
    """First line of a (source, tag) pair, consumed without insertion."""

    envelope: Envelope
    columns: tuple[str, ...]


@dataclass(frozen=True)
class DataLine:
    """Data row for a tag whose header was already seen for this source."""

    envelope: Envelope

    @property
    def tag(self) -> str:
        return self.envelope.fields[0]


Classification = Union[OutputLine, InfoLine, HeaderLine, DataLine]


class HeaderState:
    """Set of (source, tag) pairs whose header has been seen.

    The set only grows for the lifetime of one serial ingestion run.
    """

    def __init__(self) -> None:
        self._seen: set[tuple[str, str]] = set()

    def __contains__(self, key: object) -> bool:
        return key in self._seen

    def __len__(self) -> int:
        return len(self._seen)

    def add(self, source_id: str, tag: str) -> bool:
        """Record a pair, returning whether it was new."""
        key = (source_id, tag)
        if key in self._seen:
            return False
        self._seen.add(key)
        return True


def split_envelope(line: str) -> Envelope | IngestFailure:
    """Split a serial line into its envelope and payload fields.

    Args:
        line: ``timestamp;source_id;payload`` text.

    Returns:
        Parsed envelope, or a parse failure when fields are missing.
    """
    parts = line.split(ENVELOPE_DELIMITER, 2)
    if len(parts) != 3:
        return IngestFailure(
            FailureKind.PARSE,
            f"expected 3 '{ENVELOPE_DELIMITER}'-separated envelope fields, got {len(parts)}",
            line,
        )
    timestamp_raw, source_id, payload = parts
    return Envelope(
        timestamp_raw=timestamp_raw,
        source_id=source_id,
        payload=payload,
        fields=tuple(payload.split(FIELD_DELIMITER)),
    )


class RecordClassifier:
    """Stateful classifier for one serial ingestion run."""

    def __init__(self, header_state: HeaderState | None = None) -> None:
        self.header_state = header_state if header_state is not None else HeaderState()
        self._declared_columns: dict[str, tuple[str, ...]] = dict(_KNOWN_HEADER_COLUMNS)

    @property
    def declared_columns(self) -> Mapping[str, tuple[str, ...]]:
        """Column names declared by the first header seen for each tag."""
        return self._declared_columns

    def classify(self, line: str) -> Classification | IngestFailure:
        """Classify one complete serial line.

        Args:
            line: Complete input line.

        Returns:
            Output, info, header or data classification, or a parse
            failure for a malformed envelope.
        """
        envelope = split_envelope(line)
        if isinstance(envelope, IngestFailure):
            return envelope
        if len(envelope.fields) == 1:
            return OutputLine(envelope)
        tag = envelope.fields[0]
        if tag == INFO_TAG:
            self.header_state.add(envelope.source_id, tag)
            return InfoLine(envelope)
        if (envelope.source_id, tag) in self.header_state:
            return DataLine(envelope)
        self.header_state.add(envelope.source_id, tag)
        columns = envelope.fields[1:]
        self._declare_columns(envelope.source_id, tag, columns)
        return HeaderLine(envelope, columns)

    def _declare_columns(self, source_id: str, tag: str, columns: tuple[str, ...]) -> None:
        _LOGGER.info("header_registered", source_id=source_id, tag=tag, column_count=len(columns))
        if tag in self._declared_columns:
            return
        self._declared_columns[tag] = columns
        shape = RECORD_SHAPES.get(tag)
        if shape is not None and len(shape.fields) != len(columns):
            _LOGGER.warning(
                "header_shape_mismatch",
                tag=tag,
                declared_columns=list(columns),
                expected_count=len(shape.fields),
            )
