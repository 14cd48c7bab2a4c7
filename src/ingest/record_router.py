"""Record-type routing and field parsing.

Every tag maps to a ``TableShape``; one generic parser turns positional
payload fields into a typed row for any shape. Failures are returned as
values so the caller can skip the line and continue the batch.
"""

from __future__ import annotations

import re
from typing import Mapping, Sequence

from core.logging_config import get_logger
from core.types import Envelope, FailureKind, IngestFailure, TableRecord
from store.schema import INFO_SHAPE, OUTPUT_SHAPE, RECORD_SHAPES, TableShape

_LOGGER = get_logger(__name__)

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")


def parse_integer(raw: str) -> int:
    """Parse an integer field, ignoring embedded whitespace.

    Nodes may group digits with spaces, e.g. ``"12 345"``.

    Raises:
        ValueError: If the value is not a plain ASCII decimal 64-bit integer.
    """
    compact = "".join(raw.split())
    if _INTEGER_PATTERN.fullmatch(compact) is None:
        raise ValueError(f"not a decimal integer: {raw!r}")
    value = int(compact)
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise ValueError(f"integer out of 64-bit range: {raw!r}")
    return value


def parse_fields(shape: TableShape, values: Sequence[str]) -> tuple[object, ...]:
    """Convert positional payload values according to a shape.

    Extra trailing values are ignored.

    Args:
        shape: Destination table shape.
        values: Payload fields following the tag.

    Returns:
        Typed values aligned with ``shape.fields``.

    Raises:
        ValueError: If a value is missing or not numeric where required.
    """
    if len(values) < len(shape.fields):
        raise ValueError(
            f"{shape.table} expects {len(shape.fields)} fields, got {len(values)}"
        )
    parsed: list[object] = []
    for field_spec, raw in zip(shape.fields, values):
        if field_spec.kind == "integer":
            try:
                parsed.append(parse_integer(raw))
            except ValueError as error:
                raise ValueError(
                    f"field '{field_spec.name}' is not an integer: {raw!r}"
                ) from error
        else:
            parsed.append(raw)
    return tuple(parsed)


def payload_record(shape: TableShape, timestamp: str, envelope: Envelope) -> TableRecord:
    """Build a row storing the whole payload as its single field."""
    return TableRecord(
        table=shape.table,
        columns=shape.columns,
        values=(timestamp, envelope.source_id, envelope.payload),
    )


def info_record(timestamp: str, envelope: Envelope) -> TableRecord:
    """Build an ``info`` row from an info line."""
    return payload_record(INFO_SHAPE, timestamp, envelope)


def output_record(timestamp: str, envelope: Envelope) -> TableRecord:
    """Build an ``output`` row from a free-form output line."""
    return payload_record(OUTPUT_SHAPE, timestamp, envelope)


class RecordRouter:
    """Static mapping from record-type tag to table shape."""

    def __init__(self, shapes: Mapping[str, TableShape] = RECORD_SHAPES) -> None:
        self._shapes = shapes

    def knows(self, tag: str) -> bool:
        return tag in self._shapes

    def route(self, timestamp: str, envelope: Envelope) -> TableRecord | IngestFailure | None:
        """Parse a data row into a typed record for its tag's table.

        Args:
            timestamp: Canonical timestamp of the line.
            envelope: Envelope whose first field is the tag.

        Returns:
            The typed record, a parse failure, or ``None`` for an
            unknown tag.
        """
        tag = envelope.fields[0]
        shape = self._shapes.get(tag)
        if shape is None:
            _LOGGER.info("unknown_record_tag", tag=tag, source_id=envelope.source_id)
            return None
        try:
            values = parse_fields(shape, envelope.fields[1:])
        except ValueError as error:
            return IngestFailure(FailureKind.PARSE, str(error))
        return TableRecord(
            table=shape.table,
            columns=shape.columns,
            values=(timestamp, envelope.source_id, *values),
        )
