"""Destination table shapes.

Every record type maps to one table with a fixed, ordered column list.
Insert statements, DDL and field parsers are all derived from the
``TableShape`` descriptors declared here.
"""

from __future__ import annotations

from dataclasses import dataclass
import sqlite3
from typing import Literal, Mapping

from core.constants import (
    INFO_TABLE,
    NODE_COLUMN,
    OUTPUT_TABLE,
    SERVER_TABLE,
    TIMESTAMP_COLUMN,
)

FieldKind = Literal["text", "integer"]

_SQL_TYPES: Mapping[FieldKind, str] = {"text": "TEXT", "integer": "INTEGER"}


@dataclass(frozen=True)
class FieldSpec:
    """One positional payload field and its destination column."""

    name: str
    kind: FieldKind = "text"


@dataclass(frozen=True)
class TableShape:
    """Declarative description of a destination table.

    Attributes:
        table: Table name, equal to the record-type tag for serial data.
        fields: Ordered payload fields following the envelope columns.
        envelope_columns: Leading columns filled from the line envelope.
    """

    table: str
    fields: tuple[FieldSpec, ...]
    envelope_columns: tuple[str, ...] = (TIMESTAMP_COLUMN, NODE_COLUMN)

    @property
    def field_names(self) -> tuple[str, ...]:
        """Ordered payload column names."""
        return tuple(field_spec.name for field_spec in self.fields)

    @property
    def columns(self) -> tuple[str, ...]:
        """Full ordered column list of the table."""
        return self.envelope_columns + self.field_names


def _text(*names: str) -> tuple[FieldSpec, ...]:
    return tuple(FieldSpec(name, "text") for name in names)


def _integer(*names: str) -> tuple[FieldSpec, ...]:
    return tuple(FieldSpec(name, "integer") for name in names)


RECORD_SHAPES: Mapping[str, TableShape] = {
    shape.table: shape
    for shape in (
        TableShape(
            "neighbor_stats",
            _text("L2 address", "fresh", "etx")
            + _integer("sent", "received", "rssi (dBm)", "lqi", "avg tx time (µs)"),
        ),
        TableShape(
            "rpl_stats",
            _text("Packet Type", "Measurement Type")
            + _integer("RX unicast", "TX unicast", "RX multicast", "TX multicast"),
        ),
        TableShape(
            "rpl_stats_dodag",
            _text("Instance ID", "IPv6 Adress")
            + _integer("Rank")
            + _text("Role", "Prefix Information")
            + _integer(
                "Trickle Interval Size Min",
                "Trickle Interval Size Max",
                "Trickle Redundancy Constant",
                "Trickle Counter",
                "Trickle TC",
            ),
        ),
        TableShape(
            "rpl_stats_instance",
            _text(
                "Instance ID",
                "Interface ID",
                "Mode of Operation",
                "Objective Code Point",
                "Min Hop Rank Increase",
                "Max Rank Increase",
            ),
        ),
        TableShape("rpl_stats_parent", _text("Instance ID", "IPv6 Adress", "Rank")),
        TableShape(
            "rpl_status", _text("Type of table", "Index of the table", "Table status")
        ),
        TableShape(
            "stats",
            _integer(
                "layer",
                "rx packets",
                "rx bytes",
                "tx packets",
                "tx multicast packets",
                "tx bytes",
                "tx succeeded",
                "tx errors",
            ),
        ),
        TableShape(
            "udp",
            _text("payload size", "destination address", "destination port", "payload"),
        ),
    )
}

INFO_SHAPE = TableShape(INFO_TABLE, _text("Message"))
OUTPUT_SHAPE = TableShape(OUTPUT_TABLE, _text("Output Stdout"))
SERVER_SHAPE = TableShape(
    SERVER_TABLE,
    _text("IPv6 Adress") + _integer("receiver port") + _text("payload"),
    envelope_columns=(TIMESTAMP_COLUMN,),
)

ALL_SHAPES: tuple[TableShape, ...] = (
    INFO_SHAPE,
    OUTPUT_SHAPE,
    *RECORD_SHAPES.values(),
    SERVER_SHAPE,
)


def quote_identifier(name: str) -> str:
    """Quote a table or column name for SQLite."""
    return '"' + name.replace('"', '""') + '"'


def build_insert_statement(table: str, columns: tuple[str, ...]) -> str:
    """Build a parametrized single-row insert.

    Args:
        table: Destination table.
        columns: Ordered destination columns.

    Returns:
        SQL text with one ``?`` placeholder per column.
    """
    column_list = ", ".join(quote_identifier(column) for column in columns)
    placeholders = ", ".join("?" for _ in columns)
    return f"INSERT INTO {quote_identifier(table)} ({column_list}) VALUES ({placeholders})"


def build_create_statement(shape: TableShape) -> str:
    """Build the ``CREATE TABLE IF NOT EXISTS`` statement for a shape."""
    column_defs = [f"{quote_identifier(column)} TEXT" for column in shape.envelope_columns]
    for field_spec in shape.fields:
        column_defs.append(f"{quote_identifier(field_spec.name)} {_SQL_TYPES[field_spec.kind]}")
    joined = ",\n  ".join(column_defs)
    return f"CREATE TABLE IF NOT EXISTS {quote_identifier(shape.table)} (\n  {joined}\n)"


def create_tables(connection: sqlite3.Connection) -> None:
    """Create every destination table that does not exist yet.

    Args:
        connection: Open SQLite connection.
    """
    for shape in ALL_SHAPES:
        connection.execute(build_create_statement(shape))
