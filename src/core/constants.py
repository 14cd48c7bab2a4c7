"""Core constants used across Sensorlog modules.

This module centralizes delimiters, table names and formats.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

DEFAULT_CHUNK_SIZE = 100_000_000
DEFAULT_SERIAL_UTC_OFFSET_MINUTES = -120
DEFAULT_SERVER_UTC_OFFSET_MINUTES = 0
ENVELOPE_DELIMITER = ";"
FIELD_DELIMITER = ","
SERVER_DELIMITER = ","
LINE_DELIMITER = "\n"
TEXT_ENCODING = "utf-8"
SERVER_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
CANONICAL_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S.%f"
INFO_TAG = "info"
INFO_TABLE = "info"
OUTPUT_TABLE = "output"
SERVER_TABLE = "server"
TIMESTAMP_COLUMN = "Timestamp"
NODE_COLUMN = "Node"
