"""Runtime configuration model for Sensorlog.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os

from core.constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_SERIAL_UTC_OFFSET_MINUTES,
    DEFAULT_SERVER_UTC_OFFSET_MINUTES,
)
from core.errors import SensorlogConfigError

_MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True)
class SensorlogConfig:
    """Validated runtime configuration.

    Attributes:
        chunk_size: Maximum number of decompressed bytes read per chunk.
            Must stay well above the longest input line.
        serial_utc_offset_minutes: UTC offset of the wall clock the serial
            epoch timestamps were recorded in.
        server_utc_offset_minutes: UTC offset of the server timestamps.
    """

    chunk_size: int = DEFAULT_CHUNK_SIZE
    serial_utc_offset_minutes: int = DEFAULT_SERIAL_UTC_OFFSET_MINUTES
    server_utc_offset_minutes: int = DEFAULT_SERVER_UTC_OFFSET_MINUTES

    @classmethod
    def from_env(cls) -> "SensorlogConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            SensorlogConfigError: If environment values are invalid.
        """
        chunk_size = _parse_int_env("SENSORLOG_CHUNK_SIZE", DEFAULT_CHUNK_SIZE)
        if chunk_size <= 0:
            raise SensorlogConfigError(
                f"Invalid SENSORLOG_CHUNK_SIZE value: expected a positive integer, "
                f"got {chunk_size}. Set SENSORLOG_CHUNK_SIZE to a byte count above zero."
            )
        return cls(
            chunk_size=chunk_size,
            serial_utc_offset_minutes=_parse_offset_env(
                "SENSORLOG_SERIAL_UTC_OFFSET_MINUTES", DEFAULT_SERIAL_UTC_OFFSET_MINUTES
            ),
            server_utc_offset_minutes=_parse_offset_env(
                "SENSORLOG_SERVER_UTC_OFFSET_MINUTES", DEFAULT_SERVER_UTC_OFFSET_MINUTES
            ),
        )


def _parse_int_env(name: str, default: int) -> int:
    """Parse an integer environment value.

    Args:
        name: Environment variable name.
        default: Value used when the variable is unset.

    Returns:
        Parsed integer.

    Raises:
        SensorlogConfigError: If value cannot be parsed into int.
    """
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError as error:
        raise SensorlogConfigError(
            f"Invalid {name} value: expected integer, got '{raw_value}'. "
            f"Set {name} to a numeric value."
        ) from error


def _parse_offset_env(name: str, default: int) -> int:
    """Parse a UTC offset in minutes, bounded to less than one day."""
    offset = _parse_int_env(name, default)
    if abs(offset) >= _MINUTES_PER_DAY:
        raise SensorlogConfigError(
            f"Invalid {name} value: {offset} minutes is not a valid UTC offset. "
            f"Use a value strictly between -{_MINUTES_PER_DAY} and {_MINUTES_PER_DAY}."
        )
    return offset
