"""Timestamp normalization for both input streams.

Serial lines carry epoch seconds, server lines carry a date-time string.
Both are converted to UTC and rendered in one canonical format.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
import math

from core.constants import CANONICAL_TIMESTAMP_FORMAT, SERVER_TIMESTAMP_FORMAT

_EPOCH = datetime(1970, 1, 1)
_MAX_FRACTION_DIGITS = 6


def normalize_serial_timestamp(raw: str, utc_offset_minutes: int) -> str:
    """Normalize an epoch-seconds serial timestamp.

    The epoch value is read as a wall clock in ``utc_offset_minutes``
    and converted to UTC.

    Args:
        raw: Epoch seconds with optional fraction, e.g. ``1612345678.25``.
        utc_offset_minutes: Offset of the recording wall clock.

    Returns:
        Canonical UTC timestamp text.

    Raises:
        ValueError: If ``raw`` is not a finite number or is out of the
            representable date range.
    """
    seconds = float(raw.strip())
    if not math.isfinite(seconds):
        raise ValueError(f"non-finite epoch timestamp: {raw!r}")
    try:
        wall_clock = _EPOCH + timedelta(seconds=seconds)
    except OverflowError as error:
        raise ValueError(f"epoch timestamp out of range: {raw!r}") from error
    return _to_canonical(wall_clock, utc_offset_minutes)


def normalize_server_timestamp(raw: str, utc_offset_minutes: int = 0) -> str:
    """Normalize a ``%Y-%m-%d %H:%M:%S[.fraction]`` server timestamp.

    Fractions finer than microseconds are truncated.

    Args:
        raw: Server timestamp text.
        utc_offset_minutes: Offset of the server clock.

    Returns:
        Canonical UTC timestamp text.

    Raises:
        ValueError: If ``raw`` does not match the server format or falls
            outside the representable date range in UTC.
    """
    whole, _, fraction = raw.strip().partition(".")
    parsed = datetime.strptime(whole, SERVER_TIMESTAMP_FORMAT)
    if fraction:
        if not (fraction.isascii() and fraction.isdigit()):
            raise ValueError(f"invalid fractional seconds in {raw!r}")
        digits = fraction[:_MAX_FRACTION_DIGITS].ljust(_MAX_FRACTION_DIGITS, "0")
        parsed = parsed.replace(microsecond=int(digits))
    return _to_canonical(parsed, utc_offset_minutes)


def _to_canonical(wall_clock: datetime, utc_offset_minutes: int) -> str:
    """Convert a naive wall clock in a fixed offset to canonical UTC text."""
    offset = timezone(timedelta(minutes=utc_offset_minutes))
    try:
        utc_value = wall_clock.replace(tzinfo=offset).astimezone(timezone.utc)
    except OverflowError as error:
        raise ValueError(
            f"timestamp out of range after UTC conversion: {wall_clock}"
        ) from error
    return utc_value.strftime(CANONICAL_TIMESTAMP_FORMAT)
