"""Bounded-size chunk reader over Zstandard-compressed inputs.

This module hides decompression behind ``next_chunk`` so the pipelines
only ever hold one chunk of decompressed bytes in memory.
"""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO, Iterator

import zstandard

from core.errors import SensorlogDecodeError, SensorlogIoError


class ChunkSource:
    """Streaming decompressor yielding chunks of at most ``limit`` bytes."""

    def __init__(self, stream: BinaryIO, limit: int, name: str = "<stream>") -> None:
        """Wrap a compressed binary stream.

        Args:
            stream: Readable binary stream of Zstandard frames.
            limit: Maximum number of decompressed bytes per chunk.
            name: Label used in error messages.
        """
        if limit <= 0:
            raise ValueError(f"chunk limit must be positive, got {limit}")
        self._stream = stream
        self._limit = limit
        self._name = name
        self._reader = zstandard.ZstdDecompressor().stream_reader(
            stream, read_across_frames=True
        )

    @classmethod
    def open(cls, path: Path, limit: int) -> "ChunkSource":
        """Open a compressed file.

        Args:
            path: Zstandard-compressed input file.
            limit: Maximum number of decompressed bytes per chunk.

        Returns:
            Chunk source owning the file handle.

        Raises:
            SensorlogIoError: If the file cannot be opened.
        """
        try:
            handle = path.open("rb")
        except OSError as error:
            raise SensorlogIoError(
                f"Failed to open input {path}: {error.strerror or error}. "
                "Provide an existing, readable compressed file."
            ) from error
        return cls(handle, limit, name=str(path))

    @property
    def limit(self) -> int:
        return self._limit

    def next_chunk(self) -> bytes:
        """Read the next chunk of decompressed bytes.

        Returns:
            Between 1 and ``limit`` bytes, or ``b""`` at end of stream.
            Fewer than ``limit`` bytes are returned only at end of stream.

        Raises:
            SensorlogDecodeError: If the compressed data is corrupt.
            SensorlogIoError: If reading the underlying file fails.
        """
        parts: list[bytes] = []
        remaining = self._limit
        while remaining > 0:
            data = self._read(remaining)
            if not data:
                break
            parts.append(data)
            remaining -= len(data)
        return b"".join(parts)

    def __iter__(self) -> Iterator[bytes]:
        while True:
            chunk = self.next_chunk()
            if not chunk:
                return
            yield chunk

    def close(self) -> None:
        """Close the decompressor and the underlying stream."""
        self._reader.close()
        self._stream.close()

    def __enter__(self) -> "ChunkSource":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _read(self, size: int) -> bytes:
        try:
            return self._reader.read(size)
        except zstandard.ZstdError as error:
            raise SensorlogDecodeError(
                f"Failed to decompress {self._name}: {error}. "
                "The input is not a valid Zstandard stream."
            ) from error
        except OSError as error:
            raise SensorlogIoError(f"Failed to read {self._name}: {error}.") from error
