"""Reassembly of complete text lines across chunk boundaries.

Chunks are cut at arbitrary byte offsets, so a line (or a multi-byte
character) may straddle two chunks. Only text up to the last newline is
released; the trailing partial line is carried into the next chunk.
"""

from __future__ import annotations

import codecs
from typing import Iterator

from core.constants import LINE_DELIMITER, TEXT_ENCODING
from core.errors import SensorlogDecodeError
from ingest.chunk_source import ChunkSource


class LineReassembler:
    """Single-buffer line reassembler for one pipeline run.

    The buffer always holds zero or more complete lines followed by at
    most one partial line. A chunk without any newline only grows the
    buffer, so the chunk size must exceed the longest expected line.
    """

    def __init__(self) -> None:
        self._buffer = ""
        self._decoder = codecs.getincrementaldecoder(TEXT_ENCODING)()

    @property
    def pending(self) -> str:
        """Text retained after the last released newline."""
        return self._buffer

    def feed(self, chunk: bytes) -> list[str]:
        """Append a chunk and release every line it completes.

        Args:
            chunk: Raw decompressed bytes.

        Returns:
            Complete non-blank lines in input order.

        Raises:
            SensorlogDecodeError: If the bytes are not valid UTF-8.
        """
        self._buffer += self._decode(chunk, final=False)
        last_newline = self._buffer.rfind(LINE_DELIMITER)
        if last_newline < 0:
            return []
        complete = self._buffer[:last_newline]
        self._buffer = self._buffer[last_newline + 1 :]
        return _split_lines(complete)

    def drain(self) -> list[str]:
        """Release the final partial line at end of input.

        Returns:
            Remaining non-blank lines, usually zero or one.

        Raises:
            SensorlogDecodeError: If the input ended inside a character.
        """
        self._buffer += self._decode(b"", final=True)
        remaining = self._buffer
        self._buffer = ""
        return _split_lines(remaining)

    def _decode(self, chunk: bytes, final: bool) -> str:
        try:
            return self._decoder.decode(chunk, final=final)
        except UnicodeDecodeError as error:
            raise SensorlogDecodeError(
                f"Input is not valid {TEXT_ENCODING} text: {error.reason}."
            ) from error


def iter_line_batches(
    source: ChunkSource,
    reassembler: LineReassembler | None = None,
) -> Iterator[list[str]]:
    """Yield the complete lines of each chunk, then the drained tail.

    Args:
        source: Chunk source to exhaust.
        reassembler: Optional reassembler, a fresh one when omitted.

    Yields:
        One non-empty list of lines per chunk that completed any line,
        and a final list for a trailing line without newline.
    """
    reassembler = reassembler or LineReassembler()
    for chunk in source:
        lines = reassembler.feed(chunk)
        if lines:
            yield lines
    tail = reassembler.drain()
    if tail:
        yield tail


def _split_lines(text: str) -> list[str]:
    lines: list[str] = []
    for line in text.split(LINE_DELIMITER):
        if line.endswith("\r"):
            line = line[:-1]
        if line:
            lines.append(line)
    return lines
