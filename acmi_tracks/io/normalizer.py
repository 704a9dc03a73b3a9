"""Join physical ACMI lines into logical records.

Rules, applied per physical line:
    - blank lines are dropped
    - the ``FileType=`` / ``FileVersion=`` header lines are dropped wherever they appear
    - a line ending in an unescaped ``\\`` continues on the next physical line;
      the marker is removed and the pieces are joined with a newline
    - logical records starting with ``//`` are comments and dropped

A line that is part of a pending continuation is never treated as blank or as
a header: an empty continuation line closes the record with an empty last
piece.
"""

from __future__ import annotations

from collections.abc import AsyncIterable, AsyncIterator, Iterable, Iterator
from dataclasses import dataclass

from loguru import logger

FILE_TYPE_PREFIX = "FileType="
FILE_VERSION_PREFIX = "FileVersion="
FILE_TYPE = "text/acmi/tacview"
CONTINUATION = "\\"
COMMENT = "//"


@dataclass(frozen=True, slots=True)
class LogicalRecord:
    """One logical record and the physical line number where it started."""

    text: str
    line_number: int


def is_header_line(line: str) -> bool:
    """Return True for the file type and file version declarators."""
    return line.startswith((FILE_TYPE_PREFIX, FILE_VERSION_PREFIX))


def ends_with_continuation(line: str) -> bool:
    """Return True when the line ends in an odd run of backslashes."""
    trailing = len(line) - len(line.rstrip(CONTINUATION))
    return trailing % 2 == 1


class LineNormalizer:
    """Stateful accumulator turning physical lines into :class:`LogicalRecord` items.

    Feed lines one at a time with :meth:`feed`; call :meth:`finish` once the
    source is exhausted to discard an unterminated continuation.
    """

    def __init__(self):
        self._pieces: list[str] = []
        self._line_number = 0
        self._record_start = 0

    @property
    def line_number(self) -> int:
        """Number of physical lines consumed so far."""
        return self._line_number

    @property
    def pending(self) -> bool:
        """True while a continuation is waiting for its closing line."""
        return bool(self._pieces)

    def feed(self, line: str) -> LogicalRecord | None:
        """Consume one physical line and return a completed record, if any."""
        self._line_number += 1
        line = line.rstrip("\r\n")

        if not self._pieces:
            line = line.lstrip("\ufeff")
            if not line.strip() or is_header_line(line):
                return None
            self._record_start = self._line_number

        if ends_with_continuation(line):
            self._pieces.append(line[:-1])
            return None

        self._pieces.append(line)
        text = "\n".join(self._pieces)
        self._pieces = []

        if text.startswith(COMMENT):
            return None
        return LogicalRecord(text=text, line_number=self._record_start)

    def finish(self) -> None:
        """Drop a continuation left open at the end of the stream."""
        if self._pieces:
            logger.warning(
                "Discarding unterminated record starting at line {}",
                self._record_start,
            )
            self._pieces = []


def iter_logical_records(lines: Iterable[str]) -> Iterator[LogicalRecord]:
    """Lazily normalize a one-pass sequence of physical lines."""
    normalizer = LineNormalizer()
    for line in lines:
        record = normalizer.feed(line)
        if record is not None:
            yield record
    normalizer.finish()


async def aiter_logical_records(lines: AsyncIterable[str]) -> AsyncIterator[LogicalRecord]:
    """Async counterpart of :func:`iter_logical_records`."""
    normalizer = LineNormalizer()
    async for line in lines:
        record = normalizer.feed(line)
        if record is not None:
            yield record
    normalizer.finish()
