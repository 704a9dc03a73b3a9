"""Serialize a :class:`TrackDatabase` back to ACMI text.

Entries of all objects (and one removal per soft-deleted object) are merged
into a single stream ordered by time, ties keeping the order in which they were
submitted to the database. A ``#<offset>`` marker is written whenever the
offset changes, starting from ``0``.
"""

from __future__ import annotations

import io
import math
import zipfile
from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import Any, TextIO

import numpy as np
from loguru import logger

from acmi_tracks.common.types import TRANSFORM_FIELD, AttributeValue, ObjectId
from acmi_tracks.config import AcmiConfig
from acmi_tracks.io.normalizer import CONTINUATION, FILE_TYPE, FILE_TYPE_PREFIX, FILE_VERSION_PREFIX
from acmi_tracks.io.records import (
    COORD_SEPARATOR,
    FIELD_SEPARATOR,
    FRAME_MARKER,
    REMOVAL_MARKER,
    VALUE_SEPARATOR,
    escape_name,
    escape_value,
)
from acmi_tracks.store import TrackDatabase, TrackEntry, TrackObject

ZIP_SUFFIX = ".zip.acmi"


def format_number(value: float) -> str:
    """Shortest positional text that parses back to ``value``; integral values drop ``.0``."""
    value = float(value)
    if math.isnan(value):
        return ""
    return np.format_float_positional(value, trim="-")


def _continue_lines(text: str) -> str:
    # CR counts as a line break on the wire, every break becomes a continuation
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    return text.replace("\n", CONTINUATION + "\n")


def format_value(name: str, value: AttributeValue) -> str:
    """Render one attribute value with wire escaping applied."""
    if isinstance(value, tuple):
        return COORD_SEPARATOR.join("" if c is None else format_number(c) for c in value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return format_number(value)
    return _continue_lines(escape_value(str(value)))


def format_update(object_id: ObjectId, attributes: Mapping[str, AttributeValue]) -> list[str]:
    """Physical lines of one update record."""
    parts = [f"{object_id:x}"]
    for name, value in attributes.items():
        wire_name = _continue_lines(escape_name(name))
        parts.append(f"{wire_name}{VALUE_SEPARATOR}{format_value(name, value)}")
    return FIELD_SEPARATOR.join(parts).split("\n")


def _merged_events(database: TrackDatabase) -> list[tuple[float, float, TrackObject, Any]]:
    events: list[tuple[float, float, TrackObject, TrackEntry | None]] = []
    for obj in database.lifetimes():
        for entry in obj.entries:
            events.append((entry.time, entry.seq, obj, entry))
        if obj.removed:
            seq = obj.end_seq if obj.end_seq is not None else math.inf
            events.append((obj.end, seq, obj, None))
    events.sort(key=lambda event: (event[0], event[1]))
    return events


def iter_acmi_lines(database: TrackDatabase, config: AcmiConfig | None = None) -> Iterator[str]:
    """Yield the physical lines of the recording, header first."""
    config = config or AcmiConfig()
    yield f"{FILE_TYPE_PREFIX}{FILE_TYPE}"
    yield f"{FILE_VERSION_PREFIX}{config.file_version}"

    current_time = 0.0
    for time, _seq, obj, entry in _merged_events(database):
        if time != current_time:
            current_time = time
            yield f"{FRAME_MARKER}{format_number(time)}"
        if entry is None:
            yield f"{REMOVAL_MARKER}{obj.id:x}"
        else:
            yield from format_update(obj.id, entry.attributes)


def write_acmi(database: TrackDatabase, sink: TextIO, config: AcmiConfig | None = None) -> int:
    """Write the recording to a text sink and flush it; returns the line count."""
    count = 0
    for line in iter_acmi_lines(database, config):
        sink.write(line + "\n")
        count += 1
    sink.flush()
    return count


def dumps(database: TrackDatabase, config: AcmiConfig | None = None) -> str:
    """Serialize the recording to a string."""
    buffer = io.StringIO()
    write_acmi(database, buffer, config)
    return buffer.getvalue()


def save_acmi(path: Path | str, database: TrackDatabase, config: AcmiConfig | None = None) -> Path:
    """Write the recording to ``path``; a ``.zip.acmi`` suffix selects a zip archive."""
    config = config or AcmiConfig()
    path = Path(path)
    if path.name.endswith(ZIP_SUFFIX):
        member = path.name[: -len(ZIP_SUFFIX)] + ".txt.acmi"
        with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            with archive.open(member, "w") as raw:
                with io.TextIOWrapper(raw, encoding=config.encoding, newline="\n") as text:
                    count = write_acmi(database, text, config)
    else:
        with open(path, "w", encoding=config.encoding, newline="\n") as f:
            count = write_acmi(database, f, config)
    logger.info("Saved {} lines for {} objects to {}", count, len(database), path)
    return path
