"""Classify logical ACMI records and tokenize object updates.

Record kinds:
    ``#<offset>``                 frame marker, sets the current time offset
    ``-<hexId>``                  object removal
    ``<hexId>,<name>=<value>,...`` object update

Escaping grammar inside a record: ``\\,`` is a literal comma, ``\\=`` a literal
equals sign and ``\\\\`` a literal backslash. Any other backslash is kept as
is. Line continuations are resolved earlier by the normalizer and show up here
as newline characters.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Union

from loguru import logger

from acmi_tracks.common.errors import AcmiParseError
from acmi_tracks.common.types import (
    COORD_ARITIES,
    TRANSFORM_FIELD,
    Attributes,
    Coords,
    ObjectId,
)

FRAME_MARKER = "#"
REMOVAL_MARKER = "-"
FIELD_SEPARATOR = ","
VALUE_SEPARATOR = "="
COORD_SEPARATOR = "|"
ESCAPE = "\\"

_HEX_PREFIX = re.compile(r"[0-9A-Fa-f]+")
_OFFSET = re.compile(r"\d+(?:\.\d*)?|\.\d+")
_ESCAPED = re.compile(r"\\([,=\\])")


@dataclass(frozen=True, slots=True)
class FrameMarker:
    """New current time offset, in seconds."""

    offset: float


@dataclass(frozen=True, slots=True)
class ObjectRemoval:
    """Soft delete of an object at the current time offset."""

    object_id: ObjectId


@dataclass(frozen=True, slots=True)
class ObjectUpdate:
    """Sparse attribute delta for one object.

    ``rejected`` lists field names that were parsed but not retained
    (coordinate tuples of an unsupported arity).
    """

    object_id: ObjectId
    fields: Attributes = field(default_factory=dict)
    rejected: tuple[str, ...] = ()


Record = Union[FrameMarker, ObjectRemoval, ObjectUpdate]


def split_unescaped(text: str, separator: str) -> list[str]:
    """Split ``text`` on every ``separator`` not preceded by an escape.

    Escape sequences are kept verbatim in the returned pieces.
    """
    pieces: list[str] = []
    current: list[str] = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == ESCAPE and i + 1 < len(text):
            current.append(text[i : i + 2])
            i += 2
            continue
        if ch == separator:
            pieces.append("".join(current))
            current = []
        else:
            current.append(ch)
        i += 1
    pieces.append("".join(current))
    return pieces


def partition_unescaped(text: str, separator: str) -> tuple[str, str] | None:
    """Split ``text`` on the first unescaped ``separator``; None when there is none."""
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == ESCAPE:
            i += 2
            continue
        if ch == separator:
            return text[:i], text[i + 1 :]
        i += 1
    return None


def unescape(raw: str) -> str:
    """Resolve ``\\,``, ``\\=`` and ``\\\\``; other backslashes stay literal."""
    return _ESCAPED.sub(r"\1", raw)


def escape_value(text: str) -> str:
    """Inverse of :func:`unescape` for field values."""
    return text.replace(ESCAPE, ESCAPE * 2).replace(FIELD_SEPARATOR, ESCAPE + FIELD_SEPARATOR)


def escape_name(text: str) -> str:
    """Inverse of :func:`unescape` for field names, which also protect ``=``."""
    return escape_value(text).replace(VALUE_SEPARATOR, ESCAPE + VALUE_SEPARATOR)


def parse_coordinates(text: str) -> Coords | None:
    """Parse a pipe separated coordinate tuple.

    Returns None for an arity other than 3, 5 or 9. Empty or non-numeric
    components are kept as None so the arity survives.
    """
    parts = text.split(COORD_SEPARATOR)
    if len(parts) not in COORD_ARITIES:
        return None
    coords: list[float | None] = []
    for part in parts:
        try:
            value = float(part)
        except ValueError:
            coords.append(None)
            continue
        coords.append(None if math.isnan(value) else value)
    return tuple(coords)


def parse_object_id(token: str, record: str, line_number: int | None = None) -> ObjectId:
    """Parse a hexadecimal object id."""
    if not _HEX_PREFIX.fullmatch(token):
        raise AcmiParseError(f"Malformed object id {token!r}", record, line_number)
    return int(token, 16)


def parse_frame_marker(text: str, line_number: int | None = None) -> FrameMarker:
    """Parse ``#<offset>`` into a :class:`FrameMarker`."""
    offset = text[len(FRAME_MARKER) :].strip()
    if not _OFFSET.fullmatch(offset):
        raise AcmiParseError(f"Malformed frame marker {text!r}", text, line_number)
    return FrameMarker(float(offset))


def parse_removal(text: str, line_number: int | None = None) -> ObjectRemoval:
    """Parse ``-<hexId>``; the wire negation maps back to the stored id."""
    return ObjectRemoval(parse_object_id(text[len(REMOVAL_MARKER) :].strip(), text, line_number))


def parse_update(text: str, line_number: int | None = None) -> ObjectUpdate:
    """Tokenize ``<hexId>,<name>=<value>,...`` into an :class:`ObjectUpdate`.

    Raises:
        AcmiParseError: the id is not hexadecimal or a field lacks a name or ``=``.
    """
    pieces = split_unescaped(text, FIELD_SEPARATOR)
    object_id = parse_object_id(pieces[0], text, line_number)

    fields: Attributes = {}
    rejected: list[str] = []
    for piece in pieces[1:]:
        if not piece:
            continue
        parts = partition_unescaped(piece, VALUE_SEPARATOR)
        if parts is None or not parts[0]:
            raise AcmiParseError(f"Malformed field {piece!r}", text, line_number)
        name, value = unescape(parts[0]), unescape(parts[1])

        if name == TRANSFORM_FIELD:
            coords = parse_coordinates(value)
            if coords is None:
                logger.debug(
                    "Ignoring {}={!r} on object {:x}: unsupported coordinate arity",
                    name,
                    value,
                    object_id,
                )
                rejected.append(name)
                continue
            fields[name] = coords
        else:
            fields[name] = value

    return ObjectUpdate(object_id=object_id, fields=fields, rejected=tuple(rejected))


def classify_record(text: str, line_number: int | None = None) -> Record | None:
    """Return the parsed record, or None when ``text`` is not a known record kind."""
    if text.startswith(FRAME_MARKER):
        return parse_frame_marker(text, line_number)
    if text.startswith(REMOVAL_MARKER):
        return parse_removal(text, line_number)
    if _HEX_PREFIX.match(text):
        return parse_update(text, line_number)
    return None
