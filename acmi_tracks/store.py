"""In-memory, time-indexed store for ACMI track objects.

A :class:`TrackDatabase` maps object ids to :class:`TrackObject` instances and
always holds the global object (id 0) carrying recording-wide metadata. Each
object owns an append-only list of sparse :class:`TrackEntry` deltas sorted by
time. Objects are never dropped; a removal only sets ``end``.
"""

from __future__ import annotations

import itertools
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from loguru import logger

from acmi_tracks import query
from acmi_tracks.common.errors import NoDataError, TimelineOrderError, warn_soft_degrade
from acmi_tracks.common.types import (
    GLOBAL_OBJECT_ID,
    AttributeValue,
    Attributes,
    Coords,
    ObjectId,
)

REFERENCE_TIME = "ReferenceTime"
RECORDING_TIME = "RecordingTime"


@dataclass(slots=True)
class TrackEntry:
    """Attributes that changed at ``time``.

    ``seq`` is the database-wide submission order, used to keep serialization
    deterministic when several entries share a time offset.
    """

    time: float
    attributes: Attributes = field(default_factory=dict)
    seq: int = 0

    def __contains__(self, name: object) -> bool:
        return name in self.attributes

    def __getitem__(self, name: str) -> AttributeValue:
        return self.attributes[name]

    def get(self, name: str, default: Any = None) -> Any:
        return self.attributes.get(name, default)


class TrackObject:
    """One tracked entity: id, lifetime and timeline of attribute deltas."""

    def __init__(self, object_id: ObjectId, start: float, end: float | None = None):
        if object_id < 0:
            raise ValueError(f"Object ids are non-negative, got {object_id}")
        self.id = object_id
        self.start = float(start)
        self.end = end
        self.end_seq: int | None = None
        self.entries: list[TrackEntry] = []
        self._times: list[float] = []

    def __repr__(self) -> str:
        return (
            f"TrackObject(id={self.id:x}, start={self.start}, end={self.end}, "
            f"entries={len(self.entries)})"
        )

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def times(self) -> list[float]:
        """Entry time offsets in timeline order (do not mutate)."""
        return self._times

    @property
    def removed(self) -> bool:
        return self.end is not None

    def is_alive(self, time: float) -> bool:
        """True when ``time`` lies within ``[start, end]``."""
        return self.start <= time and (self.end is None or time <= self.end)

    def add_entry(self, entry: TrackEntry) -> None:
        """Append ``entry``, keeping the timeline sorted by time."""
        if self._times and entry.time < self._times[-1]:
            msg = (
                f"Entry at {entry.time} precedes the last entry of object "
                f"{self.id:x} at {self._times[-1]}"
            )
            raise TimelineOrderError(msg)
        self.entries.append(entry)
        self._times.append(entry.time)

    # --- time-series queries (see acmi_tracks.query) ---
    def find_time_index(self, time: float) -> int:
        return query.find_time_index(self, time)

    def find_nearest_entry(
        self, predicate: Callable[[TrackEntry], bool], start: int, direction: int
    ) -> int | None:
        return query.find_nearest_entry(self, predicate, start, direction)

    def value_at_time(self, name: str, time: float) -> float:
        return query.value_at_time(self, name, time)

    def coord_at_time(self, index: int, time: float) -> float:
        return query.coord_at_time(self, index, time)

    def coords_at_time(self, time: float) -> Coords:
        return query.coords_at_time(self, time)

    def text_at_time(self, name: str, time: float) -> AttributeValue:
        return query.text_at_time(self, name, time)

    def singleton_value(self, name: str) -> AttributeValue:
        return query.singleton_value(self, name)

    def singleton_attributes(self) -> dict[str, AttributeValue]:
        return query.singleton_attributes(self)

    def dynamic_attributes(self) -> set[str]:
        return query.dynamic_attributes(self)

    def attribute_names(self) -> set[str]:
        return query.attribute_names(self)


class TrackDatabase:
    """Directory of track objects keyed by id, grown while a recording loads."""

    def __init__(self):
        self._objects: dict[ObjectId, TrackObject] = {
            GLOBAL_OBJECT_ID: TrackObject(GLOBAL_OBJECT_ID, 0.0)
        }
        self._retired: list[TrackObject] = []
        self._seq = itertools.count()

    def __repr__(self) -> str:
        return f"TrackDatabase(objects={len(self._objects)}, retired={len(self._retired)})"

    def __len__(self) -> int:
        return len(self._objects)

    def __contains__(self, object_id: object) -> bool:
        return object_id in self._objects

    def __getitem__(self, object_id: ObjectId) -> TrackObject:
        return self._objects[object_id]

    def __iter__(self) -> Iterator[TrackObject]:
        return iter(self.objects())

    def get(self, object_id: ObjectId) -> TrackObject | None:
        return self._objects.get(object_id)

    @property
    def global_object(self) -> TrackObject:
        """The reserved id-0 object holding recording-wide metadata."""
        return self._objects[GLOBAL_OBJECT_ID]

    def objects(self) -> list[TrackObject]:
        """Snapshot of the current object for every id, global object included."""
        return list(self._objects.values())

    def history(self, object_id: ObjectId) -> list[TrackObject]:
        """All lifetimes recorded under ``object_id``, oldest first."""
        lifetimes = [obj for obj in self._retired if obj.id == object_id]
        if object_id in self._objects:
            lifetimes.append(self._objects[object_id])
        return lifetimes

    def lifetimes(self) -> list[TrackObject]:
        """Retired lifetimes followed by the current objects."""
        return [*self._retired, *self._objects.values()]

    def ensure_object(self, object_id: ObjectId, time: float) -> TrackObject:
        """Return the object for ``object_id``, creating it at ``time`` if needed.

        Existing objects are returned untouched, even when removed.
        """
        obj = self._objects.get(object_id)
        if obj is None:
            obj = TrackObject(object_id, time)
            self._objects[object_id] = obj
            logger.debug("Created object {:x} at {}", object_id, time)
        return obj

    def retire(self, object_id: ObjectId, time: float) -> TrackObject:
        """Move the current lifetime of ``object_id`` to the history and start a new one."""
        old = self._objects.pop(object_id, None)
        if old is not None:
            self._retired.append(old)
            logger.debug("Object {:x} starts a new lifetime at {}", object_id, time)
        return self.ensure_object(object_id, time)

    def append_entry(
        self, obj: TrackObject, time: float, fields: Mapping[str, AttributeValue]
    ) -> TrackEntry:
        """Append a fresh entry to ``obj``; entries are never merged.

        Raises:
            TimelineOrderError: ``time`` is earlier than the object's last entry.
        """
        entry = TrackEntry(time=float(time), attributes=dict(fields))
        obj.add_entry(entry)
        entry.seq = next(self._seq)
        return entry

    def mark_removed(self, object_id: ObjectId, time: float) -> bool:
        """Soft delete ``object_id`` at ``time``.

        Returns False, leaving the store unchanged, when the id is unknown.
        """
        obj = self._objects.get(object_id)
        if obj is None:
            warn_soft_degrade(
                "TrackDatabase",
                f"remove of unknown object {object_id:x}",
                "store unchanged",
            )
            return False
        obj.end = float(time)
        obj.end_seq = next(self._seq)
        return True

    # --- recording-wide metadata ---
    @property
    def reference_time(self) -> datetime | None:
        """``ReferenceTime`` of the global object as an aware datetime."""
        return self._global_timestamp(REFERENCE_TIME)

    @property
    def recording_time(self) -> datetime | None:
        """``RecordingTime`` of the global object as an aware datetime."""
        return self._global_timestamp(RECORDING_TIME)

    def absolute_time(self, offset: float) -> datetime:
        """Convert a frame offset into a datetime using ``ReferenceTime``."""
        reference = self.reference_time
        if reference is None:
            raise NoDataError("Recording has no ReferenceTime")
        return reference + timedelta(seconds=offset)

    def _global_timestamp(self, name: str) -> datetime | None:
        obj = self.global_object
        index = query.find_nearest_entry(obj, lambda e: name in e, len(obj.entries) - 1, -1)
        if index is None:
            return None
        return parse_timestamp(str(obj.entries[index][name]))


def parse_timestamp(text: str) -> datetime:
    """Parse an ISO 8601 timestamp, accepting a trailing ``Z``; naive values are UTC."""
    text = text.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    value = datetime.fromisoformat(text)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value
