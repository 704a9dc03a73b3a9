"""Time-series queries over a single track object's timeline.

All functions require the timeline to be sorted by time, which
:meth:`TrackObject.add_entry` enforces. Lookups locate the query time with a
binary search over the entry times, then scan linearly for the nearest entries
carrying the requested attribute.

Numbers and coordinate components are linearly interpolated between the
bracketing entries and held flat outside the timeline. Text is never
interpolated: it is held from the most recent entry (zero-order hold).
"""

from __future__ import annotations

import bisect
from collections import Counter
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any

import numpy as np

from acmi_tracks.common.errors import AttributeTypeError, NoDataError, NotSingletonError
from acmi_tracks.common.types import TRANSFORM_FIELD, AttributeValue, Coords

if TYPE_CHECKING:  # pragma: no cover - import hints only
    from acmi_tracks.store import TrackEntry, TrackObject

Predicate = Callable[["TrackEntry"], bool]


def find_time_index(obj: TrackObject, time: float) -> int:
    """Return ``i`` with ``t_i <= time <= t_{i+1}``, clamped to the timeline ends.

    Raises:
        NoDataError: the object has no entries.
    """
    times = obj.times
    if not times:
        raise NoDataError(f"Object {obj.id:x} has no timeline entries")
    if time <= times[0]:
        return 0
    if time >= times[-1]:
        return len(times) - 1
    return bisect.bisect_right(times, time) - 1


def find_nearest_entry(
    obj: TrackObject, predicate: Predicate, start: int, direction: int
) -> int | None:
    """Scan from ``start`` by ``direction`` (+1/-1) for an entry matching ``predicate``.

    Returns None when the scan runs off either end.
    """
    if direction not in (1, -1):
        raise ValueError(f"direction must be +1 or -1, got {direction}")
    entries = obj.entries
    index = start
    while 0 <= index < len(entries):
        if predicate(entries[index]):
            return index
        index += direction
    return None


def _interpolate(
    obj: TrackObject,
    predicate: Predicate,
    retrieve: Callable[[TrackEntry], float],
    time: float,
    what: str,
) -> float:
    entries = obj.entries
    index = find_time_index(obj, time)

    # Flat at the boundaries
    boundary = None
    if time <= obj.times[0]:
        boundary = (0, 1)
    elif time >= obj.times[-1]:
        boundary = (len(entries) - 1, -1)
    if boundary is not None:
        found = find_nearest_entry(obj, predicate, *boundary)
        if found is None:
            raise NoDataError(f"Object {obj.id:x} has no {what}")
        return retrieve(entries[found])

    prev_index = find_nearest_entry(obj, predicate, index, -1)
    next_index = find_nearest_entry(obj, predicate, index + 1, 1)
    if prev_index is None or next_index is None:
        side = "before" if prev_index is None else "after"
        raise NoDataError(f"Object {obj.id:x} has no {what} {side} t={time}")

    prev_entry, next_entry = entries[prev_index], entries[next_index]
    prev_value, next_value = retrieve(prev_entry), retrieve(next_entry)
    span = next_entry.time - prev_entry.time
    if span == 0:
        return prev_value
    value = prev_value + (next_value - prev_value) * (time - prev_entry.time) / span
    # rounding must not leave the bracket
    return min(max(value, min(prev_value, next_value)), max(prev_value, next_value))


def _as_number(value: Any, name: str) -> float:
    if isinstance(value, bool):
        raise AttributeTypeError(f"{name} holds a boolean, not a number")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            raise AttributeTypeError(f"{name}={value!r} is not numeric") from None
    raise AttributeTypeError(f"{name} holds {type(value).__name__}, not a number")


def value_at_time(obj: TrackObject, name: str, time: float) -> float:
    """Numeric value of attribute ``name`` at ``time``, linearly interpolated.

    Raises:
        NoDataError: no carrying entry on one side of ``time``.
        AttributeTypeError: a bracketing value is not numeric.
    """
    return _interpolate(
        obj,
        lambda e: name in e,
        lambda e: _as_number(e[name], name),
        time,
        name,
    )


def coord_at_time(obj: TrackObject, index: int, time: float) -> float:
    """Coordinate component ``index`` at ``time``, linearly interpolated.

    Only entries whose tuple provides that component take part.
    """

    def has_component(entry: TrackEntry) -> bool:
        coords = entry.get(TRANSFORM_FIELD)
        return coords is not None and len(coords) > index and coords[index] is not None

    return _interpolate(
        obj,
        has_component,
        lambda e: float(e[TRANSFORM_FIELD][index]),
        time,
        f"{TRANSFORM_FIELD}[{index}]",
    )


def coords_at_time(obj: TrackObject, time: float) -> Coords:
    """Full coordinate tuple at ``time``; components without data are None.

    The arity is the largest one seen on the timeline.
    """
    arity = max((len(e[TRANSFORM_FIELD]) for e in obj.entries if TRANSFORM_FIELD in e), default=0)
    if arity == 0:
        raise NoDataError(f"Object {obj.id:x} has no coordinates")
    coords: list[float | None] = []
    for index in range(arity):
        try:
            coords.append(coord_at_time(obj, index, time))
        except NoDataError:
            coords.append(None)
    return tuple(coords)


def text_at_time(obj: TrackObject, name: str, time: float) -> AttributeValue:
    """Value of ``name`` held from the latest carrying entry at or before ``time``.

    Before the first carrying entry, that entry's value is returned.
    """
    if not obj.entries:
        raise NoDataError(f"Object {obj.id:x} has no timeline entries")
    start = max(bisect.bisect_right(obj.times, time) - 1, 0)
    found = find_nearest_entry(obj, lambda e: name in e, start, -1)
    if found is None:
        found = find_nearest_entry(obj, lambda e: name in e, start, 1)
    if found is None:
        raise NoDataError(f"Object {obj.id:x} has no {name}")
    return obj.entries[found][name]


def attribute_names(obj: TrackObject) -> set[str]:
    names: set[str] = set()
    for entry in obj.entries:
        names.update(entry.attributes)
    return names


def _occurrences(obj: TrackObject) -> Counter:
    counts: Counter = Counter()
    for entry in obj.entries:
        counts.update(entry.attributes.keys())
    return counts


def singleton_value(obj: TrackObject, name: str) -> AttributeValue:
    """Value of an attribute that occurs in exactly one entry.

    Raises:
        NotSingletonError: the attribute occurs zero or several times.
    """
    carriers = [e for e in obj.entries if name in e]
    if len(carriers) != 1:
        raise NotSingletonError(
            f"{name} occurs in {len(carriers)} entries of object {obj.id:x}"
        )
    return carriers[0][name]


def singleton_attributes(obj: TrackObject) -> dict[str, AttributeValue]:
    """Static metadata: attributes present in exactly one entry."""
    singles = {name for name, count in _occurrences(obj).items() if count == 1}
    return {
        name: value
        for entry in obj.entries
        for name, value in entry.attributes.items()
        if name in singles
    }


def dynamic_attributes(obj: TrackObject) -> set[str]:
    """Telemetry: attributes present in more than one entry."""
    return {name for name, count in _occurrences(obj).items() if count > 1}


def _sample(query: Callable[[float], float], times: Iterable[float]) -> np.ndarray:
    grid = np.array(times if isinstance(times, np.ndarray) else list(times), dtype=float)
    out = np.full(grid.shape, np.nan)
    for position, time in np.ndenumerate(grid):
        try:
            out[position] = query(float(time))
        except (NoDataError, AttributeTypeError):
            continue
    return out


def sample_values(obj: TrackObject, name: str, times: Iterable[float]) -> np.ndarray:
    """Evaluate :func:`value_at_time` on many times.

    NaN marks queries without data or with a non-numeric bracketing value; a
    failing query never aborts the batch.
    """
    return _sample(lambda t: value_at_time(obj, name, t), times)


def sample_coord(obj: TrackObject, index: int, times: Iterable[float]) -> np.ndarray:
    """Evaluate :func:`coord_at_time` on many times; NaN marks queries without data."""
    return _sample(lambda t: coord_at_time(obj, index, t), times)
