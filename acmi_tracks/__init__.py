"""Load, query and save ACMI telemetry recordings.

The package reconstructs per-object timelines from the line-oriented ACMI text
format, answers "what was attribute X of object Y at time T" queries, and
writes the same format back.
"""

from acmi_tracks.common.errors import (
    AcmiError,
    AcmiParseError,
    AttributeTypeError,
    NoDataError,
    NotSingletonError,
    RemovedObjectError,
    TimelineOrderError,
)
from acmi_tracks.common.types import Coord
from acmi_tracks.config import AcmiConfig, RemovedIdPolicy, load_config
from acmi_tracks.loader import AcmiLoader, LoadReport, load_acmi, load_lines, load_lines_async, loads
from acmi_tracks.query import sample_coord, sample_values
from acmi_tracks.store import TrackDatabase, TrackEntry, TrackObject
from acmi_tracks.writer import dumps, iter_acmi_lines, save_acmi, write_acmi

__all__ = [
    "AcmiConfig",
    "AcmiError",
    "AcmiLoader",
    "AcmiParseError",
    "AttributeTypeError",
    "Coord",
    "LoadReport",
    "NoDataError",
    "NotSingletonError",
    "RemovedIdPolicy",
    "RemovedObjectError",
    "TimelineOrderError",
    "TrackDatabase",
    "TrackEntry",
    "TrackObject",
    "dumps",
    "iter_acmi_lines",
    "load_acmi",
    "load_config",
    "load_lines",
    "load_lines_async",
    "loads",
    "sample_coord",
    "sample_values",
    "save_acmi",
    "write_acmi",
]
