"""
Common utilities for the acmi_tracks package.

This module provides shared type definitions, error handling and logging setup.
"""

from acmi_tracks.common.errors import (
    AcmiError,
    AcmiParseError,
    AttributeTypeError,
    NoDataError,
    NotSingletonError,
    RemovedObjectError,
    TimelineOrderError,
    warn_soft_degrade,
)
from acmi_tracks.common.logging import configure_logging, get_logger
from acmi_tracks.common.types import (
    COORD_ARITIES,
    GLOBAL_OBJECT_ID,
    TRANSFORM_FIELD,
    AttributeValue,
    Attributes,
    Coord,
    Coords,
    ObjectId,
)

__all__ = [  # noqa: RUF022 - Grouped by source module for clarity
    # Errors (from .errors)
    "AcmiError",
    "AcmiParseError",
    "AttributeTypeError",
    "NoDataError",
    "NotSingletonError",
    "RemovedObjectError",
    "TimelineOrderError",
    "warn_soft_degrade",
    # Logging (from .logging)
    "configure_logging",
    "get_logger",
    # Types (from .types)
    "COORD_ARITIES",
    "GLOBAL_OBJECT_ID",
    "TRANSFORM_FIELD",
    "AttributeValue",
    "Attributes",
    "Coord",
    "Coords",
    "ObjectId",
]
