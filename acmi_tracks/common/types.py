"""
Module specifying types used in acmi_tracks
"""

from enum import IntEnum
from typing import Optional, Union

ObjectId = int
"""Type alias for a track object identifier (hexadecimal on the wire, non-negative in storage)"""

Coords = tuple[Optional[float], ...]
"""
Type alias for a coordinate tuple of arity 3, 5 or 9.
``None`` marks a component that was left empty on the wire.
"""

AttributeValue = Union[float, str, Coords]
"""Type alias for a stored attribute value: number, text or coordinate tuple"""

Attributes = dict[str, AttributeValue]

COORD_ARITIES = (3, 5, 9)
"""Coordinate tuple sizes accepted by the ``T`` field"""

TRANSFORM_FIELD = "T"
GLOBAL_OBJECT_ID: ObjectId = 0


class Coord(IntEnum):
    """Component indices inside a coordinate tuple."""

    LON = 0  # longitude
    LAT = 1  # latitude
    ALT = 2  # altitude (meters)
    ROLL = 3  # positive to the right
    PITCH = 4  # positive when taking off
    YAW = 5  # clockwise relative to true north
    U = 6  # native X (meters), 9-tuple
    V = 7  # native Y (meters), 9-tuple
    HEADING = 8  # clockwise relative to true north, 9-tuple

