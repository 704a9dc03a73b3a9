"""Wire-format helpers: line normalization, record parsing and file sources."""

from .normalizer import LineNormalizer, LogicalRecord, aiter_logical_records, iter_logical_records
from .records import (
    FrameMarker,
    ObjectRemoval,
    ObjectUpdate,
    Record,
    classify_record,
    escape_name,
    escape_value,
    parse_coordinates,
    split_unescaped,
    unescape,
)
from .sources import iter_file_lines

__all__ = [
    "FrameMarker",
    "LineNormalizer",
    "LogicalRecord",
    "ObjectRemoval",
    "ObjectUpdate",
    "Record",
    "aiter_logical_records",
    "classify_record",
    "escape_name",
    "escape_value",
    "iter_file_lines",
    "iter_logical_records",
    "parse_coordinates",
    "split_unescaped",
    "unescape",
]
