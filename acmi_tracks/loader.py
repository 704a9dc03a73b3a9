"""Build a :class:`TrackDatabase` from ACMI text.

Physical lines flow through the normalizer into the record classifier, and
each record mutates the database:

    lines -> LineNormalizer -> classify_record -> TrackDatabase

In strict mode (the default) the first malformed record raises and aborts the
load. In lenient mode the record is skipped, a warning is logged and noted in
the :class:`LoadReport`, and loading goes on. Either way the database built so
far stays available on the loader.
"""

from __future__ import annotations

from collections.abc import AsyncIterable, Iterable
from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger

from acmi_tracks.common.errors import (
    AcmiParseError,
    RemovedObjectError,
    TimelineOrderError,
    warn_soft_degrade,
)
from acmi_tracks.common.types import ObjectId
from acmi_tracks.config import AcmiConfig, RemovedIdPolicy
from acmi_tracks.io.normalizer import LogicalRecord, aiter_logical_records, iter_logical_records
from acmi_tracks.io.records import FrameMarker, ObjectRemoval, ObjectUpdate, Record, classify_record
from acmi_tracks.io.sources import iter_file_lines
from acmi_tracks.store import TrackDatabase, TrackObject

_RECOVERABLE = (AcmiParseError, TimelineOrderError, RemovedObjectError)


@dataclass(slots=True)
class LoadReport:
    """Counters and warnings collected while loading."""

    records: int = 0
    frames: int = 0
    updates: int = 0
    removals: int = 0
    skipped: int = 0
    warnings: list[str] = field(default_factory=list)


class AcmiLoader:
    """Incremental ACMI ingestion into a (new or existing) database."""

    def __init__(self, database: TrackDatabase | None = None, config: AcmiConfig | None = None):
        self.database = database if database is not None else TrackDatabase()
        self.config = config or AcmiConfig()
        self.current_time = 0.0
        self.report = LoadReport()

    def load(self, lines: Iterable[str]) -> TrackDatabase:
        """Consume ``lines`` to the end and return the database."""
        for record in iter_logical_records(lines):
            self.consume(record)
        return self.database

    async def load_async(self, lines: AsyncIterable[str]) -> TrackDatabase:
        """Consume an async line source; cancellation keeps what was loaded."""
        async for record in aiter_logical_records(lines):
            self.consume(record)
        return self.database

    def consume(self, record: LogicalRecord) -> None:
        """Apply one logical record to the database."""
        try:
            parsed = classify_record(record.text, record.line_number)
            if parsed is None:
                logger.debug("Ignoring unrecognized record at line {}", record.line_number)
                return
            self.report.records += 1
            self._apply(parsed, record.line_number)
        except _RECOVERABLE as exc:
            if self.config.strict:
                raise
            self.report.skipped += 1
            self.report.warnings.append(
                warn_soft_degrade(
                    "AcmiLoader",
                    f"bad record at line {record.line_number}: {exc}",
                    "record skipped",
                )
            )

    def _apply(self, record: Record, line_number: int) -> None:
        if isinstance(record, FrameMarker):
            self.current_time = record.offset
            self.report.frames += 1
        elif isinstance(record, ObjectRemoval):
            self.report.removals += 1
            if not self.database.mark_removed(record.object_id, self.current_time):
                self.report.warnings.append(
                    f"line {line_number}: remove of unknown object {record.object_id:x}"
                )
        elif isinstance(record, ObjectUpdate):
            obj = self._resolve_object(record.object_id, line_number)
            self.database.append_entry(obj, self.current_time, record.fields)
            self.report.updates += 1

    def _resolve_object(self, object_id: ObjectId, line_number: int) -> TrackObject:
        obj = self.database.get(object_id)
        if obj is None or not obj.removed:
            return self.database.ensure_object(object_id, self.current_time)

        policy = self.config.removed_id_policy
        if policy is RemovedIdPolicy.NEW_LIFETIME:
            return self.database.retire(object_id, self.current_time)
        if policy is RemovedIdPolicy.REJECT:
            msg = (
                f"Update of object {object_id:x} removed at {obj.end} "
                f"(line {line_number})"
            )
            raise RemovedObjectError(msg)
        return obj


def load_lines(
    lines: Iterable[str],
    config: AcmiConfig | None = None,
    database: TrackDatabase | None = None,
) -> TrackDatabase:
    """Load ACMI text lines into a database."""
    return AcmiLoader(database, config).load(lines)


async def load_lines_async(
    lines: AsyncIterable[str],
    config: AcmiConfig | None = None,
    database: TrackDatabase | None = None,
) -> TrackDatabase:
    """Load ACMI text lines from an async source into a database."""
    return await AcmiLoader(database, config).load_async(lines)


def loads(text: str, config: AcmiConfig | None = None) -> TrackDatabase:
    """Load an ACMI recording held in a string."""
    return load_lines(text.split("\n"), config)


def load_acmi(path: Path | str, config: AcmiConfig | None = None) -> TrackDatabase:
    """Load a plain or zip-compressed ACMI file."""
    config = config or AcmiConfig()
    loader = AcmiLoader(config=config)
    database = loader.load(iter_file_lines(path, encoding=config.encoding))
    report = loader.report
    logger.info(
        "Loaded {} objects ({} updates, {} removals, {} skipped) from {}",
        len(database),
        report.updates,
        report.removals,
        report.skipped,
        path,
    )
    return database
