"""Configuration for loading and saving ACMI recordings."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields
from enum import Enum
from pathlib import Path
from typing import Any

import yaml


class RemovedIdPolicy(str, Enum):
    """What an update does when it references an object that was already removed."""

    CONTINUE = "continue"
    """Append to the old timeline and keep its removal time."""

    NEW_LIFETIME = "new_lifetime"
    """Retire the removed object and start a fresh one under the same id."""

    REJECT = "reject"
    """Treat the update as a structural error."""


@dataclass(slots=True)
class AcmiConfig:
    """Runtime options shared by the loader and the writer."""

    strict: bool = True
    removed_id_policy: RemovedIdPolicy = RemovedIdPolicy.CONTINUE
    file_version: str = "2.2"
    encoding: str = "utf-8-sig"

    def __post_init__(self) -> None:
        if not isinstance(self.strict, bool):
            raise ValueError(f"strict must be a boolean, got {self.strict!r}")
        try:
            self.removed_id_policy = RemovedIdPolicy(self.removed_id_policy)
        except ValueError:
            choices = ", ".join(p.value for p in RemovedIdPolicy)
            msg = f"Unknown removed_id_policy {self.removed_id_policy!r} (expected one of {choices})"
            raise ValueError(msg) from None
        self.file_version = str(self.file_version)
        if not self.file_version:
            raise ValueError("file_version must not be empty")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> AcmiConfig:
        """Build a config from a plain mapping, rejecting unknown keys."""

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown ACMI config keys: {', '.join(unknown)}")
        return cls(**dict(data))


def load_config(path: Path | str) -> AcmiConfig:
    """Load an :class:`AcmiConfig` from a YAML file.

    An empty file yields the defaults. A top-level ``acmi`` section is used
    when present so the options can live inside a larger config document.
    """
    path = Path(path)
    payload = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(payload, dict):
        raise TypeError(f"ACMI config must be a mapping: {path}")
    if isinstance(payload.get("acmi"), dict):
        payload = payload["acmi"]
    return AcmiConfig.from_mapping(payload)
