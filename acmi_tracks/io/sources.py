"""Line sources for ACMI recordings on disk.

Tacview writes either plain ``.txt.acmi`` text or a ``.zip.acmi`` archive
holding a single text member. Both are read lazily, one line at a time.
"""

from __future__ import annotations

import io
import zipfile
from collections.abc import Iterator
from pathlib import Path

ZIP_MAGIC = b"PK\x03\x04"


def is_zip_archive(path: Path | str) -> bool:
    """Return True when ``path`` starts with the zip local-file signature."""
    with open(path, "rb") as f:
        return f.read(len(ZIP_MAGIC)) == ZIP_MAGIC


def iter_file_lines(path: Path | str, encoding: str = "utf-8-sig") -> Iterator[str]:
    """Yield the physical lines of an ACMI file without line terminators.

    Args:
        path: Path to a plain or zip-compressed ACMI file.
        encoding: Text encoding; the default drops a UTF-8 byte order mark.
    """
    path = Path(path)
    if is_zip_archive(path):
        with zipfile.ZipFile(path, "r") as archive:
            members = [info for info in archive.infolist() if not info.is_dir()]
            if not members:
                raise FileNotFoundError(f"ACMI archive has no members: {path}")
            with archive.open(members[0]) as raw:
                with io.TextIOWrapper(raw, encoding=encoding) as text:
                    for line in text:
                        yield line.rstrip("\r\n")
        return

    with open(path, encoding=encoding) as f:
        for line in f:
            yield line.rstrip("\r\n")
