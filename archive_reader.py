"""
Random-access reading of jar (ZIP) containers.

Nested jars are read fully into memory and reopened from their own ``bytes``
buffer, so an ``ArchiveReader`` never shares a file cursor with its parent.
Every reader carries a ``location`` such as ``outer.jar!/libs/inner.jar`` that
is used in error messages and log lines.
"""

from __future__ import annotations

import io
import logging
import zipfile
import zlib
from pathlib import Path
from typing import BinaryIO

from errors import EncodingError, EntryNotFound, MalformedArchive

_log = logging.getLogger(__name__)

# Unreadable entries surface as any of these depending on the damage.
# NotImplementedError: unsupported compression method (Deflate64, AES).
# RuntimeError: encrypted entry.
_CORRUPT_ENTRY_ERRORS = (
    zipfile.BadZipFile,
    zlib.error,
    EOFError,
    NotImplementedError,
    RuntimeError,
)


class ArchiveEntry:
    """A single named entry inside an open archive."""

    def __init__(self, archive: ArchiveReader, info: zipfile.ZipInfo):
        self._archive = archive
        self._info = info

    @property
    def name(self) -> str:
        return self._info.filename

    @property
    def size(self) -> int:
        return self._info.file_size

    def read_bytes(self) -> bytes:
        try:
            with self._archive._zf.open(self._info, "r") as fh:
                return fh.read()
        except _CORRUPT_ENTRY_ERRORS as exc:
            raise MalformedArchive(
                f"{self._archive.location}: cannot read entry {self.name!r}: {exc}"
            ) from exc

    def read_text(self) -> str:
        data = self.read_bytes()
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise EncodingError(
                f"{self._archive.location}: entry {self.name!r} is not valid UTF-8 ({exc})"
            ) from exc


class ArchiveReader:
    """Named-entry access to a ZIP container.

    ``source`` may be a path, an open binary file or an in-memory ``bytes``
    buffer.  Raises ``MalformedArchive`` if the central directory cannot be
    located.
    """

    def __init__(self, source: str | Path | BinaryIO | bytes, location: str | None = None):
        if isinstance(source, (bytes, bytearray)):
            source = io.BytesIO(source)
        if location is None:
            location = Path(source).name if isinstance(source, (str, Path)) else "<memory>"
        self.location = location
        try:
            self._zf = zipfile.ZipFile(source, "r")
        except zipfile.BadZipFile as exc:
            raise MalformedArchive(f"{location}: {exc}") from exc
        _log.debug("Opened %s (%d entries)", location, len(self._zf.infolist()))

    @classmethod
    def open(cls, path: str | Path) -> ArchiveReader:
        path = Path(path)
        return cls(path, location=path.name)

    @classmethod
    def from_bytes(cls, data: bytes, location: str) -> ArchiveReader:
        return cls(io.BytesIO(data), location=location)

    def names(self) -> list[str]:
        return self._zf.namelist()

    def by_name(self, entry_name: str) -> ArchiveEntry:
        try:
            info = self._zf.getinfo(entry_name)
        except KeyError:
            raise EntryNotFound(self.location, entry_name) from None
        return ArchiveEntry(self, info)

    def nested_location(self, entry_name: str) -> str:
        return f"{self.location}!/{entry_name}"

    def close(self):
        self._zf.close()

    def __enter__(self) -> ArchiveReader:
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def __repr__(self) -> str:
        return f"ArchiveReader({self.location!r})"
