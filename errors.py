"""
Error taxonomy for Mod Jar Inspector.

Only ``InvalidMixinConfig`` is recovered inside a traversal (the offending
reference is skipped). ``NotAModError`` is an expected outcome, not a failure:
the traversal turns it into a ``NotAMod`` result. Everything else aborts the
traversal of the top-level jar it happened in.
"""

from __future__ import annotations


class InspectorError(Exception):
    """Base class for all errors raised while inspecting jars."""


class MalformedArchive(InspectorError):
    """The container's central directory could not be read."""


class EntryNotFound(InspectorError):
    """A named entry does not exist inside the archive."""

    def __init__(self, location: str, entry: str):
        super().__init__(f"{location}: no entry named {entry!r}")
        self.location = location
        self.entry = entry


class EncodingError(InspectorError):
    """An entry expected to be UTF-8 text contains invalid bytes."""


class NotAModError(InspectorError):
    """The archive has no mod descriptor."""


class InvalidDescriptor(InspectorError):
    """The mod descriptor exists but does not have the expected shape."""


class InvalidMixinConfig(InspectorError):
    """A referenced mixin config document is missing or malformed."""


class ScanAborted(InspectorError):
    """A fail-fast scan stopped at the first jar that could not be read."""

    def __init__(self, file_name: str, cause: Exception):
        super().__init__(f"{file_name}: {cause}")
        self.file_name = file_name
        self.cause = cause
