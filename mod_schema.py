"""
Schemas for the two JSON documents read out of a mod jar.

``fabric.mod.json`` sits at the root of every Fabric mod jar and declares the
mod's identity. A jar without it is simply not a mod. Example:

{
    "id": "examplemod",
    "version": "1.2.0",
    "name": "Example Mod",
    "environment": "*",
    "jars": [
        {"file": "META-INF/jars/examplelib-0.3.jar"}
    ],
    "mixins": [
        "examplemod.mixins.json",
        {"config": "examplemod.client.mixins.json", "environment": "client"}
    ],
    "accessWidener": "examplemod.accesswidener"
}

Each ``mixins`` entry names a mixin config document inside the same jar:

{
    "plugin": "com.example.mixin.ExamplePlugin",
    "mixins": ["CommonMixin"],
    "client": ["ScreenMixin"],
    "server": ["DedicatedServerMixin"]
}

Only the fields needed for reporting are modelled; anything else in either
document is ignored.
"""

from __future__ import annotations

import json
import logging
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, StrictStr, ValidationError, field_validator

from archive_reader import ArchiveReader
from errors import (
    EncodingError,
    EntryNotFound,
    InvalidDescriptor,
    InvalidMixinConfig,
    MalformedArchive,
    NotAModError,
)

DESCRIPTOR_FILENAME = "fabric.mod.json"

_log = logging.getLogger(__name__)


class Environment(str, Enum):
    """Where a mod or a set of mixins is expected to run."""

    BOTH = "*"
    CLIENT = "client"
    SERVER = "server"

    @property
    def label(self) -> str:
        return self.name.capitalize()


class JarReference(BaseModel):
    """A jar nested inside the mod, relative to the jar root."""

    file: StrictStr

    @property
    def leaf_name(self) -> str:
        return self.file.split("/")[-1]


class MixinConfigReference(BaseModel):
    """One entry of the descriptor's ``mixins`` list.

    A bare string in the descriptor is shorthand for ``{"config": "<name>"}``.
    """

    config: StrictStr
    environment: Environment | None = None

    @property
    def forced_environment(self) -> Environment | None:
        """The bucket every mixin of this config goes to, if the reference pins one.

        ``"*"`` pins nothing: the document's own client/server split applies.
        """
        if self.environment is None or self.environment is Environment.BOTH:
            return None
        return self.environment


class ModDescriptor(BaseModel):
    """Parsed contents of a fabric.mod.json file."""

    model_config = ConfigDict(populate_by_name=True)

    id: StrictStr
    version: StrictStr
    name: StrictStr | None = None
    environment: Environment = Environment.BOTH
    jars: list[JarReference] = Field(default_factory=list)
    mixins: list[MixinConfigReference] = Field(default_factory=list)
    access_widener: StrictStr | None = Field(default=None, alias="accessWidener")

    @field_validator("mixins", mode="before")
    @classmethod
    def _expand_bare_names(cls, v):
        if not isinstance(v, list):
            return v
        return [{"config": item} if isinstance(item, str) else item for item in v]


class MixinConfig(BaseModel):
    """Parsed contents of a mixin config document."""

    plugin: StrictStr | None = None
    mixins: list[StrictStr] = Field(default_factory=list)
    client: list[StrictStr] = Field(default_factory=list)
    server: list[StrictStr] = Field(default_factory=list)


def parse_descriptor(data: bytes) -> ModDescriptor:
    """Parse raw JSON bytes into a ModDescriptor.

    Raises ``pydantic.ValidationError`` if the data is invalid.
    Raises ``json.JSONDecodeError`` if the bytes are not valid JSON.
    """
    return ModDescriptor.model_validate(json.loads(data))


def parse_mixin_config(data: bytes) -> MixinConfig:
    """Parse raw JSON bytes into a MixinConfig. Raises like ``parse_descriptor``."""
    return MixinConfig.model_validate(json.loads(data))


def read_descriptor(archive: ArchiveReader) -> ModDescriptor:
    """Read and validate the descriptor of an open jar.

    Raises ``NotAModError`` when the jar has no descriptor and
    ``InvalidDescriptor`` when it has one that cannot be used.
    """
    try:
        data = archive.by_name(DESCRIPTOR_FILENAME).read_bytes()
    except EntryNotFound:
        raise NotAModError(f"{archive.location}: no {DESCRIPTOR_FILENAME}") from None
    try:
        descriptor = parse_descriptor(data)
    except (ValueError, ValidationError) as exc:
        # JSONDecodeError and UnicodeDecodeError are both ValueErrors
        raise InvalidDescriptor(
            f"{archive.location}: invalid {DESCRIPTOR_FILENAME}: {exc}"
        ) from exc
    _log.debug(
        "%s: mod %s %s, %d nested jar(s), %d mixin config(s)",
        archive.location, descriptor.id, descriptor.version,
        len(descriptor.jars), len(descriptor.mixins),
    )
    return descriptor


def read_mixin_config(archive: ArchiveReader, entry_name: str) -> MixinConfig:
    """Read and validate a mixin config document named by the descriptor.

    Any problem, including a missing or unreadable entry, is reported as
    ``InvalidMixinConfig``.
    """
    try:
        data = archive.by_name(entry_name).read_bytes()
        return parse_mixin_config(data)
    except (EntryNotFound, MalformedArchive, EncodingError) as exc:
        raise InvalidMixinConfig(str(exc)) from exc
    except (ValueError, ValidationError) as exc:
        raise InvalidMixinConfig(
            f"{archive.location}: invalid mixin config {entry_name!r}: {exc}"
        ) from exc
