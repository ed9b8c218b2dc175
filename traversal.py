"""
Recursive traversal of mod jars.

``traverse()`` opens a jar, reads its ``fabric.mod.json`` and everything that
descriptor points at, and recurses into every jar nested inside it. The
result is a ``TraversalResult`` tree:

    NotAMod()                 the jar has no descriptor; nothing below it
    Mod(..., contained_jars)  contained_jars maps nested leaf names to results

A traversal touches nothing but the archive it is given, so independent
jars can be traversed from any number of threads at once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Union

from archive_reader import ArchiveReader
from errors import InvalidMixinConfig, NotAModError
from mod_schema import (
    Environment,
    MixinConfig,
    MixinConfigReference,
    read_descriptor,
    read_mixin_config,
)

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotAMod:
    """A jar without a mod descriptor."""


@dataclass(frozen=True)
class Mod:
    """A jar with a valid mod descriptor, fully traversed."""

    mod_id: str
    mod_version: str
    mod_name: str | None
    environment: Environment
    # Always holds all three environments; duplicates are kept.
    mixins: dict[Environment, list[str]]
    mixin_config_plugins: list[str] = field(default_factory=list)
    contained_jars: dict[str, TraversalResult] = field(default_factory=dict)
    access_widener: str | None = None
    skipped_mixin_configs: list[str] = field(default_factory=list)


TraversalResult = Union[NotAMod, Mod]


@dataclass
class MixinConfigLoad:
    """Outcome of loading one mixin config reference: parsed, or skipped with a reason."""

    reference: MixinConfigReference
    config: MixinConfig | None = None
    error: str | None = None

    @property
    def skipped(self) -> bool:
        return self.config is None


def empty_mixin_buckets() -> dict[Environment, list[str]]:
    return {env: [] for env in Environment}


def load_mixin_config(archive: ArchiveReader, reference: MixinConfigReference) -> MixinConfigLoad:
    """Load a referenced mixin config, turning any failure into a skipped load."""
    try:
        return MixinConfigLoad(reference, config=read_mixin_config(archive, reference.config))
    except InvalidMixinConfig as exc:
        _log.warning("Skipping mixin config %s: %s", reference.config, exc)
        return MixinConfigLoad(reference, error=str(exc))


def traverse(source: str | Path | BinaryIO | bytes, name: str | None = None) -> TraversalResult:
    """Traverse the jar at ``source`` (path, binary file or bytes).

    ``name`` is used as the jar's location in messages; it defaults to the
    file name when ``source`` is a path.

    Raises ``MalformedArchive``, ``InvalidDescriptor``, ``EntryNotFound`` or
    ``EncodingError`` when the jar or anything it declares cannot be read.
    A missing descriptor is not an error: the result is ``NotAMod()``.
    """
    with ArchiveReader(source, location=name) as archive:
        return _traverse_archive(archive)


def _traverse_archive(archive: ArchiveReader) -> TraversalResult:
    try:
        descriptor = read_descriptor(archive)
    except NotAModError:
        _log.debug("%s is not a mod", archive.location)
        return NotAMod()

    contained_jars: dict[str, TraversalResult] = {}
    for jar in descriptor.jars:
        # Read the whole nested jar so it gets its own buffer, then recurse.
        data = archive.by_name(jar.file).read_bytes()
        contained_jars[jar.leaf_name] = traverse(data, archive.nested_location(jar.file))

    mixins = empty_mixin_buckets()
    plugins: list[str] = []
    skipped: list[str] = []
    for reference in descriptor.mixins:
        load = load_mixin_config(archive, reference)
        if load.skipped:
            skipped.append(reference.config)
            continue
        forced = reference.forced_environment
        mixins[forced or Environment.BOTH].extend(load.config.mixins)
        mixins[forced or Environment.CLIENT].extend(load.config.client)
        mixins[forced or Environment.SERVER].extend(load.config.server)
        if load.config.plugin is not None:
            plugins.append(load.config.plugin)

    access_widener = None
    if descriptor.access_widener is not None:
        access_widener = archive.by_name(descriptor.access_widener).read_text()

    return Mod(
        mod_id=descriptor.id,
        mod_version=descriptor.version,
        mod_name=descriptor.name,
        environment=descriptor.environment,
        mixins=mixins,
        mixin_config_plugins=plugins,
        contained_jars=dict(sorted(contained_jars.items())),
        access_widener=access_widener,
        skipped_mixin_configs=skipped,
    )
