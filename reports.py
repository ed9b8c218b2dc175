"""
Read-only report views over traversal results.

Every view takes the ``(file_name, TraversalResult)`` pairs of one scan and
returns the lines to print. Mods are merged by mod id: the same id reached
through several jars, or through several nesting paths, is reported once with
every file/entry name it was found under.

Filters are case-insensitive substring matches.
"""

from __future__ import annotations

import pprint
from dataclasses import dataclass, field
from typing import Iterable, Iterator

from mod_schema import Environment
from traversal import Mod, NotAMod, TraversalResult

INDENT = "    "

NO_MATCHING_JARS = "No jars that match the given filter found!"
NO_VALID_JARS = "No valid jars found!"
NO_ACCESS_WIDENERS = "No jars with AWs found!"

Results = Iterable[tuple[str, TraversalResult]]


def iter_mods(
    results: Results, parent_id: str | None = None
) -> Iterator[tuple[str, Mod, str | None]]:
    """Yield ``(name, mod, parent_id)`` for every mod reachable from ``results``.

    ``name`` is the top-level file name, or the leaf entry name for nested
    jars. ``parent_id`` is the id of the mod the jar was nested in, or None
    at the top level.
    """
    for name, result in results:
        if isinstance(result, Mod):
            yield name, result, parent_id
            yield from iter_mods(result.contained_jars.items(), result.mod_id)
        elif isinstance(result, NotAMod):
            continue
        else:
            raise TypeError(f"Unexpected traversal result: {result!r}")


def _matcher(filter: str | None):
    if filter is None:
        return lambda text: True
    needle = filter.lower()
    return lambda text: needle in text.lower()


def _heading(mod_id: str, names: Iterable[str]) -> str:
    return f"{mod_id} ({', '.join(sorted(names))})"


# ── Mixins ────────────────────────────────────────────────────────────


@dataclass
class CollatedMixins:
    file_names: set[str] = field(default_factory=set)
    mixins: dict[Environment, set[str]] = field(
        default_factory=lambda: {env: set() for env in Environment}
    )


def collate_mixins(results: Results, filter: str | None = None) -> dict[str, CollatedMixins]:
    matches = _matcher(filter)
    collated: dict[str, CollatedMixins] = {}
    for name, mod, _ in iter_mods(results):
        entry = collated.setdefault(mod.mod_id, CollatedMixins())
        entry.file_names.add(name)
        for env, mixins in mod.mixins.items():
            entry.mixins[env].update(m for m in mixins if matches(m))
    return collated


def mixin_report(results: Results, filter: str | None = None) -> list[str]:
    """List the mixins of every mod, Both first, then Client and Server sections.

    With a filter, mods left with no matching mixins are not shown.
    """
    lines: list[str] = []
    collated = collate_mixins(results, filter)
    for mod_id in sorted(collated):
        entry = collated[mod_id]
        if filter is not None and not any(entry.mixins.values()):
            continue

        lines.append(_heading(mod_id, entry.file_names))
        lines.extend(INDENT + m for m in sorted(entry.mixins[Environment.BOTH]))
        for env in (Environment.CLIENT, Environment.SERVER):
            if entry.mixins[env]:
                lines.append(f"{env.label}:")
                lines.extend(INDENT + m for m in sorted(entry.mixins[env]))

    if not lines:
        lines.append(NO_MATCHING_JARS if filter is not None else NO_VALID_JARS)
    return lines


# ── Jar-in-jar ────────────────────────────────────────────────────────


def _forward_tree(result: TraversalResult, name: str, depth: int, lines: list[str]):
    pad = INDENT * depth
    if isinstance(result, NotAMod):
        lines.append(f"{pad}{name} (Not a mod)")
    elif isinstance(result, Mod):
        lines.append(f"{pad}{result.mod_id} ({name})")
        for child_name, child in result.contained_jars.items():
            _forward_tree(child, child_name, depth + 1, lines)
    else:
        raise TypeError(f"Unexpected traversal result: {result!r}")


def jar_in_jar_report(results: Results, filter: str | None = None) -> list[str]:
    """Print each top-level jar with the jars nested inside it, one level per indent.

    The filter only applies to top-level mod ids; a top-level jar that is not
    a mod is always shown.
    """
    matches = _matcher(filter)
    lines: list[str] = []
    for name, result in results:
        if isinstance(result, Mod) and not matches(result.mod_id):
            continue
        _forward_tree(result, name, 0, lines)
    return lines


@dataclass
class CollatedParents:
    file_names: set[str] = field(default_factory=set)
    parent_ids: set[str] = field(default_factory=set)


def collate_parents(results: Results) -> dict[str, CollatedParents]:
    collated: dict[str, CollatedParents] = {}
    for name, mod, parent_id in iter_mods(results):
        entry = collated.setdefault(mod.mod_id, CollatedParents())
        entry.file_names.add(name)
        if parent_id is not None:
            entry.parent_ids.add(parent_id)
    return collated


def _reverse_tree(
    mod_id: str,
    collated: dict[str, CollatedParents],
    depth: int,
    chain: tuple[str, ...],
    lines: list[str],
):
    entry = collated[mod_id]
    lines.append(INDENT * depth + _heading(mod_id, entry.file_names))
    chain = chain + (mod_id,)
    for parent_id in sorted(entry.parent_ids):
        # A jar that (transitively) contains its own id would loop forever.
        if parent_id in chain:
            continue
        _reverse_tree(parent_id, collated, depth + 1, chain, lines)


def reverse_jar_in_jar_report(results: Results, filter: str | None = None) -> list[str]:
    """Print every nested mod followed by the chain of mods that contain it.

    Mods that are never nested are not shown as roots. The filter selects
    roots by mod id; ancestors are always shown in full.
    """
    matches = _matcher(filter)
    collated = collate_parents(results)
    lines: list[str] = []
    for mod_id in sorted(collated):
        if not matches(mod_id) or not collated[mod_id].parent_ids:
            continue
        _reverse_tree(mod_id, collated, 0, (), lines)
    return lines


# ── Access wideners ───────────────────────────────────────────────────


@dataclass
class CollatedAccessWideners:
    file_names: set[str] = field(default_factory=set)
    access_wideners: set[str] = field(default_factory=set)


def access_widener_report(results: Results, filter: str | None = None) -> list[str]:
    """Print the access widener text of every mod that declares one.

    With a filter, only access widener files containing it are kept.
    """
    matches = _matcher(filter)
    collated: dict[str, CollatedAccessWideners] = {}
    for name, mod, _ in iter_mods(results):
        entry = collated.setdefault(mod.mod_id, CollatedAccessWideners())
        entry.file_names.add(name)
        if mod.access_widener is not None and matches(mod.access_widener):
            entry.access_wideners.add(mod.access_widener)

    lines: list[str] = []
    for mod_id in sorted(collated):
        entry = collated[mod_id]
        if not entry.access_wideners:
            continue
        lines.append(_heading(mod_id, entry.file_names))
        for text in sorted(entry.access_wideners):
            lines.extend(INDENT + line for line in text.splitlines())

    if not lines:
        lines.append(NO_MATCHING_JARS if filter is not None else NO_ACCESS_WIDENERS)
    return lines


# ── Raw ───────────────────────────────────────────────────────────────


def raw_report(results: Results) -> list[str]:
    """Dump every top-level result as-is, in discovery order."""
    return [f"{name} {pprint.pformat(result)}" for name, result in results]
