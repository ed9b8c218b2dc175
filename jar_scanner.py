"""
Finding and traversing the jars in a mods directory.

Every top-level jar is traversed on its own worker thread. A jar that cannot
be read becomes a failed ``JarOutcome`` instead of taking the whole scan down,
unless the caller asks for ``fail_fast``.
"""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from errors import InspectorError, ScanAborted
from traversal import TraversalResult, traverse

JAR_EXTENSION = ".jar"

_log = logging.getLogger(__name__)


@dataclass
class JarOutcome:
    """Result of traversing one top-level jar: a result, or the error that stopped it."""

    file_name: str
    result: TraversalResult | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ScanReport:
    outcomes: list[JarOutcome] = field(default_factory=list)

    @property
    def results(self) -> list[tuple[str, TraversalResult]]:
        """Successful ``(file_name, result)`` pairs in discovery order."""
        return [(o.file_name, o.result) for o in self.outcomes if o.ok]

    @property
    def failures(self) -> list[JarOutcome]:
        return [o for o in self.outcomes if not o.ok]


def find_candidate_jars(directory: str | Path) -> list[Path]:
    """Return the regular ``.jar`` files directly inside ``directory``, sorted by name."""
    directory = Path(directory)
    return sorted(
        (f for f in directory.iterdir() if f.is_file() and f.suffix.lower() == JAR_EXTENSION),
        key=lambda f: f.name,
    )


def _traverse_file(path: Path) -> JarOutcome:
    try:
        with open(path, "rb") as fh:
            return JarOutcome(path.name, result=traverse(fh, path.name))
    except (InspectorError, OSError) as exc:
        _log.info("Could not read %s: %s", path.name, exc)
        return JarOutcome(path.name, error=exc)


def scan_jars(
    directory: str | Path,
    jobs: int | None = None,
    fail_fast: bool = False,
) -> ScanReport:
    """Traverse every candidate jar in ``directory`` in parallel.

    Outcomes come back in discovery order regardless of which worker finished
    first. With ``fail_fast`` the first failure (in discovery order) is raised
    as ``ScanAborted`` once all workers are done.
    """
    jars = find_candidate_jars(directory)
    _log.info("Found %d jar(s) in %s", len(jars), directory)

    report = ScanReport()
    if jars:
        with ThreadPoolExecutor(max_workers=jobs) as executor:
            report.outcomes = list(executor.map(_traverse_file, jars))

    if fail_fast and report.failures:
        first = report.failures[0]
        raise ScanAborted(first.file_name, first.error)

    _log.info(
        "Scan complete: %d jar(s) read, %d failed",
        len(report.outcomes) - len(report.failures), len(report.failures),
    )
    return report


def default_jobs() -> int | None:
    """Worker count from ``MOD_JAR_INSPECTOR_JOBS``, or None for the executor default."""
    raw = os.environ.get("MOD_JAR_INSPECTOR_JOBS")
    if not raw:
        return None
    try:
        jobs = int(raw)
    except ValueError:
        _log.warning("Ignoring MOD_JAR_INSPECTOR_JOBS=%r: not an integer", raw)
        return None
    if jobs < 1:
        _log.warning("Ignoring MOD_JAR_INSPECTOR_JOBS=%r: must be at least 1", raw)
        return None
    return jobs
