"""Staging of intermediate .wat/.wasm artifacts with guaranteed cleanup.

WHY: wat2wasm reads and writes files, so every assembly needs a pair of
intermediate artifacts on disk. Concurrent assemblies (parallel CLI runs,
concurrent HTTP requests, asyncio.gather) must never share a pair, and the
files must disappear no matter how the assembly ends.

HOW: An ArtifactNamer produces a fresh stem for each assembly. It is
injected into the assembler, so uniqueness does not depend on process IDs
or any other property of the environment. staged_artifacts() is a context
manager that yields the two paths and removes both files on exit.
write_text() and read_bytes() wrap filesystem failures in ArtifactIOError.

RULES:
- Default namer: "rerun-" + uuid4 hex
- CounterNamer gives deterministic, monotonically increasing stems
- Cleanup runs on success and on every error path
- Missing files during cleanup are ignored; other cleanup failures are
  logged, never raised, so they cannot hide the original error
"""

from __future__ import annotations

import itertools
import logging
import threading
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator

from rerun.core.errors import ArtifactIOError

logger = logging.getLogger(__name__)

ArtifactNamer = Callable[[], str]
"""Zero-argument callable returning a stem unique among concurrent assemblies."""


def uuid_namer(prefix: str = "rerun") -> ArtifactNamer:
    """Return a namer that yields ``<prefix>-<uuid4 hex>`` stems."""

    def _name() -> str:
        return "{}-{}".format(prefix, uuid.uuid4().hex)

    return _name


class CounterNamer:
    """Thread-safe namer yielding ``<prefix>-1``, ``<prefix>-2``, ...

    Unique only within one namer instance; share the instance between all
    concurrent users of the same artifact directory.
    """

    def __init__(self, prefix: str = "rerun", start: int = 1) -> None:
        self._prefix = prefix
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def __call__(self) -> str:
        with self._lock:
            n = next(self._counter)
        return "{}-{}".format(self._prefix, n)


@dataclass(frozen=True)
class ArtifactPaths:
    """The text input and binary output of one assembly."""

    wat: Path
    wasm: Path


@contextmanager
def staged_artifacts(
    directory: Path,
    namer: ArtifactNamer,
    cleanup: bool = True,
) -> Iterator[ArtifactPaths]:
    """Yield a fresh .wat/.wasm path pair and remove both files afterwards.

    Args:
        directory: Where the artifacts live. Created if missing.
        namer: Produces the stem shared by both files.
        cleanup: False keeps the files for inspection.

    Raises:
        ArtifactIOError: The directory cannot be created.
    """
    directory = Path(directory)
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ArtifactIOError("create", directory, exc) from exc

    stem = namer()
    paths = ArtifactPaths(
        wat=directory / "{}.wat".format(stem),
        wasm=directory / "{}.wasm".format(stem),
    )
    try:
        yield paths
    finally:
        if cleanup:
            _remove(paths.wat)
            _remove(paths.wasm)
        else:
            logger.info("Keeping artifacts %s and %s", paths.wat, paths.wasm)


def _remove(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError:
        logger.warning("Failed to remove artifact: %s", path)


def write_text(path: Path, text: str) -> None:
    """Write ``text`` as UTF-8, raising ArtifactIOError on failure."""
    try:
        path.write_text(text, encoding="utf-8")
    except OSError as exc:
        raise ArtifactIOError("write", path, exc) from exc


def read_bytes(path: Path) -> bytes:
    """Read ``path`` as bytes, raising ArtifactIOError on failure."""
    try:
        return path.read_bytes()
    except OSError as exc:
        raise ArtifactIOError("read", path, exc) from exc
