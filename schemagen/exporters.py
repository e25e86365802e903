# File: schemagen/exporters.py
"""
schemagen - Artifact Sinks
============================
Output targets for rendered artifacts.  A sink accepts
``(artifact_name, text_content)`` pairs; the generator owns one sink for
entity modules and one for migration scripts.

    - ``DirectorySink`` writes ``<directory>/<file name>.py`` atomically
      (write to a temp file, then rename) and keeps a record per file.
    - ``MemorySink`` keeps everything in an ordered dict (dry runs, tests).

A failed write leaves every earlier file intact; there is no rollback.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Protocol, runtime_checkable

from schemagen.utils import count_lines, ensure_directory, write_file

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.exporters")


@runtime_checkable
class ArtifactSink(Protocol):
    """Destination for rendered artifacts."""

    def write(self, name: str, content: str) -> None:
        ...


@dataclass(frozen=True, slots=True)
class FileRecord:
    """Immutable record of a single written artifact."""

    name: str
    path: str
    size_bytes: int
    line_count: int


@dataclass(slots=True)
class MemorySink:
    """Collects artifacts in write order."""

    artifacts: Dict[str, str] = field(default_factory=dict)

    def write(self, name: str, content: str) -> None:
        self.artifacts[name] = content
        logger.debug("Captured artifact %s (%d lines).", name, count_lines(content))

    @property
    def names(self) -> List[str]:
        return list(self.artifacts.keys())

    def __len__(self) -> int:
        return len(self.artifacts)


class DirectorySink:
    """
    Writes each artifact to ``directory / (naming(name) + suffix)``.

    ``naming`` maps artifact names to file stems, e.g. ``OrderItem`` →
    ``order_item`` for entity modules; migrations keep their names as-is.
    """

    def __init__(
        self,
        directory: Path,
        *,
        naming: Callable[[str], str] = str,
        suffix: str = ".py",
        atomic: bool = True,
    ) -> None:
        self._directory: Path = Path(directory)
        self._naming: Callable[[str], str] = naming
        self._suffix: str = suffix
        self._atomic: bool = atomic
        self.records: List[FileRecord] = []

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, name: str) -> Path:
        return self._directory / f"{self._naming(name)}{self._suffix}"

    def write(self, name: str, content: str) -> None:
        target: Path = self.path_for(name)
        size: int = write_file(target, content, atomic=self._atomic)
        self.records.append(FileRecord(
            name=name,
            path=str(target),
            size_bytes=size,
            line_count=count_lines(content),
        ))
        logger.info("Wrote %s", target)

    def prepare(self) -> None:
        """Create the target directory up front."""
        ensure_directory(self._directory)

    @property
    def total_bytes(self) -> int:
        return sum(r.size_bytes for r in self.records)

    def __repr__(self) -> str:
        return f"<DirectorySink {self._directory} files={len(self.records)}>"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = ["ArtifactSink", "DirectorySink", "FileRecord", "MemorySink"]

logger.debug("schemagen.exporters loaded.")
