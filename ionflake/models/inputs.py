"""Input reference models.

An input is a named external source (the project itself, the companion
service repository). References are declared, then resolved exactly once per
evaluation into pinned snapshots on the local filesystem.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class InputReference:
    """A named external dependency.

    Attributes:
        name: Input identifier (e.g. "shellac-server")
        locator: Where the source lives: local path, github: shorthand, git+ URL or fsspec URL
        override: Locator that replaces `locator` for this evaluation
        pin: Git revision the resolved snapshot must be at
    """

    name: str
    locator: str
    override: str | None = None
    pin: str | None = None

    @property
    def effective_locator(self) -> str:
        return self.override or self.locator


@dataclass(frozen=True)
class ResolvedInput:
    """A concrete source snapshot produced by the input resolver.

    Attributes:
        name: Input identifier
        path: Local directory holding the snapshot
        locator: Locator that was actually resolved
        rev: Git commit hash, or None for local and fsspec sources
    """

    name: str
    path: Path
    locator: str
    rev: str | None = None
