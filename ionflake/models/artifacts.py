"""Artifact models.

An artifact is a built, runnable output: an executable under `bin/` plus any
auxiliary data directories. Composition only ever needs two things from an
artifact location, its `bin` directory and (for the companion service) its
completion data directory, so built artifacts and local path templates expose
the same two properties.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

COMPLETION_DIR = "completion"


@dataclass(frozen=True)
class ArtifactSpec:
    """Everything the artifact builder needs to build one artifact.

    Attributes:
        name: Artifact name (e.g. "ion")
        source: Source tree to build from
        executable: Name of the main executable the artifact installs
        build_tools: Package names required at build time, in declaration order
        pinned_hash: Expected SRI hash of the dependency closure, if pinned
        data_dirs: Source-relative directories shipped beside `bin/`
        lock_files: Source-relative files that define the dependency closure
    """

    name: str
    source: Path
    executable: str
    build_tools: tuple[str, ...] = ()
    pinned_hash: str | None = None
    data_dirs: tuple[str, ...] = ()
    lock_files: tuple[str, ...] = ("Cargo.lock",)


@dataclass(frozen=True)
class BuiltArtifact:
    """A built artifact in the artifact store.

    Referenced by composition, never copied or modified.

    Attributes:
        name: Artifact name
        platform: Platform the artifact was built for
        root: Store directory holding `bin/` and any data directories
        executable: Name of the main executable under `bin/`
        content_hash: SRI hash of the dependency closure the build used
        data_dirs: Data directories present under `root`
    """

    name: str
    platform: str
    root: Path
    executable: str
    content_hash: str
    data_dirs: tuple[str, ...] = ()

    @property
    def bin_dir(self) -> str:
        return str(self.root / "bin")

    @property
    def completion_dir(self) -> str | None:
        if COMPLETION_DIR not in self.data_dirs:
            return None
        return str(self.root / COMPLETION_DIR)


@dataclass(frozen=True)
class PathTemplate:
    """Location inside a sibling project's conventional build tree.

    Rendered relative to a shell variable (`$PROJECT_ROOT`) so the path is only
    interpreted when the wrapper runs. Nothing checks that it exists.

    Attributes:
        project_dir: Project directory relative to the root variable ("." for the project itself)
        build_subdir: Output directory inside the project (e.g. "target/debug")
        executable: Name of the main executable the build produces
        completion_subdir: Completion data directory inside the project, for the companion
        root_variable: Shell variable the template is rooted at
    """

    project_dir: str
    build_subdir: str
    executable: str
    completion_subdir: str | None = None
    root_variable: str = "PROJECT_ROOT"

    def _render(self, subdir: str) -> str:
        parts = [f"${self.root_variable}"]
        if self.project_dir not in ("", "."):
            parts.append(self.project_dir.strip("/"))
        parts.append(subdir.strip("/"))
        return "/".join(parts)

    @property
    def bin_dir(self) -> str:
        return self._render(self.build_subdir)

    @property
    def completion_dir(self) -> str | None:
        if self.completion_subdir is None:
            return None
        return self._render(self.completion_subdir)


ArtifactLocation = BuiltArtifact | PathTemplate
