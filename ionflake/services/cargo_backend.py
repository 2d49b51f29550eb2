"""Cargo build backend.

Builds a Rust crate with `cargo install --root`, which lays binaries out as
`<root>/bin/<name>`, the layout built artifacts expose.
"""

import logging
import os
import subprocess
from pathlib import Path
from typing import Protocol

from ..errors import BackendBuildError
from ..models.artifacts import ArtifactSpec
from ..models.platforms import PackageSet
from ..utils.hashing import hash_files

logger = logging.getLogger(__name__)

RUST_TARGETS: dict[str, str] = {
    "x86_64-linux": "x86_64-unknown-linux-gnu",
    "aarch64-linux": "aarch64-unknown-linux-gnu",
    "x86_64-darwin": "x86_64-apple-darwin",
    "aarch64-darwin": "aarch64-apple-darwin",
}


class BuildBackend(Protocol):
    """What the artifact builder needs from a build backend."""

    def closure_hash(self, spec: ArtifactSpec) -> str:
        """Recompute the SRI hash of the spec's resolved dependency closure."""
        ...

    def build(self, spec: ArtifactSpec, package_set: PackageSet, out_dir: Path) -> None:
        """Build `spec` into `out_dir`, leaving executables under `out_dir/bin`."""
        ...


class CargoBackend:
    """Build backend driving cargo.

    The dependency closure is defined by the crate's lock files, so its hash
    changes exactly when the resolved dependency set changes.
    """

    def __init__(self, extra_args: tuple[str, ...] = ()):
        self.extra_args = extra_args

    def closure_hash(self, spec: ArtifactSpec) -> str:
        try:
            return hash_files(spec.source, spec.lock_files)
        except FileNotFoundError as e:
            raise BackendBuildError(f"Cannot hash dependency closure of '{spec.name}': {e}") from e

    def build(self, spec: ArtifactSpec, package_set: PackageSet, out_dir: Path) -> None:
        target = RUST_TARGETS.get(package_set.platform)
        if target is None:
            raise BackendBuildError(f"No Rust target known for platform {package_set.platform}")

        cargo = package_set.get("cargo")
        command = [
            str(cargo) if cargo is not None else "cargo",
            "install",
            "--path",
            str(spec.source),
            "--root",
            str(out_dir),
            "--locked",
            "--no-track",
            "--target",
            target,
            *self.extra_args,
        ]

        env = dict(os.environ)
        env["PATH"] = os.pathsep.join([*package_set.bin_dirs(), env.get("PATH", "")]).rstrip(os.pathsep)

        logger.info(f"Building {spec.name} for {package_set.platform}: {' '.join(command)}")
        try:
            result = subprocess.run(command, cwd=spec.source, env=env, capture_output=True, text=True)
        except OSError as e:
            raise BackendBuildError(f"Failed to start cargo for '{spec.name}': {e}") from e

        if result.returncode != 0:
            raise BackendBuildError(
                f"cargo install failed for '{spec.name}' (exit {result.returncode})", diagnostics=result.stderr
            )

        logger.debug(f"cargo output for {spec.name}:\n{result.stderr}")
