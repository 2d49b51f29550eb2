"""Artifact builder service.

Invokes the build backend for one artifact and places the result in the
artifact store.

Store Structure:
    cache/artifacts/{platform}/{name}-{input-key}/
      bin/
        {executable}
      completion/        (companion service only)
        ...
"""

import logging
import shutil
from pathlib import Path

from ..errors import BackendBuildError
from ..errors import HashMismatchError
from ..models.artifacts import ArtifactSpec
from ..models.artifacts import BuiltArtifact
from ..models.platforms import PackageSet
from ..utils.hashing import hash_tree
from ..utils.hashing import path_safe
from .cargo_backend import BuildBackend

logger = logging.getLogger(__name__)


def _ignore_non_essential(dir: str, files: list[str]) -> set[str]:
    """Ignore .git, __pycache__ and other non-essential directories."""
    return {name for name in files if name in {".git", "__pycache__", "target", "node_modules"}}


class ArtifactBuilder:
    """Builds artifacts for one platform.

    Builds are keyed by everything that can change their output: the
    dependency closure hash, the source tree, the build tools and the data
    directories. Building the same spec again with unchanged inputs returns the
    existing store entry.
    """

    def __init__(self, backend: BuildBackend, package_set: PackageSet, store_dir: Path):
        """Initialize builder.

        Args:
            backend: Build backend to invoke
            package_set: Tools provisioned for the platform being built for
            store_dir: Artifact store root (platform subdirectories are created below it)
        """
        self.backend = backend
        self.package_set = package_set
        self.platform_dir = Path(store_dir) / package_set.platform
        self.platform_dir.mkdir(parents=True, exist_ok=True)

    def build(self, spec: ArtifactSpec) -> BuiltArtifact:
        """Build `spec`, verifying its pinned hash.

        Args:
            spec: Artifact to build

        Returns:
            BuiltArtifact rooted in the artifact store

        Raises:
            BackendBuildError: If a build tool is missing or the backend fails
            HashMismatchError: If the recomputed closure hash differs from the pinned one

        Atomicity Guarantee:
            Uses a staging directory; the store entry only exists if the
            backend and the data directory copies all succeeded.
        """
        missing = self.package_set.missing(spec.build_tools)
        if missing:
            raise BackendBuildError(
                f"Missing build tools for '{spec.name}' on {self.package_set.platform}: {', '.join(missing)}"
            )

        content_hash = self.backend.closure_hash(spec)
        if spec.pinned_hash is None:
            logger.warning(f"Artifact '{spec.name}' has no pinned hash; got {content_hash}")
        elif spec.pinned_hash != content_hash:
            raise HashMismatchError(spec.name, specified=spec.pinned_hash, got=content_hash)

        final_dir = self.platform_dir / f"{spec.name}-{self._input_key(spec, content_hash)}"
        artifact = BuiltArtifact(
            name=spec.name,
            platform=self.package_set.platform,
            root=final_dir,
            executable=spec.executable,
            content_hash=content_hash,
            data_dirs=spec.data_dirs,
        )

        if final_dir.exists():
            logger.info(f"Using cached artifact: {final_dir}")
            return artifact

        staging_dir = self.platform_dir / f".staging-{final_dir.name}"
        if staging_dir.exists():
            shutil.rmtree(staging_dir)
        staging_dir.mkdir(parents=True)

        try:
            self.backend.build(spec, self.package_set, staging_dir)

            if not (staging_dir / "bin" / spec.executable).exists():
                raise BackendBuildError(f"Build of '{spec.name}' did not produce bin/{spec.executable}")

            for data_dir in spec.data_dirs:
                source = spec.source / data_dir
                if not source.is_dir():
                    raise BackendBuildError(f"Data directory '{data_dir}' not found in source of '{spec.name}'")
                shutil.copytree(source, staging_dir / data_dir, dirs_exist_ok=True, ignore=_ignore_non_essential)
                logger.debug(f"Copied {data_dir}/ into {spec.name}")

            staging_dir.rename(final_dir)

        except BackendBuildError:
            logger.error(f"Build failed for {spec.name} on {self.package_set.platform}")
            if staging_dir.exists():
                shutil.rmtree(staging_dir)
            raise
        except OSError as e:
            if staging_dir.exists():
                shutil.rmtree(staging_dir)
            raise BackendBuildError(f"Failed to store artifact '{spec.name}': {e}") from e

        logger.info(f"Built {spec.name} for {self.package_set.platform} → {final_dir}")
        return artifact

    def _input_key(self, spec: ArtifactSpec, content_hash: str) -> str:
        tools = ",".join(f"{tool}={self.package_set.get(tool)}" for tool in spec.build_tools)
        data = ",".join(spec.data_dirs)
        key = f"{content_hash}|{hash_tree(spec.source)}|{tools}|{data}|{spec.executable}"
        return path_safe(key)
