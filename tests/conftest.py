"""
Shared pytest fixtures for the ionflake test suite.

Provides fixtures for:
- Temporary storage directories
- A sample project with the ion shell and its companion checkout
- A recording build backend
- Package sets and provisioners
"""

import tempfile
from collections.abc import Generator
from collections.abc import Sequence
from pathlib import Path

import pytest
import yaml

from ionflake.config.descriptor import parse_descriptor
from ionflake.config.settings import IonflakeSettings
from ionflake.errors import BackendBuildError
from ionflake.models.artifacts import ArtifactSpec
from ionflake.models.descriptor import FlakeDescriptor
from ionflake.models.platforms import PackageSet
from ionflake.services.flake_evaluator import FlakeEvaluator
from ionflake.utils.hashing import hash_files

SAMPLE_DESCRIPTOR = """
description: "Ion shell with shellac"
systems: [x86_64-linux, aarch64-linux, x86_64-darwin, aarch64-darwin]
inputs:
  ion-shell:
    url: "./."
  shellac-server:
    url: "../shellac-server"
artifacts:
  ion:
    input: ion-shell
    executable: ion
    build_tools: [capnproto]
  shellac:
    input: shellac-server
    executable: shellac
    data_dirs: [completion]
    local_dir: "../shellac-server"
default_package: ion
composition:
  primary: ion
  companion: shellac
wrappers:
  ion-shellac: packaged
  ion-shellac-local: local-debug
dev_shell:
  name: ion-shell
  packages: [capnproto, rustc, cargo, rustfmt]
  commands:
    - name: fmt
      help: Check formatting
      command: 'echo formatted "$@"'
    - name: run-ion
      help: Executes debug version of ion shell with shellac
      wrapper: ion-shellac-local
"""

SAMPLE_PACKAGES = {
    "capnproto": Path("/opt/capnproto/bin/capnp"),
    "cargo": Path("/opt/rust/bin/cargo"),
    "rustc": Path("/opt/rust/bin/rustc"),
    "rustfmt": Path("/opt/rust/bin/rustfmt"),
}


class FakeBackend:
    """Build backend that writes a stub executable instead of running cargo.

    Attributes:
        builds: (artifact name, platform) of every build performed
        fail_for: Artifact names whose build fails
        hash_override: Closure hash reported for every artifact, if set
    """

    def __init__(self, fail_for: Sequence[str] = (), hash_override: str | None = None):
        self.builds: list[tuple[str, str]] = []
        self.fail_for = set(fail_for)
        self.hash_override = hash_override

    def closure_hash(self, spec: ArtifactSpec) -> str:
        if self.hash_override is not None:
            return self.hash_override
        return hash_files(spec.source, spec.lock_files)

    def build(self, spec: ArtifactSpec, package_set: PackageSet, out_dir: Path) -> None:
        self.builds.append((spec.name, package_set.platform))
        if spec.name in self.fail_for:
            raise BackendBuildError(f"cargo install failed for '{spec.name}' (exit 101)", diagnostics="error[E0425]")
        bin_dir = out_dir / "bin"
        bin_dir.mkdir(parents=True, exist_ok=True)
        (bin_dir / spec.executable).write_text("#!/bin/sh\n")


@pytest.fixture
def temp_storage_dir() -> Generator[Path, None, None]:
    """Create temporary storage directory for tests.

    Automatically cleaned up after test completes.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def mock_storage_env(temp_storage_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point IONFLAKE_HOME at a temp directory.

    Directory overrides are cleared so every storage location lives under the
    temporary home.

    Returns:
        Path to temporary storage directory
    """
    monkeypatch.setenv("IONFLAKE_HOME", str(temp_storage_dir))
    for var in ("IONFLAKE_CONFIG_DIR", "IONFLAKE_STATE_DIR", "IONFLAKE_CACHE_DIR"):
        monkeypatch.delenv(var, raising=False)
    return temp_storage_dir


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Directory holding the ion shell project and its sibling shellac-server checkout."""
    ion = tmp_path / "ion"
    (ion / "src").mkdir(parents=True)
    (ion / "Cargo.toml").write_text('[package]\nname = "ion-shell"\n')
    (ion / "Cargo.lock").write_text("# ion lock\nversion = 3\n")
    (ion / "src" / "main.rs").write_text("fn main() {}\n")
    (ion / "flake.yaml").write_text(SAMPLE_DESCRIPTOR)

    shellac = tmp_path / "shellac-server"
    (shellac / "completion").mkdir(parents=True)
    (shellac / "Cargo.toml").write_text('[package]\nname = "shellac-server"\n')
    (shellac / "Cargo.lock").write_text("# shellac lock\nversion = 3\n")
    (shellac / "completion" / "git.yaml").write_text("git: {}\n")
    return tmp_path


@pytest.fixture
def project_root(workspace: Path) -> Path:
    return workspace / "ion"


@pytest.fixture
def descriptor_data() -> dict:
    """Raw sample descriptor, safe to mutate."""
    return yaml.safe_load(SAMPLE_DESCRIPTOR)


@pytest.fixture
def descriptor() -> FlakeDescriptor:
    return parse_descriptor(SAMPLE_DESCRIPTOR)


@pytest.fixture
def settings(project_root: Path, mock_storage_env: Path) -> IonflakeSettings:
    return IonflakeSettings(project_root=str(project_root))


@pytest.fixture
def package_set() -> PackageSet:
    return PackageSet(platform="x86_64-linux", packages=SAMPLE_PACKAGES)


@pytest.fixture
def provisioner():
    """Provisioner reporting the sample packages on every platform."""

    def provision(platform: str, packages: Sequence[str]) -> PackageSet:
        return PackageSet(platform=platform, packages={n: p for n, p in SAMPLE_PACKAGES.items() if n in packages})

    return provision


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def backend_factory() -> type[FakeBackend]:
    """The recording backend class, for tests that need a failing or customised one."""
    return FakeBackend


@pytest.fixture
def evaluator(
    descriptor: FlakeDescriptor,
    settings: IonflakeSettings,
    backend: FakeBackend,
    provisioner,
    tmp_path: Path,
) -> FlakeEvaluator:
    """Evaluator over the sample project with isolated store and state directories."""
    return FlakeEvaluator(
        descriptor,
        settings,
        backend=backend,
        provisioner=provisioner,
        store_dir=tmp_path / "store",
        state_dir=tmp_path / "state",
    )
