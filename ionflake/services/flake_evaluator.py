"""Flake evaluation service.

Ties the input resolver, artifact builder, environment composer and command
registry together for each platform, producing the outputs the descriptor
declares:

    packages.<artifact>     built artifacts (the default package is the primary)
    wrappers.<name>         composed wrappers, one profile each
    dev environment         command registry plus provisioned packages

Outputs are evaluated on demand. Asking for the development environment or a
local-profile wrapper never builds anything; asking for a packaged wrapper
builds exactly the artifacts it composes.
"""

import logging
from collections.abc import Callable
from collections.abc import Sequence
from pathlib import Path
from typing import TypeVar

from ..config.settings import IonflakeSettings
from ..errors import CompositionError
from ..errors import ResolutionError
from ..models.artifacts import COMPLETION_DIR
from ..models.artifacts import ArtifactLocation
from ..models.artifacts import ArtifactSpec
from ..models.artifacts import BuiltArtifact
from ..models.descriptor import FlakeDescriptor
from ..models.inputs import InputReference
from ..models.inputs import ResolvedInput
from ..models.platforms import Overlay
from ..models.platforms import PackageSet
from ..models.platforms import apply_overlays
from ..models.wrappers import ComposedWrapper
from ..models.wrappers import ExecutionProfile
from ..storage.paths import get_artifacts_dir
from ..storage.paths import get_fsspec_cache_dir
from ..storage.paths import get_git_cache_dir
from ..storage.paths import get_state_dir
from ..utils.scripts import write_script
from .artifact_builder import ArtifactBuilder
from .cargo_backend import BuildBackend
from .cargo_backend import CargoBackend
from .command_registry import DevEnvironment
from .command_registry import build_registry
from .environment_composer import EnvironmentComposer
from .environment_composer import local_template
from .lock_file import load_lock
from .lock_file import write_lock
from .package_sets import provision_package_set
from .platform_iterator import PlatformResult
from .platform_iterator import for_each_platform
from .ref_resolution import InputResolver
from .ref_resolution import parse_reference

logger = logging.getLogger(__name__)

T = TypeVar("T")

Provisioner = Callable[[str, Sequence[str]], PackageSet]


class FlakeEvaluator:
    """Evaluates a flake descriptor.

    One evaluator is one evaluation: each input is resolved at most once and
    the outcome, success or failure, is shared by every platform that needs it.
    """

    def __init__(
        self,
        descriptor: FlakeDescriptor,
        settings: IonflakeSettings,
        backend: BuildBackend | None = None,
        overlays: Sequence[Overlay] = (),
        provisioner: Provisioner = provision_package_set,
        resolver: InputResolver | None = None,
        store_dir: Path | None = None,
        state_dir: Path | None = None,
    ):
        """Initialize evaluator.

        Args:
            descriptor: Validated flake descriptor
            settings: Ambient settings
            backend: Build backend (default: cargo)
            overlays: Package set extensions, applied once per platform on top of the provisioned set
            provisioner: External package set resolver
            resolver: Input resolver (default: one over the storage caches and the lock file)
            store_dir: Artifact store (default: $IONFLAKE_HOME/cache/artifacts)
            state_dir: Where wrappers and command scripts are written (default: $IONFLAKE_HOME/state)
        """
        self.descriptor = descriptor
        self.settings = settings
        self.backend = backend or CargoBackend()
        self.overlays = tuple(overlays)
        self.provisioner = provisioner
        self.project_root = Path(settings.project_root)
        self.resolver = resolver or InputResolver(
            project_root=self.project_root,
            git_cache_dir=get_git_cache_dir(),
            fsspec_cache_dir=get_fsspec_cache_dir(),
            locked_revs=load_lock(settings.lock_path),
        )
        self.store_dir = store_dir or get_artifacts_dir()
        self.state_dir = state_dir or get_state_dir()

        self._resolved: dict[str, ResolvedInput] = {}
        self._failed: dict[str, ResolutionError] = {}

    @property
    def platforms(self) -> list[str]:
        return list(self.settings.systems or self.descriptor.systems)

    def references(self) -> list[InputReference]:
        return [
            parse_reference(name, decl.url, override=decl.override, pin=decl.pin)
            for name, decl in self.descriptor.inputs.items()
        ]

    def resolve_input(self, name: str) -> ResolvedInput:
        """Resolve one declared input, once per evaluation.

        Raises:
            ResolutionError: If the input is undeclared or cannot be resolved
        """
        if name in self._resolved:
            return self._resolved[name]
        if name in self._failed:
            raise self._failed[name]

        reference = next((ref for ref in self.references() if ref.name == name), None)
        if reference is None:
            raise ResolutionError(f"Input '{name}' is not declared")

        try:
            resolved = self.resolver.resolve_reference(reference)
        except ResolutionError as e:
            self._failed[name] = e
            raise

        self._resolved[name] = resolved
        return resolved

    def resolve_inputs(self) -> dict[str, ResolvedInput]:
        """Resolve every declared input, checking them for conflicts first."""
        resolved = self.resolver.resolve(self.references())
        self._resolved.update(resolved)
        return resolved

    def lock(self) -> dict[str, ResolvedInput]:
        """Resolve every input and record the git revisions in the lock file."""
        resolved = self.resolve_inputs()
        write_lock(self.settings.lock_path, resolved)
        return resolved

    def provisioned_packages(self) -> list[str]:
        """Packages a platform needs: the dev environment's, every build tool, and cargo."""
        names: dict[str, None] = {}
        for package in self.descriptor.dev_shell.packages:
            names.setdefault(package, None)
        for artifact in self.descriptor.artifacts.values():
            for tool in artifact.build_tools:
                names.setdefault(tool, None)
        names.setdefault("cargo", None)
        return list(names)

    def evaluate(self, platform: str) -> "PlatformOutputs":
        """Set up the outputs of one platform.

        Raises:
            CompositionError: If the platform is not one the descriptor supports
        """
        if platform not in self.descriptor.systems:
            raise CompositionError(
                f"Platform {platform} is not supported (supported: {', '.join(self.descriptor.systems)})"
            )
        base = self.provisioner(platform, self.provisioned_packages())
        package_set = apply_overlays(base, self.overlays)
        return PlatformOutputs(self, platform, package_set)

    def evaluate_all(
        self,
        evaluate: Callable[["PlatformOutputs"], T],
        platforms: Sequence[str] | None = None,
    ) -> dict[str, PlatformResult[T]]:
        """Run `evaluate` against every platform's outputs, isolating failures per platform."""
        return for_each_platform(platforms or self.platforms, lambda platform: evaluate(self.evaluate(platform)))


class PlatformOutputs:
    """Outputs of one platform, evaluated on demand."""

    def __init__(self, evaluator: FlakeEvaluator, platform: str, package_set: PackageSet):
        self.evaluator = evaluator
        self.descriptor = evaluator.descriptor
        self.settings = evaluator.settings
        self.platform = platform
        self.package_set = package_set
        self.builder = ArtifactBuilder(evaluator.backend, package_set, evaluator.store_dir)
        self.composer = EnvironmentComposer(discovery_variable=self.descriptor.discovery_variable)
        self._built: dict[str, BuiltArtifact] = {}

    def artifact_spec(self, name: str) -> ArtifactSpec:
        """Build specification of a declared artifact, resolving its input.

        Raises:
            CompositionError: If the artifact is not declared
            ResolutionError: If its input cannot be resolved
        """
        decl = self.descriptor.artifacts.get(name)
        if decl is None:
            raise CompositionError(f"Artifact '{name}' is not declared")

        source = self.evaluator.resolve_input(decl.input).path
        if decl.subdir not in ("", "."):
            source = source / decl.subdir

        return ArtifactSpec(
            name=name,
            source=source,
            executable=decl.executable,
            build_tools=tuple(decl.build_tools),
            pinned_hash=decl.hash,
            data_dirs=tuple(decl.data_dirs),
            lock_files=tuple(decl.lock_files),
        )

    def build(self, name: str) -> BuiltArtifact:
        """Build a declared artifact once for this platform."""
        if name not in self._built:
            self._built[name] = self.builder.build(self.artifact_spec(name))
        return self._built[name]

    def default_package(self) -> BuiltArtifact:
        return self.build(self.descriptor.default_package)

    def location(self, name: str, profile: ExecutionProfile | str) -> ArtifactLocation:
        """Where an artifact lives under `profile`: built for packaged, templated for local profiles."""
        profile = ExecutionProfile(profile)
        if profile is ExecutionProfile.PACKAGED:
            return self.build(name)

        decl = self.descriptor.artifacts.get(name)
        if decl is None:
            raise CompositionError(f"Artifact '{name}' is not declared")

        return local_template(
            profile,
            project_dir=self.settings.local_dir_overrides.get(name, decl.local_dir),
            executable=decl.executable,
            target_dir=self.settings.target_dir,
            completion_subdir=COMPLETION_DIR if COMPLETION_DIR in decl.data_dirs else None,
            root_variable=self.settings.root_variable,
        )

    def compose(self, profile: ExecutionProfile | str, with_companion: bool = True) -> ComposedWrapper:
        """Compose the descriptor's primary (and companion) for `profile`.

        Raises:
            CompositionError: If the profile is unknown
        """
        try:
            profile = ExecutionProfile(profile)
        except ValueError as e:
            raise CompositionError(f"Unknown execution profile '{profile}'") from e

        composition = self.descriptor.composition
        companion = None
        if with_companion and composition.companion is not None:
            companion = self.location(composition.companion, profile)
        primary = self.location(composition.primary, profile)
        return self.composer.compose(profile, primary, companion)

    def wrapper(self, name: str) -> ComposedWrapper:
        """Compose a named wrapper.

        Raises:
            CompositionError: If no wrapper has that name
        """
        profile = self.descriptor.wrappers.get(name)
        if profile is None:
            raise CompositionError(f"Wrapper '{name}' is not declared")
        return self.compose(profile)

    def wrapper_path(self, name: str) -> Path:
        return self.evaluator.state_dir / self.platform / "bin" / name

    def write_wrapper(self, name: str, wrapper: ComposedWrapper) -> Path:
        """Materialise a wrapper as an executable script in the state directory."""
        return write_script(self.wrapper_path(name), wrapper.render_script())

    def dev_environment(self) -> DevEnvironment:
        """Build the development environment; composes only the wrappers its commands use."""
        dev_shell = self.descriptor.dev_shell
        wrappers = {
            command.wrapper: self.wrapper(command.wrapper) for command in dev_shell.commands if command.wrapper
        }
        registry = build_registry(self.platform, dev_shell, wrappers, self.package_set)
        return DevEnvironment(name=dev_shell.name, platform=self.platform, registry=registry)

    def dev_bin_dir(self) -> Path:
        return self.evaluator.state_dir / self.platform / "devshell" / "bin"


def summarize(outputs: PlatformOutputs, build: bool = False) -> dict:
    """Describe a platform's outputs for display.

    Local wrappers and the dev environment are always evaluated; packages and
    packaged wrappers only when `build` is set.
    """
    summary: dict = {"platform": outputs.platform, "wrappers": {}, "packages": {}}
    for name, profile in outputs.descriptor.wrappers.items():
        if profile is ExecutionProfile.PACKAGED and not build:
            summary["wrappers"][name] = f"{profile.value} (not built)"
            continue
        wrapper = outputs.wrapper(name)
        summary["wrappers"][name] = f"{profile.value}: PATH+={':'.join(wrapper.search_path)} exec {wrapper.command}"

    if build:
        for name in outputs.descriptor.artifacts:
            summary["packages"][name] = str(outputs.build(name).root)

    environment = outputs.dev_environment()
    summary["dev_shell"] = {"name": environment.name, "commands": environment.registry.names}
    missing = outputs.package_set.missing(outputs.descriptor.dev_shell.packages)
    if missing:
        summary["missing_packages"] = missing
    return summary


