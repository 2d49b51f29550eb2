"""Services for ionflake.

Public Interface:
    - InputResolver: Resolve input references to source snapshots
    - ArtifactBuilder: Build artifacts through a build backend
    - CargoBackend: Build backend driving cargo
    - EnvironmentComposer: Compose wrappers from artifact locations
    - CommandRegistry: Development environment commands
    - for_each_platform: Per-platform evaluation with failure isolation
    - FlakeEvaluator: Evaluate a flake descriptor
"""

from .artifact_builder import ArtifactBuilder
from .cargo_backend import BuildBackend
from .cargo_backend import CargoBackend
from .command_registry import CommandRegistry
from .command_registry import DevEnvironment
from .command_registry import build_registry
from .environment_composer import EnvironmentComposer
from .environment_composer import local_template
from .flake_evaluator import FlakeEvaluator
from .flake_evaluator import PlatformOutputs
from .package_sets import provision_package_set
from .platform_iterator import PlatformResult
from .platform_iterator import for_each_platform
from .ref_resolution import InputResolver

__all__ = [
    "ArtifactBuilder",
    "BuildBackend",
    "CargoBackend",
    "CommandRegistry",
    "DevEnvironment",
    "EnvironmentComposer",
    "FlakeEvaluator",
    "InputResolver",
    "PlatformOutputs",
    "PlatformResult",
    "build_registry",
    "for_each_platform",
    "local_template",
    "provision_package_set",
]
