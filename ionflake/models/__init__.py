"""Models for ionflake.

Runtime entities are frozen dataclasses; the on-disk flake descriptor is a
set of pydantic models.
"""

from .artifacts import ArtifactLocation
from .artifacts import ArtifactSpec
from .artifacts import BuiltArtifact
from .artifacts import PathTemplate
from .commands import Command
from .descriptor import FlakeDescriptor
from .inputs import InputReference
from .inputs import ResolvedInput
from .platforms import SUPPORTED_PLATFORMS
from .platforms import Overlay
from .platforms import PackageSet
from .platforms import apply_overlays
from .platforms import host_platform
from .wrappers import ComposedWrapper
from .wrappers import ExecutionProfile

__all__ = [
    "ArtifactLocation",
    "ArtifactSpec",
    "BuiltArtifact",
    "Command",
    "ComposedWrapper",
    "ExecutionProfile",
    "FlakeDescriptor",
    "InputReference",
    "Overlay",
    "PackageSet",
    "PathTemplate",
    "ResolvedInput",
    "SUPPORTED_PLATFORMS",
    "apply_overlays",
    "host_platform",
]
