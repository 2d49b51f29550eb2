"""Flake descriptor models.

The descriptor (`flake.yaml` in the project root) declares inputs, the
artifacts built from them, how the primary and companion artifacts are
composed, and the development environment.
"""

from typing import Self

from pydantic import BaseModel
from pydantic import Field
from pydantic import model_validator

from .platforms import SUPPORTED_PLATFORMS
from .wrappers import ExecutionProfile


class InputDecl(BaseModel):
    """Declared external source."""

    url: str = Field(description="Locator: local path, github:owner/repo[/ref], git+URL or fsspec URL")
    override: str | None = Field(default=None, description="Locator used instead of url")
    pin: str | None = Field(default=None, description="Git revision the input must resolve to")


class ArtifactDecl(BaseModel):
    """Declared artifact built from one input."""

    input: str = Field(description="Name of the input holding the source tree")
    subdir: str = Field(default=".", description="Source directory inside the input")
    executable: str = Field(description="Main executable the artifact installs into bin/")
    build_tools: list[str] = Field(default_factory=list, description="Packages required at build time")
    hash: str | None = Field(default=None, description="Pinned SRI hash of the dependency closure")
    data_dirs: list[str] = Field(default_factory=list, description="Source directories shipped beside bin/")
    lock_files: list[str] = Field(default_factory=lambda: ["Cargo.lock"], description="Files defining the closure")
    local_dir: str = Field(
        default=".", description="Project directory relative to the project root for local profiles"
    )


class CompositionDecl(BaseModel):
    """Which artifacts a wrapper composes."""

    primary: str = Field(description="Artifact whose executable the wrapper runs")
    companion: str | None = Field(default=None, description="Companion service artifact, if any")


class CommandDecl(BaseModel):
    """Development environment command."""

    name: str
    help: str = ""
    category: str = "general commands"
    command: str | None = Field(default=None, description="Literal shell command")
    wrapper: str | None = Field(default=None, description="Name of a wrapper to run")

    @model_validator(mode="after")
    def check_invocation(self) -> Self:
        if (self.command is None) == (self.wrapper is None):
            raise ValueError(f"Command '{self.name}' must set exactly one of 'command' or 'wrapper'")
        return self


class DevShellDecl(BaseModel):
    """Interactive development environment."""

    name: str
    packages: list[str] = Field(default_factory=list, description="Packages put on PATH")
    commands: list[CommandDecl] = Field(default_factory=list)


class FlakeDescriptor(BaseModel):
    """Complete flake descriptor.

    Example:
        >>> descriptor = FlakeDescriptor.model_validate(yaml.safe_load(text))
        >>> descriptor.artifacts[descriptor.default_package].executable
        'ion'
    """

    description: str = ""
    systems: list[str] = Field(default_factory=lambda: list(SUPPORTED_PLATFORMS))
    discovery_variable: str = Field(
        default="SHELLAC_COMPLETIONS_DIR", description="Variable naming the companion's completion data"
    )
    inputs: dict[str, InputDecl]
    artifacts: dict[str, ArtifactDecl]
    default_package: str
    composition: CompositionDecl
    wrappers: dict[str, ExecutionProfile] = Field(default_factory=dict, description="Wrapper name to profile")
    dev_shell: DevShellDecl

    @model_validator(mode="after")
    def check_references(self) -> Self:
        for name, artifact in self.artifacts.items():
            if artifact.input not in self.inputs:
                raise ValueError(f"Artifact '{name}' refers to unknown input '{artifact.input}'")
        if self.default_package not in self.artifacts:
            raise ValueError(f"default_package '{self.default_package}' is not a declared artifact")
        for role, artifact in (("primary", self.composition.primary), ("companion", self.composition.companion)):
            if artifact is not None and artifact not in self.artifacts:
                raise ValueError(f"Composition {role} '{artifact}' is not a declared artifact")
        for command in self.dev_shell.commands:
            if command.wrapper is not None and command.wrapper not in self.wrappers:
                raise ValueError(f"Command '{command.name}' refers to unknown wrapper '{command.wrapper}'")
        return self
