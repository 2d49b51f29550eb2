"""Settings models for ionflake.

This module defines the ambient configuration of the tool itself, separate
from the per-project flake descriptor.

Contract:
- Inputs: Environment variables, YAML files
- Outputs: Validated settings objects
- Side Effects: None (read-only)
"""

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict


class IonflakeSettings(BaseSettings):
    """Configuration for ionflake.

    Attributes:
        log_level: Logging level (default: info)
        project_root: Directory holding flake.yaml (default: current directory)
        descriptor_file: Descriptor file name inside the project root
        lock_file: Lock file name inside the project root
        systems: Platforms to evaluate; empty means the descriptor's list
        target_dir: Cargo target directory name used by local profiles
        root_variable: Shell variable local path templates are rooted at
        local_dir_overrides: Artifact name to project directory, replacing the descriptor's local_dir
        shell: Shell started by `develop` when $SHELL is unset

    Example:
        >>> settings = IonflakeSettings()
        >>> assert settings.descriptor_file == "flake.yaml"
    """

    model_config = SettingsConfigDict(
        env_prefix="IONFLAKE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: str = "info"
    project_root: str = "."
    descriptor_file: str = "flake.yaml"
    lock_file: str = "ionflake.lock"

    systems: list[str] = []

    target_dir: str = "target"
    root_variable: str = "PROJECT_ROOT"
    local_dir_overrides: dict[str, str] = {}

    shell: str = "/bin/sh"

    @field_validator("project_root")
    @classmethod
    def expand_and_resolve_path(cls, v: str) -> str:
        """Expand ~ and resolve to absolute path."""
        return str(Path(v).expanduser().resolve())

    @property
    def descriptor_path(self) -> Path:
        return Path(self.project_root) / self.descriptor_file

    @property
    def lock_path(self) -> Path:
        return Path(self.project_root) / self.lock_file
