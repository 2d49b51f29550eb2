"""Composed wrapper models."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from string import Template
from types import MappingProxyType


class ExecutionProfile(str, Enum):
    """Where the artifacts a wrapper runs are assumed to live.

    - PACKAGED: built artifacts in the artifact store
    - LOCAL_DEBUG: sibling projects' `target/debug` trees
    - LOCAL_RELEASE: sibling projects' `target/release` trees
    """

    PACKAGED = "packaged"
    LOCAL_DEBUG = "local-debug"
    LOCAL_RELEASE = "local-release"

    @property
    def is_local(self) -> bool:
        return self is not ExecutionProfile.PACKAGED

    @property
    def build_mode(self) -> str | None:
        """Cargo output directory name for local profiles."""
        return {
            ExecutionProfile.LOCAL_DEBUG: "debug",
            ExecutionProfile.LOCAL_RELEASE: "release",
        }.get(self)


def _quote(value: str) -> str:
    # Double quotes keep $PROJECT_ROOT expandable in templated segments.
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("`", "\\`")
    return f'"{escaped}"'


@dataclass(frozen=True)
class ComposedWrapper:
    """Runnable composition of a primary executable and its companion.

    Generated fresh for one profile and never mutated.

    Attributes:
        profile: Profile the wrapper was composed for
        search_path: Segments prepended to PATH, companion first
        command: Name of the primary executable, looked up through `search_path`
        variables: Service-discovery variables; empty when no companion is configured
        root_variable: Shell variable templated segments are rooted at
    """

    profile: ExecutionProfile
    search_path: tuple[str, ...]
    command: str
    variables: Mapping[str, str] = field(default_factory=dict)
    root_variable: str = "PROJECT_ROOT"

    def __post_init__(self) -> None:
        object.__setattr__(self, "variables", MappingProxyType(dict(self.variables)))

    @property
    def is_templated(self) -> bool:
        marker = f"${self.root_variable}"
        return any(marker in value for value in (*self.search_path, *self.variables.values()))

    def render_script(self) -> str:
        """Render the wrapper as a POSIX shell script.

        The existing PATH is kept after the new segments. The script ends by
        exec'ing the primary by name, so its exit status is the script's.

        Example:
            >>> wrapper = ComposedWrapper(ExecutionProfile.PACKAGED, ("/store/ion/bin",), "ion")
            >>> print(wrapper.render_script())
            #!/bin/sh
            export PATH="/store/ion/bin${PATH:+:$PATH}"
            exec ion "$@"
            <BLANKLINE>
        """
        lines = ["#!/bin/sh"]
        if self.is_templated:
            lines.append(f'{self.root_variable}="${{{self.root_variable}:-$PWD}}"')
        segments = _quote(":".join(self.search_path))[:-1]
        lines.append(f'export PATH={segments}${{PATH:+:$PATH}}"')
        for name, value in self.variables.items():
            lines.append(f"export {name}={_quote(value)}")
        lines.append(f'exec {self.command} "$@"')
        return "\n".join(lines) + "\n"

    def environment(self, base_env: Mapping[str, str], project_root: str | None = None) -> dict[str, str]:
        """Return the process environment the wrapper establishes over `base_env`.

        Args:
            base_env: Environment the wrapper is started from
            project_root: Value for the root variable; defaults to the one in `base_env`,
                else the current directory, as the rendered script does with $PWD

        Returns:
            New environment mapping; `base_env` is not modified
        """
        root = project_root if project_root is not None else base_env.get(self.root_variable, os.getcwd())
        substitutions = {self.root_variable: root}

        env = dict(base_env)
        segments = [Template(segment).safe_substitute(substitutions) for segment in self.search_path]
        existing = base_env.get("PATH")
        if existing:
            segments.append(existing)
        env["PATH"] = os.pathsep.join(segments)
        for name, value in self.variables.items():
            env[name] = Template(value).safe_substitute(substitutions)
        if self.is_templated:
            env[self.root_variable] = root
        return env
