"""Command registry for the development environment.

The registry is built once per platform when the environment is evaluated
and is never modified afterwards.
"""

import logging
import os
from collections.abc import Iterable
from collections.abc import Iterator
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from ..errors import CompositionError
from ..models.commands import Command
from ..models.descriptor import DevShellDecl
from ..models.platforms import PackageSet
from ..models.wrappers import ComposedWrapper
from ..utils.scripts import write_script

logger = logging.getLogger(__name__)

MENU_COMMAND = "menu"


class CommandRegistry:
    """Fixed set of named operator commands for one platform."""

    def __init__(self, platform: str, commands: Iterable[Command], package_set: PackageSet):
        """Initialize registry.

        Args:
            platform: Platform the registry belongs to
            commands: Commands in menu order
            package_set: Tools available inside the environment

        Raises:
            CompositionError: If two commands share a name, or the package set
                belongs to another platform
        """
        if package_set.platform != platform:
            raise CompositionError(f"Package set for {package_set.platform} given to {platform} registry")

        self.platform = platform
        self.package_set = package_set
        self._commands: tuple[Command, ...] = tuple(commands)

        seen: set[str] = set()
        for command in self._commands:
            if command.name in seen or command.name == MENU_COMMAND:
                raise CompositionError(f"Duplicate command name '{command.name}'")
            seen.add(command.name)

    def __iter__(self) -> Iterator[Command]:
        return iter(self._commands)

    def __len__(self) -> int:
        return len(self._commands)

    def __contains__(self, name: object) -> bool:
        return any(command.name == name for command in self._commands)

    @property
    def names(self) -> list[str]:
        return [command.name for command in self._commands]

    def get(self, name: str) -> Command:
        """Look up a command by name.

        Raises:
            KeyError: If no command has that name
        """
        for command in self._commands:
            if command.name == name:
                return command
        raise KeyError(name)

    def menu(self, title: str) -> str:
        """Render the command menu, grouped by category."""
        entries = [*self._commands, Command(MENU_COMMAND, "prints this menu", "", category="general commands")]
        width = max(len(command.name) for command in entries)

        categories: dict[str, list[Command]] = {}
        for command in entries:
            categories.setdefault(command.category, []).append(command)

        lines = [f"Welcome to {title}", ""]
        for category in sorted(categories):
            lines.append(f"[{category}]")
            lines.append("")
            for command in sorted(categories[category], key=lambda c: c.name):
                if command.help:
                    lines.append(f"  {command.name.ljust(width)} - {command.help}")
                else:
                    lines.append(f"  {command.name}")
            lines.append("")
        return "\n".join(lines)

    def materialise(self, bin_dir: Path, title: str) -> list[Path]:
        """Write every command as an executable script into `bin_dir`.

        The menu command is written too, printing the same menu as `menu()`.

        Returns:
            Paths of the written scripts
        """
        written = [write_script(bin_dir / command.name, command.render_script()) for command in self._commands]

        menu_text = self.menu(title).replace("'", "'\\''")
        written.append(write_script(bin_dir / MENU_COMMAND, f"#!/bin/sh\nprintf '%s\\n' '{menu_text}'\n"))

        logger.debug(f"Wrote {len(written)} command scripts to {bin_dir}")
        return written

    def environment(self, base_env: Mapping[str, str], bin_dir: Path, project_root: str) -> dict[str, str]:
        """Environment of the interactive shell: commands first, then packages, then the caller's PATH."""
        env = dict(base_env)
        segments = [str(bin_dir), *self.package_set.bin_dirs()]
        if base_env.get("PATH"):
            segments.append(base_env["PATH"])
        env["PATH"] = os.pathsep.join(segments)
        env["PROJECT_ROOT"] = project_root
        return env


@dataclass(frozen=True)
class DevEnvironment:
    """Interactive development environment for one platform.

    Attributes:
        name: Environment name shown in the menu
        platform: Platform the environment was evaluated for
        registry: Commands exposed by the environment
    """

    name: str
    platform: str
    registry: CommandRegistry

    @property
    def package_set(self) -> PackageSet:
        return self.registry.package_set


def build_registry(
    platform: str,
    dev_shell: DevShellDecl,
    wrappers: Mapping[str, ComposedWrapper],
    package_set: PackageSet,
) -> CommandRegistry:
    """Build the registry declared by the descriptor.

    Args:
        platform: Platform being evaluated
        dev_shell: Declared development environment
        wrappers: Composed wrappers by name, for commands that run one
        package_set: Tools provisioned for the platform

    Raises:
        CompositionError: If a command refers to a wrapper that was not composed
    """
    commands = []
    for decl in dev_shell.commands:
        if decl.wrapper is not None:
            wrapper = wrappers.get(decl.wrapper)
            if wrapper is None:
                raise CompositionError(
                    f"Command '{decl.name}' refers to wrapper '{decl.wrapper}' which was not composed"
                )
            invocation: str | ComposedWrapper = wrapper
        else:
            invocation = decl.command or ""
        commands.append(Command(name=decl.name, help=decl.help, invocation=invocation, category=decl.category))

    return CommandRegistry(platform, commands, package_set)
