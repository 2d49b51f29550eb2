"""Tests for the development environment command registry."""

import os
import stat
from pathlib import Path

import pytest

from ionflake.errors import CompositionError
from ionflake.models.commands import Command
from ionflake.models.platforms import PackageSet
from ionflake.models.wrappers import ComposedWrapper
from ionflake.models.wrappers import ExecutionProfile
from ionflake.services.command_registry import CommandRegistry

RUN_ION = ComposedWrapper(
    profile=ExecutionProfile.LOCAL_DEBUG,
    search_path=("$PROJECT_ROOT/../shellac-server/target/debug", "$PROJECT_ROOT/target/debug"),
    command="ion",
    variables={"SHELLAC_COMPLETIONS_DIR": "$PROJECT_ROOT/../shellac-server/completion"},
)


@pytest.fixture
def commands() -> list[Command]:
    return [
        Command("fmt", "Check formatting", "cargo fmt --all -- --check"),
        Command("run-ion", "Executes debug version of ion shell with shellac", RUN_ION),
    ]


@pytest.fixture
def registry(commands: list[Command], package_set: PackageSet) -> CommandRegistry:
    return CommandRegistry("x86_64-linux", commands, package_set)


@pytest.mark.unit
class TestCommandRegistry:
    def test_lookup(self, registry: CommandRegistry) -> None:
        assert registry.names == ["fmt", "run-ion"]
        assert len(registry) == 2
        assert "fmt" in registry
        assert registry.get("run-ion").invocation == RUN_ION

    def test_unknown_command(self, registry: CommandRegistry) -> None:
        with pytest.raises(KeyError):
            registry.get("deploy")

    def test_duplicate_names(self, commands: list[Command], package_set: PackageSet) -> None:
        with pytest.raises(CompositionError, match="Duplicate command name 'fmt'"):
            CommandRegistry("x86_64-linux", [*commands, Command("fmt", "again", "true")], package_set)

    def test_menu_name_is_reserved(self, package_set: PackageSet) -> None:
        with pytest.raises(CompositionError, match="'menu'"):
            CommandRegistry("x86_64-linux", [Command("menu", "mine", "true")], package_set)

    def test_package_set_of_other_platform(self, commands: list[Command], package_set: PackageSet) -> None:
        with pytest.raises(CompositionError, match="aarch64-darwin"):
            CommandRegistry("aarch64-darwin", commands, package_set)

    def test_menu(self, registry: CommandRegistry) -> None:
        menu = registry.menu("ion-shell")

        assert menu.startswith("Welcome to ion-shell")
        assert "[general commands]" in menu
        assert "fmt" in menu and "Check formatting" in menu
        assert "run-ion - Executes debug version of ion shell with shellac" in menu
        assert "menu" in menu

    def test_menu_keeps_help_text_verbatim(self, package_set: PackageSet) -> None:
        commands = [
            Command("bench", "run benchmarks, pass extra flags after --", "cargo bench"),
            Command("ls", "", "ls"),
        ]
        menu = CommandRegistry("x86_64-linux", commands, package_set).menu("ion-shell")

        assert "  bench - run benchmarks, pass extra flags after --" in menu.splitlines()
        assert "  ls" in menu.splitlines()
        assert "ls -" not in menu

    def test_materialise_writes_executables(self, registry: CommandRegistry, tmp_path: Path) -> None:
        bin_dir = tmp_path / "devshell" / "bin"

        written = registry.materialise(bin_dir, "ion-shell")

        assert sorted(p.name for p in written) == ["fmt", "menu", "run-ion"]
        for path in written:
            assert path.stat().st_mode & stat.S_IXUSR
        assert (bin_dir / "fmt").read_text() == "#!/bin/sh\ncargo fmt --all -- --check\n"
        assert (bin_dir / "run-ion").read_text() == RUN_ION.render_script()
        assert "Welcome to ion-shell" in (bin_dir / "menu").read_text()

    def test_environment(self, registry: CommandRegistry, tmp_path: Path) -> None:
        bin_dir = tmp_path / "bin"

        env = registry.environment({"PATH": "/usr/bin", "TERM": "xterm"}, bin_dir, "/work/ion")

        assert env["PATH"].split(os.pathsep) == [str(bin_dir), "/opt/capnproto/bin", "/opt/rust/bin", "/usr/bin"]
        assert env["PROJECT_ROOT"] == "/work/ion"
        assert env["TERM"] == "xterm"
