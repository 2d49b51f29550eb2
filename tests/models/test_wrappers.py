"""Tests for composed wrapper rendering and environments."""

import os

import pytest

from ionflake.models.wrappers import ComposedWrapper
from ionflake.models.wrappers import ExecutionProfile


@pytest.mark.unit
class TestExecutionProfile:
    def test_values(self) -> None:
        assert ExecutionProfile("packaged") is ExecutionProfile.PACKAGED
        assert ExecutionProfile("local-debug") is ExecutionProfile.LOCAL_DEBUG
        assert ExecutionProfile("local-release") is ExecutionProfile.LOCAL_RELEASE

    def test_build_modes(self) -> None:
        assert ExecutionProfile.PACKAGED.build_mode is None
        assert ExecutionProfile.LOCAL_DEBUG.build_mode == "debug"
        assert ExecutionProfile.LOCAL_RELEASE.build_mode == "release"
        assert not ExecutionProfile.PACKAGED.is_local
        assert ExecutionProfile.LOCAL_RELEASE.is_local


@pytest.mark.unit
class TestComposedWrapper:
    def test_render_packaged_script(self) -> None:
        wrapper = ComposedWrapper(
            profile=ExecutionProfile.PACKAGED,
            search_path=("/store/shellac/bin", "/store/ion/bin"),
            command="ion",
            variables={"SHELLAC_COMPLETIONS_DIR": "/store/shellac/completion"},
        )

        assert wrapper.render_script() == (
            "#!/bin/sh\n"
            'export PATH="/store/shellac/bin:/store/ion/bin${PATH:+:$PATH}"\n'
            'export SHELLAC_COMPLETIONS_DIR="/store/shellac/completion"\n'
            'exec ion "$@"\n'
        )

    def test_render_templated_script_defaults_root(self) -> None:
        wrapper = ComposedWrapper(
            profile=ExecutionProfile.LOCAL_DEBUG,
            search_path=("$PROJECT_ROOT/target/debug",),
            command="ion",
        )

        lines = wrapper.render_script().splitlines()

        assert lines[1] == 'PROJECT_ROOT="${PROJECT_ROOT:-$PWD}"'
        assert lines[2] == 'export PATH="$PROJECT_ROOT/target/debug${PATH:+:$PATH}"'
        assert lines[-1] == 'exec ion "$@"'

    def test_render_escapes_quotes(self) -> None:
        wrapper = ComposedWrapper(
            profile=ExecutionProfile.PACKAGED,
            search_path=("/store/ion/bin",),
            command="ion",
            variables={"NOTE": 'say "hi" `now`'},
        )

        assert 'export NOTE="say \\"hi\\" \\`now\\`"' in wrapper.render_script()

    def test_variables_are_read_only(self) -> None:
        wrapper = ComposedWrapper(ExecutionProfile.PACKAGED, ("/store/ion/bin",), "ion", {"A": "1"})

        with pytest.raises(TypeError):
            wrapper.variables["B"] = "2"  # type: ignore[index]

    def test_environment_prepends_search_path(self) -> None:
        wrapper = ComposedWrapper(
            profile=ExecutionProfile.PACKAGED,
            search_path=("/store/shellac/bin", "/store/ion/bin"),
            command="ion",
            variables={"SHELLAC_COMPLETIONS_DIR": "/store/shellac/completion"},
        )
        base = {"PATH": "/usr/bin", "HOME": "/home/u"}

        env = wrapper.environment(base)

        assert env["PATH"].split(":") == ["/store/shellac/bin", "/store/ion/bin", "/usr/bin"]
        assert env["SHELLAC_COMPLETIONS_DIR"] == "/store/shellac/completion"
        assert env["HOME"] == "/home/u"
        assert base == {"PATH": "/usr/bin", "HOME": "/home/u"}

    def test_environment_substitutes_project_root(self) -> None:
        wrapper = ComposedWrapper(
            profile=ExecutionProfile.LOCAL_DEBUG,
            search_path=("$PROJECT_ROOT/../shellac-server/target/debug", "$PROJECT_ROOT/target/debug"),
            command="ion",
            variables={"SHELLAC_COMPLETIONS_DIR": "$PROJECT_ROOT/../shellac-server/completion"},
        )

        env = wrapper.environment({}, project_root="/work/ion")

        assert env["PATH"].split(":") == ["/work/ion/../shellac-server/target/debug", "/work/ion/target/debug"]
        assert env["SHELLAC_COMPLETIONS_DIR"] == "/work/ion/../shellac-server/completion"
        assert env["PROJECT_ROOT"] == "/work/ion"

    def test_environment_without_companion_sets_no_variables(self) -> None:
        wrapper = ComposedWrapper(ExecutionProfile.PACKAGED, ("/store/ion/bin",), "ion")

        env = wrapper.environment({"PATH": "/usr/bin"})

        assert set(env) == {"PATH"}

    def test_environment_defaults_root_to_current_directory(self, tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        wrapper = ComposedWrapper(ExecutionProfile.LOCAL_DEBUG, ("$PROJECT_ROOT/target/debug",), "ion")

        env = wrapper.environment({})

        assert env["PROJECT_ROOT"] == os.getcwd()
        assert env["PATH"] == f"{os.getcwd()}/target/debug"
