"""Tests for flake descriptor validation."""

import pytest
from pydantic import ValidationError

from ionflake.models.descriptor import CommandDecl
from ionflake.models.descriptor import FlakeDescriptor


@pytest.mark.unit
class TestFlakeDescriptor:
    def test_sample_is_valid(self, descriptor_data: dict) -> None:
        descriptor = FlakeDescriptor.model_validate(descriptor_data)

        assert descriptor.artifacts[descriptor.default_package].executable == "ion"
        assert descriptor.discovery_variable == "SHELLAC_COMPLETIONS_DIR"
        assert descriptor.artifacts["ion"].lock_files == ["Cargo.lock"]

    def test_unknown_input(self, descriptor_data: dict) -> None:
        data = descriptor_data
        data["artifacts"]["ion"]["input"] = "nowhere"

        with pytest.raises(ValidationError, match="unknown input 'nowhere'"):
            FlakeDescriptor.model_validate(data)

    def test_default_package_must_be_declared(self, descriptor_data: dict) -> None:
        data = descriptor_data
        data["default_package"] = "zsh"

        with pytest.raises(ValidationError, match="default_package"):
            FlakeDescriptor.model_validate(data)

    def test_companion_must_be_declared(self, descriptor_data: dict) -> None:
        data = descriptor_data
        data["composition"]["companion"] = "fish-server"

        with pytest.raises(ValidationError, match="companion 'fish-server'"):
            FlakeDescriptor.model_validate(data)

    def test_command_wrapper_must_be_declared(self, descriptor_data: dict) -> None:
        data = descriptor_data
        del data["wrappers"]["ion-shellac-local"]

        with pytest.raises(ValidationError, match="unknown wrapper"):
            FlakeDescriptor.model_validate(data)

    def test_unknown_profile(self, descriptor_data: dict) -> None:
        data = descriptor_data
        data["wrappers"]["ion-shellac"] = "remote"

        with pytest.raises(ValidationError):
            FlakeDescriptor.model_validate(data)


@pytest.mark.unit
class TestCommandDecl:
    def test_needs_exactly_one_invocation(self) -> None:
        with pytest.raises(ValidationError, match="exactly one"):
            CommandDecl(name="both", command="true", wrapper="ion-shellac")
        with pytest.raises(ValidationError, match="exactly one"):
            CommandDecl(name="neither")

    def test_defaults(self) -> None:
        command = CommandDecl(name="fmt", command="cargo fmt")

        assert command.category == "general commands"
        assert command.help == ""
