"""Operator command models."""

from __future__ import annotations

from dataclasses import dataclass

from .wrappers import ComposedWrapper


@dataclass(frozen=True)
class Command:
    """A named command exposed by the development environment.

    Attributes:
        name: Command name, also the executable name inside the environment
        help: One-line description shown in the menu
        invocation: Literal shell command, or a composed wrapper to run
        category: Menu section the command is listed under
    """

    name: str
    help: str
    invocation: str | ComposedWrapper
    category: str = "general commands"

    def render_script(self) -> str:
        """Render the command as an executable shell script."""
        if isinstance(self.invocation, ComposedWrapper):
            return self.invocation.render_script()
        return f"#!/bin/sh\n{self.invocation}\n"
