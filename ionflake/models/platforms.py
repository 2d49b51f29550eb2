"""Platform identifiers and per-platform package sets.

A platform is an opaque system identifier such as "x86_64-linux". Everything
downstream of the platform iterator is parameterised by one platform and
never crosses into another.
"""

from __future__ import annotations

import platform as _platform
from collections.abc import Callable
from collections.abc import Iterable
from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path
from types import MappingProxyType

SUPPORTED_PLATFORMS: tuple[str, ...] = (
    "x86_64-linux",
    "aarch64-linux",
    "x86_64-darwin",
    "aarch64-darwin",
)

_MACHINE_ALIASES = {"amd64": "x86_64", "x64": "x86_64", "arm64": "aarch64"}


def host_platform() -> str:
    """Return the platform identifier of the running machine.

    Example:
        >>> host_platform() in SUPPORTED_PLATFORMS
        True
    """
    machine = _platform.machine().lower()
    machine = _MACHINE_ALIASES.get(machine, machine)
    system = _platform.system().lower()
    return f"{machine}-{system}"


@dataclass(frozen=True)
class PackageSet:
    """Tools provisioned for one platform.

    Constructed once per platform evaluation and passed explicitly to the
    artifact builder and the command registry.

    Attributes:
        platform: Platform the tools were provisioned for
        packages: Package name mapped to the executable that provides it
    """

    platform: str
    packages: Mapping[str, Path] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "packages", MappingProxyType(dict(self.packages)))

    def __contains__(self, name: object) -> bool:
        return name in self.packages

    def get(self, name: str) -> Path | None:
        return self.packages.get(name)

    def missing(self, names: Iterable[str]) -> list[str]:
        """Return the names that are not provided, in the order given."""
        return [name for name in names if name not in self.packages]

    def bin_dirs(self) -> tuple[str, ...]:
        """Directories holding the provided executables, deduplicated in declaration order."""
        seen: dict[str, None] = {}
        for executable in self.packages.values():
            seen.setdefault(str(Path(executable).parent), None)
        return tuple(seen)

    def with_packages(self, extra: Mapping[str, Path]) -> PackageSet:
        """Return a new set with `extra` added; later entries win."""
        return PackageSet(platform=self.platform, packages={**self.packages, **extra})


Overlay = Callable[[PackageSet], PackageSet]


def apply_overlays(base: PackageSet, overlays: Iterable[Overlay]) -> PackageSet:
    """Compose overlays over a base package set, left to right."""
    extended = base
    for overlay in overlays:
        extended = overlay(extended)
        if extended.platform != base.platform:
            raise ValueError(f"Overlay changed package set platform from {base.platform} to {extended.platform}")
    return extended
