"""Package set provisioning.

Maps declared package names to the executables that provide them on the host.
This is the stand-in for the external package-set resolver: it reports what
is available and leaves the decision about missing tools to its callers.
"""

import logging
import shutil
from collections.abc import Callable
from collections.abc import Iterable
from pathlib import Path

from ..models.platforms import PackageSet

logger = logging.getLogger(__name__)

# Package name to the executable it provides, where they differ
PACKAGE_EXECUTABLES: dict[str, str] = {
    "capnproto": "capnp",
    "stdenv.cc": "cc",
}


def executable_for(package: str) -> str:
    return PACKAGE_EXECUTABLES.get(package, package)


def provision_package_set(
    platform: str,
    packages: Iterable[str],
    which: Callable[[str], str | None] = shutil.which,
) -> PackageSet:
    """Locate the executables for `packages` on the host.

    Packages that cannot be found are left out of the set.

    Args:
        platform: Platform the set is provisioned for
        packages: Package names to look up
        which: Executable lookup function

    Returns:
        PackageSet of the packages that were found
    """
    found: dict[str, Path] = {}
    for package in packages:
        location = which(executable_for(package))
        if location is None:
            logger.debug(f"Package '{package}' not found for {platform}")
            continue
        found[package] = Path(location)

    logger.debug(f"Provisioned {len(found)} packages for {platform}")
    return PackageSet(platform=platform, packages=found)
