"""Environment composition service.

Derives a runnable wrapper from a profile and the locations of the primary
artifact and, optionally, its companion service.
"""

import logging

from ..errors import CompositionError
from ..models.artifacts import ArtifactLocation
from ..models.artifacts import BuiltArtifact
from ..models.artifacts import PathTemplate
from ..models.wrappers import ComposedWrapper
from ..models.wrappers import ExecutionProfile

logger = logging.getLogger(__name__)


def local_template(
    profile: ExecutionProfile | str,
    project_dir: str,
    executable: str,
    target_dir: str = "target",
    completion_subdir: str | None = None,
    root_variable: str = "PROJECT_ROOT",
) -> PathTemplate:
    """Location of a project's cargo output for a local profile.

    Args:
        profile: LOCAL_DEBUG or LOCAL_RELEASE
        project_dir: Project directory relative to the root variable
        executable: Main executable the project builds
        target_dir: Cargo target directory name
        completion_subdir: Completion data directory, for the companion project
        root_variable: Shell variable the template is rooted at

    Raises:
        CompositionError: If `profile` is not a local profile

    Example:
        >>> local_template("local-debug", "../shellac-server", "shellac").bin_dir
        '$PROJECT_ROOT/../shellac-server/target/debug'
    """
    profile = _coerce_profile(profile)
    if not profile.is_local:
        raise CompositionError(f"Profile '{profile.value}' does not use local path templates")

    return PathTemplate(
        project_dir=project_dir,
        build_subdir=f"{target_dir.rstrip('/')}/{profile.build_mode}",
        executable=executable,
        completion_subdir=completion_subdir,
        root_variable=root_variable,
    )


def _coerce_profile(profile: ExecutionProfile | str) -> ExecutionProfile:
    try:
        return ExecutionProfile(profile)
    except ValueError as e:
        valid = ", ".join(p.value for p in ExecutionProfile)
        raise CompositionError(f"Unknown execution profile '{profile}' (expected one of: {valid})") from e


class EnvironmentComposer:
    """Composes wrappers for the primary executable.

    Composition is deterministic: it reads nothing but its arguments. The only
    ambient value a wrapper touches is the caller's PATH, and only when it runs.
    """

    def __init__(self, discovery_variable: str = "SHELLAC_COMPLETIONS_DIR"):
        self.discovery_variable = discovery_variable

    def compose(
        self,
        profile: ExecutionProfile | str,
        primary: ArtifactLocation,
        companion: ArtifactLocation | None = None,
    ) -> ComposedWrapper:
        """Compose a wrapper for one profile.

        Args:
            profile: Execution profile the locations belong to
            primary: Location of the primary artifact
            companion: Location of the companion service, if one is requested

        Returns:
            Wrapper whose search path lists the companion's bin directory first,
            then the primary's; the discovery variable is set only with a companion

        Raises:
            CompositionError: If the profile is unknown or does not match the
                kind of locations given, or the companion has no completion data
        """
        profile = _coerce_profile(profile)
        if primary is None:
            raise CompositionError("A primary artifact location is required")

        locations = [("primary", primary)]
        if companion is not None:
            locations.insert(0, ("companion", companion))
        for role, location in locations:
            self._check_location(profile, role, location)

        search_path: list[str] = []
        variables: dict[str, str] = {}
        root_variable = "PROJECT_ROOT"

        if companion is not None:
            if companion.completion_dir is None:
                raise CompositionError(
                    f"Companion '{self._describe(companion)}' has no completion data directory for "
                    f"{self.discovery_variable}"
                )
            search_path.append(companion.bin_dir)
            variables[self.discovery_variable] = companion.completion_dir

        search_path.append(primary.bin_dir)

        for _, location in locations:
            if isinstance(location, PathTemplate):
                root_variable = location.root_variable

        wrapper = ComposedWrapper(
            profile=profile,
            search_path=tuple(search_path),
            command=primary.executable,
            variables=variables,
            root_variable=root_variable,
        )
        logger.debug(f"Composed {profile.value} wrapper: PATH+={list(wrapper.search_path)} exec {wrapper.command}")
        return wrapper

    def _check_location(self, profile: ExecutionProfile, role: str, location: ArtifactLocation) -> None:
        if profile is ExecutionProfile.PACKAGED:
            if not isinstance(location, BuiltArtifact):
                raise CompositionError(f"Profile 'packaged' needs a built {role} artifact, got a path template")
            return

        if not isinstance(location, PathTemplate):
            raise CompositionError(f"Profile '{profile.value}' needs a {role} path template, got a built artifact")
        if not location.build_subdir.endswith(f"/{profile.build_mode}"):
            raise CompositionError(
                f"{role.capitalize()} template '{location.bin_dir}' does not belong to profile '{profile.value}'"
            )

    @staticmethod
    def _describe(location: ArtifactLocation) -> str:
        if isinstance(location, BuiltArtifact):
            return location.name
        return location.executable
