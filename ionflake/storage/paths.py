"""Path resolution for ionflake storage locations.

This module provides path resolution based on IONFLAKE_HOME environment variable,
following XDG-like directory structure within that root.

Contract:
- Inputs: Environment variables (IONFLAKE_HOME, IONFLAKE_*_DIR overrides)
- Outputs: Resolved Path objects
- Side Effects: Creates directories if they don't exist
"""

import os
from pathlib import Path


def get_home_dir() -> Path:
    """Get IONFLAKE_HOME from environment.

    Returns:
        Path to root directory (default: .ionflake)
    """
    root = os.environ.get("IONFLAKE_HOME", ".ionflake")
    return Path(root).resolve()


def _resolve_dir(default: Path, env_var: str) -> Path:
    directory = default

    env_override: str | None = os.environ.get(env_var)
    if env_override is not None:
        directory = Path(env_override).resolve()

    directory.mkdir(parents=True, exist_ok=True)
    return directory


def get_config_dir() -> Path:
    """Get configuration directory.

    Returns:
        Path to config directory ($IONFLAKE_HOME/config)
    """
    return _resolve_dir(get_home_dir() / "config", "IONFLAKE_CONFIG_DIR")


def get_state_dir() -> Path:
    """Get state directory.

    Holds materialised wrappers and development environment scripts, which are
    regenerated on every evaluation.

    Returns:
        Path to state directory ($IONFLAKE_HOME/state)
    """
    return _resolve_dir(get_home_dir() / "state", "IONFLAKE_STATE_DIR")


def get_cache_dir() -> Path:
    """Get cache directory.

    Returns:
        Path to cache directory ($IONFLAKE_HOME/cache/)
    """
    return _resolve_dir(get_home_dir() / "cache", "IONFLAKE_CACHE_DIR")


def get_git_cache_dir() -> Path:
    """Get git checkout cache directory.

    Returns:
        Path to git cache ($IONFLAKE_HOME/cache/git)
    """
    git_cache_dir = get_cache_dir() / "git"
    git_cache_dir.mkdir(parents=True, exist_ok=True)
    return git_cache_dir


def get_fsspec_cache_dir() -> Path:
    """Get remote download cache directory.

    Returns:
        Path to fsspec cache ($IONFLAKE_HOME/cache/fsspec)
    """
    fsspec_cache_dir = get_cache_dir() / "fsspec"
    fsspec_cache_dir.mkdir(parents=True, exist_ok=True)
    return fsspec_cache_dir


def get_artifacts_dir() -> Path:
    """Get built artifact store.

    Returns:
        Path to artifact store ($IONFLAKE_HOME/cache/artifacts)
    """
    artifacts_dir = get_cache_dir() / "artifacts"
    artifacts_dir.mkdir(parents=True, exist_ok=True)
    return artifacts_dir
