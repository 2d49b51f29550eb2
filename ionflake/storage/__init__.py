"""Storage module for ionflake.

Public Interface:
    - get_home_dir: Get IONFLAKE_HOME
    - get_config_dir: Get config directory
    - get_state_dir: Get state directory
    - get_cache_dir: Get cache directory
    - get_git_cache_dir: Get git checkout cache
    - get_fsspec_cache_dir: Get remote download cache
    - get_artifacts_dir: Get built artifact store
"""

from .paths import get_artifacts_dir
from .paths import get_cache_dir
from .paths import get_config_dir
from .paths import get_fsspec_cache_dir
from .paths import get_git_cache_dir
from .paths import get_home_dir
from .paths import get_state_dir

__all__ = [
    "get_home_dir",
    "get_config_dir",
    "get_state_dir",
    "get_cache_dir",
    "get_git_cache_dir",
    "get_fsspec_cache_dir",
    "get_artifacts_dir",
]
