"""Configuration loading for ionflake.

This module handles loading settings from YAML files and environment
variables.

Contract:
- Inputs: Config file paths, environment variables
- Outputs: IonflakeSettings objects
- Side Effects: Creates default config file if missing
"""

import logging
import os
from pathlib import Path

import yaml

from ..storage.paths import get_config_dir
from .settings import IonflakeSettings

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = """# ionflake configuration
# Project-specific declarations live in flake.yaml in the project root

log_level: "info"

# Directory holding flake.yaml
# Can be overridden with IONFLAKE_PROJECT_ROOT environment variable
# project_root: "."

# Platforms to evaluate (default: the descriptor's systems)
# systems: ["x86_64-linux"]

# Cargo target directory used by the local-debug/local-release profiles
target_dir: "target"

# Where sibling projects live for local profiles, by artifact name
# local_dir_overrides:
#   shellac: "../shellac-server"
"""


def get_config_path() -> Path:
    """Get path to config file.

    Returns:
        Path to ionflake.yaml in config directory
    """
    return get_config_dir() / "ionflake.yaml"


def create_default_config() -> None:
    """Create default config file if it doesn't exist."""
    config_path = get_config_path()

    if config_path.exists():
        logger.debug(f"Config file already exists: {config_path}")
        return

    config_path.write_text(DEFAULT_CONFIG, encoding="utf-8")
    logger.info(f"Created default config: {config_path}")


def load_config(config_path: Path | None = None) -> IonflakeSettings:
    """Load settings from YAML and environment.

    Environment variables take precedence over YAML settings.
    Variables should be prefixed with IONFLAKE_ (e.g., IONFLAKE_LOG_LEVEL).

    Args:
        config_path: Optional config file path (default: ionflake.yaml in config dir)

    Returns:
        Validated settings
    """
    if config_path is None:
        config_path = get_config_path()

    if not config_path.exists():
        create_default_config()

    yaml_settings = {}
    if config_path.exists():
        try:
            with open(config_path, encoding="utf-8") as f:
                yaml_settings = yaml.safe_load(f) or {}
            logger.debug(f"Loaded config from {config_path}")
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to load config from {config_path}: {e}")
            logger.info("Using default settings and environment variables")

    # Only pass YAML values that don't have corresponding env vars
    filtered_yaml = {}
    for key, value in yaml_settings.items():
        env_key = f"IONFLAKE_{key.upper()}"
        if env_key not in os.environ:
            filtered_yaml[key] = value

    settings = IonflakeSettings(**filtered_yaml)

    logger.debug(f"Configuration loaded: project_root={settings.project_root}, log_level={settings.log_level}")

    return settings
