"""Configuration module for ionflake.

Provides settings loading from YAML and environment variables, and flake
descriptor loading.

Public Interface:
    - IonflakeSettings: Settings model
    - load_config: Load settings
    - create_default_config: Create default config file
    - get_config_path: Get config file path
    - load_descriptor: Load flake.yaml
    - create_default_descriptor: Write the default flake.yaml
"""

from .descriptor import DEFAULT_DESCRIPTOR
from .descriptor import create_default_descriptor
from .descriptor import load_descriptor
from .descriptor import parse_descriptor
from .loader import create_default_config
from .loader import get_config_path
from .loader import load_config
from .settings import IonflakeSettings

__all__ = [
    "DEFAULT_DESCRIPTOR",
    "IonflakeSettings",
    "create_default_config",
    "create_default_descriptor",
    "get_config_path",
    "load_config",
    "load_descriptor",
    "parse_descriptor",
]
