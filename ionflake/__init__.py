"""ionflake: build and composition of the ion shell.

Public Interface:
    Modules:
    - config: Settings and flake descriptor loading
    - storage: Storage locations under IONFLAKE_HOME
    - models: Inputs, artifacts, wrappers and commands
    - services: Resolution, building, composition and the command registry
    - cli: Command line entry point
"""

__version__ = "0.1.0"

from .errors import BackendBuildError
from .errors import CompositionError
from .errors import DescriptorError
from .errors import HashMismatchError
from .errors import IonflakeError
from .errors import ResolutionError

__all__ = [
    "BackendBuildError",
    "CompositionError",
    "DescriptorError",
    "HashMismatchError",
    "IonflakeError",
    "ResolutionError",
]
