"""Flake descriptor loading.

Contract:
- Inputs: Path to flake.yaml
- Outputs: Validated FlakeDescriptor
- Side Effects: `create_default_descriptor` writes flake.yaml
"""

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from ..errors import DescriptorError
from ..models.descriptor import FlakeDescriptor

logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTOR = """# ion shell build and composition descriptor
description: "Ion shell, optionally composed with the shellac completion server"

systems:
  - x86_64-linux
  - aarch64-linux
  - x86_64-darwin
  - aarch64-darwin

# Variable ion reads to find shellac's completion definitions
discovery_variable: SHELLAC_COMPLETIONS_DIR

inputs:
  ion-shell:
    url: "./."
  shellac-server:
    url: "github:gytis-ivaskevicius/shellac-server"

artifacts:
  ion:
    input: ion-shell
    executable: ion
    build_tools: [capnproto]
    # Pin the dependency closure once known: the first build logs the hash it got
    # hash: "sha256-..."
  shellac:
    input: shellac-server
    executable: shellac
    data_dirs: [completion]
    # Local profiles assume ../shellac-server exists and was built with cargo
    local_dir: "../shellac-server"

default_package: ion

composition:
  primary: ion
  companion: shellac

wrappers:
  ion-shellac: packaged
  ion-shellac-local: local-debug

dev_shell:
  name: ion-shell
  packages: [capnproto, rustc, cargo, rustfmt, stdenv.cc]
  commands:
    - name: fmt
      help: Check formatting
      command: 'cargo fmt --all --manifest-path "$PROJECT_ROOT/Cargo.toml" -- --check "$@"'
    - name: run-ion
      help: Executes debug version of ion shell with shellac
      wrapper: ion-shellac-local
"""


def create_default_descriptor(path: Path) -> bool:
    """Write the default descriptor if none exists.

    Returns:
        True if the file was created, False if it already existed
    """
    if path.exists():
        logger.debug(f"Descriptor already exists: {path}")
        return False

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(DEFAULT_DESCRIPTOR, encoding="utf-8")
    logger.info(f"Created default descriptor: {path}")
    return True


def parse_descriptor(text: str, source: str = "<string>") -> FlakeDescriptor:
    """Parse and validate descriptor YAML.

    Raises:
        DescriptorError: If the YAML is malformed or fails validation
    """
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise DescriptorError(f"Invalid YAML in {source}: {e}") from e

    try:
        return FlakeDescriptor.model_validate(data)
    except ValidationError as e:
        raise DescriptorError(f"Invalid descriptor {source}:\n{e}") from e


def load_descriptor(path: Path) -> FlakeDescriptor:
    """Load the descriptor from `path`.

    Raises:
        DescriptorError: If the file is missing or invalid
    """
    if not path.exists():
        raise DescriptorError(f"Descriptor not found: {path}\nRun 'ionflake init' to create one.")

    descriptor = parse_descriptor(path.read_text(encoding="utf-8"), source=str(path))
    logger.debug(f"Loaded descriptor {path}: {len(descriptor.artifacts)} artifacts, {len(descriptor.inputs)} inputs")
    return descriptor
