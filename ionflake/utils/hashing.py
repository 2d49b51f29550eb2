"""Content hashing for reproducibility checks.

Hashes are SRI strings (`sha256-<base64>`), the format pinned hashes are
written in.
"""

import base64
import hashlib
from collections.abc import Iterable
from pathlib import Path

DEFAULT_EXCLUDES = frozenset({".git", "target", "__pycache__", "node_modules", ".ionflake"})


def to_sri(digest: bytes) -> str:
    return "sha256-" + base64.b64encode(digest).decode("ascii")


def hash_files(root: Path, relative_paths: Iterable[str]) -> str:
    """Hash named files under `root`.

    Each file contributes its root-relative path and its bytes, in sorted path
    order, so the result does not depend on declaration order.

    Args:
        root: Directory the paths are relative to
        relative_paths: Files to include

    Returns:
        SRI sha256 hash

    Raises:
        FileNotFoundError: If a listed file does not exist
    """
    sha = hashlib.sha256()
    for relative in sorted(set(relative_paths)):
        path = root / relative
        if not path.is_file():
            raise FileNotFoundError(f"Hashed file not found: {path}")
        sha.update(relative.encode("utf-8") + b"\0")
        sha.update(path.read_bytes())
        sha.update(b"\0")
    return to_sri(sha.digest())


def hash_tree(root: Path, excludes: frozenset[str] = DEFAULT_EXCLUDES) -> str:
    """Hash every regular file under `root`, skipping excluded directory names."""
    files = []
    for path in root.rglob("*"):
        relative = path.relative_to(root)
        if any(part in excludes for part in relative.parts):
            continue
        if path.is_file():
            files.append(relative.as_posix())
    return hash_files(root, files)


def path_safe(sri: str, length: int = 16) -> str:
    """Short filesystem-safe key derived from an SRI hash."""
    return hashlib.sha256(sri.encode("utf-8")).hexdigest()[:length]
