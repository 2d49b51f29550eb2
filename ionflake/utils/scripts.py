"""Executable script materialisation."""

import os
import tempfile
from pathlib import Path


def write_script(path: Path, content: str) -> Path:
    """Atomically write an executable script.

    Args:
        path: Destination path
        content: Script text, including the shebang line

    Returns:
        The destination path
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.chmod(tmp_name, 0o755)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    return path
