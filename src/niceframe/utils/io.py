"""Filesystem helper utilities."""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path
from typing import Callable


def replace_atomically(path: Path, write: Callable[[Path], None]) -> None:
    """Let ``write`` fill a sibling temporary file, then rename it over ``path``.

    The target either keeps its previous bytes or receives the complete new
    content; the temporary file is removed when ``write`` fails.
    """
    fd, name = tempfile.mkstemp(prefix=f".{path.stem}.", suffix=path.suffix, dir=path.parent)
    os.close(fd)
    temp_path = Path(name)
    try:
        write(temp_path)
        if path.exists():
            shutil.copymode(path, temp_path)
        os.replace(temp_path, path)
    except BaseException:
        temp_path.unlink(missing_ok=True)
        raise
