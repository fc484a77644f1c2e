"""Small filesystem helpers shared across the pipeline."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path


def _atomic_write(path: Path, content: str) -> None:
    """Write text to ``path`` via a temp file + rename so readers never see a partial file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
