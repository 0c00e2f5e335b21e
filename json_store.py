from __future__ import annotations

import os
from pathlib import Path


def read_text(path: Path) -> str | None:
    """
    Read a UTF-8 text file from disk.

    Returns None for missing files. Other I/O errors propagate.
    """
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None


def atomic_write_text(path: Path, payload: str) -> None:
    """
    Atomically write text to disk by writing to a temp file then replacing.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    with tmp_path.open("w", encoding="utf-8") as f:
        f.write(payload)
        f.flush()
        os.fsync(f.fileno())
    tmp_path.replace(path)
