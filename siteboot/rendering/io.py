"""File I/O operations for the pipeline's on-disk artifacts."""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path

from ..core.errors import IOFailure


def ensure_parent(path: Path) -> None:
    """Ensure parent directories exist for the given path.

    Args:
        path: Path whose parent directories should be created
    """
    path.parent.mkdir(parents=True, exist_ok=True)


def atomic_write_bytes(path: Path, data: bytes, mode: int = 0o644) -> None:
    """Write bytes to a file atomically using a temporary file.

    Readers of ``path`` see either the previous content or the new content,
    never a partial write.

    Args:
        path: Destination file path
        data: Content to write
        mode: File permissions (octal)
    """
    ensure_parent(path)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
    try:
        with os.fdopen(fd, "wb") as tmp:
            tmp.write(data)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    finally:
        if os.path.exists(tmp_name):
            try:
                os.remove(tmp_name)
            except OSError:
                pass


def atomic_write_text(path: Path, text: str, mode: int = 0o644) -> None:
    """Write UTF-8 text to a file atomically."""
    atomic_write_bytes(path, text.encode("utf-8"), mode=mode)


def copy_once(source: Path, destination: Path) -> bool:
    """Copy ``source`` to ``destination`` unless the destination already exists.

    Returns:
        True when the copy was made, False when the destination was kept
    """
    if destination.exists():
        return False
    try:
        ensure_parent(destination)
        shutil.copy2(source, destination)
    except OSError as exc:
        raise IOFailure(f"Could not copy {source} to {destination}: {exc}") from exc
    return True


def touch(path: Path) -> None:
    """Create ``path`` as an empty file if it does not exist."""
    try:
        ensure_parent(path)
        path.touch(exist_ok=True)
    except OSError as exc:
        raise IOFailure(f"Could not create {path}: {exc}") from exc
