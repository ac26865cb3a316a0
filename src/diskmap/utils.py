"""Shared utility functions."""

from __future__ import annotations

import logging
import os
from pathlib import Path

log = logging.getLogger(__name__)


def xdg_config_home() -> Path:
    """Return XDG_CONFIG_HOME, defaulting to ~/.config."""
    return Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))


def xdg_data_home() -> Path:
    """Return XDG_DATA_HOME, defaulting to ~/.local/share."""
    return Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share"))


def normalize_path(path: str | os.PathLike[str]) -> str:
    """Return an absolute, lexically normalized path string.

    Symlinks are not resolved; ``..`` and duplicate separators are collapsed
    and ``~`` is expanded.
    """
    return os.path.normpath(os.path.abspath(os.path.expanduser(os.fspath(path))))


def is_under(path: str, ancestor: str) -> bool:
    """Whether ``path`` equals ``ancestor`` or lies below it on a segment boundary.

    ``/a/bc`` is not under ``/a/b``.
    """
    if path == ancestor:
        return True
    prefix = ancestor if ancestor.endswith(os.sep) else ancestor + os.sep
    return path.startswith(prefix)


def allocated_size(st: os.stat_result) -> int:
    """Bytes allocated on disk for a stat result, or the logical size if unknown."""
    blocks = getattr(st, "st_blocks", None)
    if blocks is None:
        return st.st_size
    return blocks * 512


def read_file_size(path: str) -> int:
    """Re-read the on-disk size of a file, returning 0 if it cannot be read."""
    try:
        return allocated_size(os.lstat(path))
    except OSError:
        log.debug("Cannot read size of %s", path)
        return 0


def bytes_to_human(size_bytes: int) -> str:
    """Convert byte count to a human-readable string."""
    if size_bytes < 0:
        return f"-{bytes_to_human(-size_bytes)}"
    if size_bytes == 0:
        return "0 B"

    units = ("B", "KB", "MB", "GB", "TB")
    value = float(size_bytes)
    for unit in units[:-1]:
        if abs(value) < 1024:
            return f"{value:.1f} {unit}" if unit != "B" else f"{int(value)} B"
        value /= 1024
    return f"{value:.1f} {units[-1]}"


def format_elapsed(seconds: float) -> str:
    """Format an elapsed time as a human-readable string."""
    if seconds < 1:
        return f"{seconds * 1000:.0f} ms"
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes = int(seconds) // 60
    secs = seconds - minutes * 60
    return f"{minutes}m {secs:.0f}s"
