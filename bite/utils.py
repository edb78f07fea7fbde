"""Utility functions for bite."""

import logging
import os
import stat
import sys
import tempfile
from pathlib import Path
from typing import Any


def log_and_print_error(message: str, *args: Any) -> None:
    """Log error message and print to stderr.

    Parameters
    ----------
    message : str
        Error message with optional format placeholders
    *args : Any
        Format arguments for message
    """
    logging.debug(message, *args)
    formatted_msg = message % args if args else message
    print(f"Error: {formatted_msg}", file=sys.stderr)


def atomic_file_write(path: Path, content: str) -> None:
    """Write file atomically using a sibling temp file and rename.

    The temporary file is created in the target's directory so the final
    ``os.replace`` stays on one filesystem. Symlinks are followed, so a
    linked file is replaced at its real location and the link survives.
    The original permission bits are kept.

    Parameters
    ----------
    path : Path
        Target file path
    content : str
        File content to write, written without newline translation

    Raises
    ------
    OSError
        Propagated from the write or rename after the temp file is removed;
        the target is untouched in that case
    """
    target = path.resolve()
    fd, temp_name = tempfile.mkstemp(
        prefix=f".{target.name}.", suffix=".tmp", dir=target.parent
    )
    temp_path = Path(temp_name)

    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())

        try:
            mode = stat.S_IMODE(target.stat().st_mode)
        except FileNotFoundError:
            mode = 0o600
        os.chmod(temp_path, mode)

        os.replace(temp_path, target)
    except BaseException:
        if temp_path.exists():
            temp_path.unlink()
        raise
