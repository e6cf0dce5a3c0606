"""
Age-based cleanup of persisted media files.
"""

import logging
import os
import time
from datetime import timedelta
from pathlib import Path

from media_acquire.exceptions import MediaIOError

log = logging.getLogger(__name__)


def sweep(save_root: str | Path, max_age: timedelta) -> int:
    """
    Deletes regular files in `save_root` modified before `now - max_age`.

    Only the top level is scanned; subdirectories are left alone. Errors on
    individual files are skipped so a sweep can simply be run again. A zero
    (or negative) max_age expires every file regardless of timestamp
    granularity.

    Args:
        save_root: The directory to clean.
        max_age: Files strictly older than this are removed.

    Returns:
        The number of files removed.

    Raises:
        MediaIOError: If the directory itself cannot be listed.
    """
    save_root = Path(save_root)
    expire_all = max_age <= timedelta(0)
    cutoff = time.time() - max_age.total_seconds()

    try:
        with os.scandir(save_root) as it:
            entries = list(it)
    except OSError as e:
        raise MediaIOError(f"failed to read directory '{save_root}': {e}") from e

    removed = 0
    for entry in entries:
        try:
            if not entry.is_file(follow_symlinks=False):
                continue
            mtime = entry.stat(follow_symlinks=False).st_mtime
            if not expire_all and mtime >= cutoff:
                continue
            os.remove(entry.path)
        except OSError as e:
            log.debug(f"Skipping '{entry.name}' during cleanup: {e}")
            continue
        removed += 1
        log.debug(f"Removed expired file '{entry.name}'")

    if removed:
        log.info(f"Removed {removed} expired file(s) from [dim]{save_root}[/dim]")
    return removed
