"""
Generates unique file names from a content key and a time salt.
"""

import hashlib
import time
from pathlib import Path

SHORT_HASH_LENGTH = 16


def short_hash(content_key: str) -> str:
    """Returns the first 16 hex characters of the SHA-256 of a key."""
    return hashlib.sha256(content_key.encode("utf-8")).hexdigest()[:SHORT_HASH_LENGTH]


def generate_file_name(
    content_key: str, extension: str, prefix: str, salt: int | None = None
) -> str:
    """
    Builds `<prefix>_<hash>_<salt>.<ext>`.

    The same key and salt always give the same name; the salt (nanoseconds
    since the epoch by default) keeps repeated downloads of one URL apart.
    """
    if salt is None:
        salt = time.time_ns()
    return f"{prefix}_{short_hash(content_key)}_{salt}.{extension.lstrip('.')}"


def unique_path(directory: Path, content_key: str, extension: str, prefix: str) -> Path:
    """
    Returns a path in `directory` that does not exist yet.

    Clocks with coarse resolution can hand out the same nanosecond value twice,
    so the salt is bumped until the name is free.
    """
    salt = time.time_ns()
    while True:
        candidate = directory / generate_file_name(content_key, extension, prefix, salt)
        if not candidate.exists():
            return candidate
        salt += 1
