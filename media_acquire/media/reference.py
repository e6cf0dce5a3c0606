"""
Utilities for classifying media references and validating download URLs.
"""

from urllib.parse import urlparse

from media_acquire.exceptions import InvalidReferenceError
from media_acquire.models.media import ReferenceKind

REMOTE_PREFIXES = ("http://", "https://")


def is_remote_url(reference: str) -> bool:
    """Returns True if the reference starts with http:// or https:// (any case)."""
    return reference.lower().startswith(REMOTE_PREFIXES)


def classify(reference: str) -> ReferenceKind:
    """
    Decides how a reference is resolved. Anything that is not an http(s) URL
    is treated as a local path, without touching the filesystem.
    """
    if is_remote_url(reference):
        return ReferenceKind.REMOTE_URL
    return ReferenceKind.LOCAL_PATH


def validate_url(url: str) -> str:
    """
    Checks that a URL can be fetched: http(s) scheme and a non-empty host.

    Returns:
        The URL unchanged.

    Raises:
        InvalidReferenceError: If the URL is malformed.
    """
    if not is_remote_url(url):
        raise InvalidReferenceError(f"invalid URL format: {url!r}")
    try:
        parsed = urlparse(url)
        host = parsed.hostname
    except ValueError as e:
        raise InvalidReferenceError(f"invalid URL format: {url!r} ({e})") from e
    if not parsed.scheme or not host:
        raise InvalidReferenceError(f"invalid URL format: {url!r} (missing host)")
    return url
