"""
Utilities for handling save directories and displaying file paths.
"""

from pathlib import Path

from media_acquire.exceptions import ConfigurationError


def create_dir(directory_path: Path) -> Path:
    """
    Creates a directory if it does not already exist.

    Raises:
        ConfigurationError: If the directory cannot be created, or a file is
        in the way.
    """
    directory_path = Path(directory_path)
    try:
        directory_path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ConfigurationError(
            f"Failed to create save directory '{directory_path}': {e}"
        ) from e
    return directory_path


def shorten_path(path: str | Path, max_length: int = 60) -> str:
    """Trims a long path from the left for table display."""
    text = str(path)
    if len(text) <= max_length:
        return text
    return "…" + text[-(max_length - 1) :]
