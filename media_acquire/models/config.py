"""
Pydantic model for pipeline configuration.
Provides robust validation for all settings.
"""

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError, field_validator, model_validator

from media_acquire import __version__
from media_acquire.exceptions import ConfigurationError

MIN_CHUNK_SIZE = 4 * 1024  # 4 KB
MAX_CHUNK_SIZE = 8 * 1024 * 1024  # 8 MB

# filetype needs at most 262 bytes for its fixed-offset signatures.
MIN_SNIFF_BYTES = 262
MAX_SNIFF_BYTES = 64 * 1024


class PipelineConfig(BaseModel):
    """A validated configuration model for the acquisition pipeline."""

    # Storage
    images_save_root: Path
    videos_save_root: Path

    # HTTP client
    image_timeout_seconds: float = 120.0
    video_timeout_seconds: float = 600.0  # Videos can be large
    connect_timeout_seconds: float = 30.0
    user_agent: str = f"media-acquire/{__version__}"

    # Streaming and validation
    chunk_size: int = 256 * 1024
    sniff_prefix_bytes: int = 8192
    sniff_uploads: bool = False

    class Config:
        """Pydantic model configuration."""

        validate_assignment = True
        str_strip_whitespace = True

    @field_validator("images_save_root", "videos_save_root", mode="before")
    @classmethod
    def validate_save_root(cls, v: Any) -> Any:
        """Rejects empty save directories before they collapse to '.'."""
        if v is None or not str(v).strip():
            raise ValueError("Save directory cannot be empty.")
        return Path(str(v).strip()).expanduser()

    @field_validator(
        "image_timeout_seconds", "video_timeout_seconds", "connect_timeout_seconds"
    )
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Ensures timeouts are positive."""
        if v <= 0:
            raise ValueError("Timeouts must be greater than zero.")
        return v

    @field_validator("chunk_size")
    @classmethod
    def validate_chunk_size(cls, v: int) -> int:
        """Keeps memory use per read bounded."""
        if v < MIN_CHUNK_SIZE or v > MAX_CHUNK_SIZE:
            raise ValueError(
                f"Chunk size must be between {MIN_CHUNK_SIZE} and {MAX_CHUNK_SIZE}."
            )
        return v

    @field_validator("sniff_prefix_bytes")
    @classmethod
    def validate_sniff_prefix(cls, v: int) -> int:
        """Ensures enough bytes are read to recognize every known signature."""
        if v < MIN_SNIFF_BYTES or v > MAX_SNIFF_BYTES:
            raise ValueError(
                f"Sniff prefix must be between {MIN_SNIFF_BYTES} and "
                f"{MAX_SNIFF_BYTES} bytes."
            )
        return v

    @model_validator(mode="after")
    def validate_timeout_order(self) -> "PipelineConfig":
        """A connect timeout longer than the total timeout can never fire."""
        shortest = min(self.image_timeout_seconds, self.video_timeout_seconds)
        if self.connect_timeout_seconds > shortest:
            raise ValueError(
                "Connect timeout cannot exceed the image or video download timeout."
            )
        return self

    @classmethod
    def build(cls, **settings: Any) -> "PipelineConfig":
        """
        Creates a validated config, dropping unset (None) values so defaults apply.

        Raises:
            ConfigurationError: If validation fails.
        """
        values = {key: value for key, value in settings.items() if value is not None}
        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e
