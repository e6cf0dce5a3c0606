"""
Core application engine for resolving media references.

The `ImageProcessor` resolves ordered batches of image references and the
`VideoProcessor` resolves a single video reference or persists an upload,
both delegating network work to a `StreamDownloader`.
"""

from .processor import ImageProcessor, VideoProcessor, create_processors

__all__ = ["ImageProcessor", "VideoProcessor", "create_processors"]
