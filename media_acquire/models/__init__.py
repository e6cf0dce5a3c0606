"""
Data Models Layer.

This package contains the Pydantic configuration model and the value objects
passed between the pipeline components.
"""

from .config import PipelineConfig
from .media import DownloadOutcome, MediaClass, ReferenceKind, SniffResult
from .stats import AcquisitionStats

__all__ = [
    "AcquisitionStats",
    "DownloadOutcome",
    "MediaClass",
    "PipelineConfig",
    "ReferenceKind",
    "SniffResult",
]
