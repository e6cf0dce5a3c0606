"""
Media Processing Layer.

This package is responsible for all media file operations, including
reference classification, downloading, upload persistence, type sniffing
and retention cleanup.
"""

from .downloader import StreamDownloader
from .persister import UploadPersister
from .sniffer import TypeSniffer

__all__ = ["StreamDownloader", "TypeSniffer", "UploadPersister"]
