"""
media-acquire: fetch images and videos from URLs or local paths into
validated, uniquely named local files.
"""

__version__ = "0.3.0"
