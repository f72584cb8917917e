"""
Media Processing Layer.

This package is responsible for turning remote tracks into local files, including
downloading, integrity validation and cache resolution.
"""

from .downloader import TrackDownloader
from .integrity import FileIntegrityChecker
from .resolver import LocalPathResolver

__all__ = ["FileIntegrityChecker", "LocalPathResolver", "TrackDownloader"]
