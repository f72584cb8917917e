"""
Storage Layer.

This package handles data kept on disk, namely the cache of downloaded tracks.
"""

from .cache import TrackCache

__all__ = ["TrackCache"]
