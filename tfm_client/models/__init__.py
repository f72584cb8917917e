"""
Data Models Layer.

This package contains Pydantic models that define the core data structures
used throughout the application, such as configuration and catalog entries.
"""

from .config import ClientConfig
from .entries import (
    ApiEnvelope,
    Channel,
    CollectionEntry,
    Folder,
    PaginationEnvelope,
    TrackDescriptor,
)

__all__ = [
    "ApiEnvelope",
    "Channel",
    "ClientConfig",
    "CollectionEntry",
    "Folder",
    "PaginationEnvelope",
    "TrackDescriptor",
]
