"""
TFM API Layer.

This package handles all communication with the catalog endpoints of a
TelegramFileManager server.
"""

from .aggregator import AggregationState, PaginationAggregator
from .client import TfmApiClient
from .endpoints import RequestSpec, ResourceKind
from .envelope import extract_items, parse_envelope

__all__ = [
    "AggregationState",
    "PaginationAggregator",
    "RequestSpec",
    "ResourceKind",
    "TfmApiClient",
    "extract_items",
    "parse_envelope",
]
