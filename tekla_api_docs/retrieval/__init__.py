"""Fuzzy search, remote fallback and the resolution engine."""

from .fuzzy_index import FuzzySearchIndex, IndexMatch
from .remote_fallback import (
    RemoteFallback,
    OnlineApiFallback,
    DisabledFallback,
    create_fallback,
    is_low_quality,
    should_use_fallback,
)
from .resolution_engine import ResolutionEngine

__all__ = [
    "FuzzySearchIndex",
    "IndexMatch",
    "RemoteFallback",
    "OnlineApiFallback",
    "DisabledFallback",
    "create_fallback",
    "is_low_quality",
    "should_use_fallback",
    "ResolutionEngine",
]
