"""
Tekla Open API documentation index.

Turns an extracted Tekla Structures Open API help archive (Sandcastle HTML
pages plus an .hhc table of contents) into a normalized dataset, and answers
class, method, namespace and keyword lookups against it, with a remote
fallback to the developer site when local data is missing or thin.

Main Components:
- Parsing: TOC walker, page normalizer, deep-detail extractor
- Store: partitioned record store and offline dataset builder
- Retrieval: fuzzy search index, remote fallback, resolution engine

Usage:
    from tekla_api_docs import ResolutionEngine, Settings

    engine = await ResolutionEngine.create(Settings(dataset_dir=Path("parsed-api")))
    results = await engine.search("Beam", kind_filter="class")
"""

from .config import Settings
from .errors import TeklaDocsError, DatasetBuildError, RemoteFallbackError
from .schemas import (
    # Navigation and records
    TocEntry,
    ApiRecord,
    DetailedInfo,
    MemberInfo,
    SearchIndexEntry,

    # Examples
    CodeExample,
    CodeSnippet,
    CodeExampleResult,

    # Query results
    SearchResult,
    RemoteApiResult,
    LocalResult,
    RemoteResult,
    Statistics,
)
from .store import RecordStore, DatasetBuilder, build_dataset
from .retrieval import FuzzySearchIndex, ResolutionEngine, OnlineApiFallback, DisabledFallback

__all__ = [
    # Configuration and errors
    "Settings",
    "TeklaDocsError",
    "DatasetBuildError",
    "RemoteFallbackError",

    # Schemas
    "TocEntry",
    "ApiRecord",
    "DetailedInfo",
    "MemberInfo",
    "SearchIndexEntry",
    "CodeExample",
    "CodeSnippet",
    "CodeExampleResult",
    "SearchResult",
    "RemoteApiResult",
    "LocalResult",
    "RemoteResult",
    "Statistics",

    # Components
    "RecordStore",
    "DatasetBuilder",
    "build_dataset",
    "FuzzySearchIndex",
    "ResolutionEngine",
    "OnlineApiFallback",
    "DisabledFallback",
]

__version__ = "0.1.0"
