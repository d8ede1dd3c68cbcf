"""Record store and offline dataset builder."""

from .record_store import RecordStore, load_store, normalize_api_elements
from .dataset_builder import DatasetBuilder, build_dataset

__all__ = [
    "RecordStore",
    "load_store",
    "normalize_api_elements",
    "DatasetBuilder",
    "build_dataset",
]
