"""Text and naming helpers shared by the parsers and the query layer."""

from .naming import classify_kind, derive_namespace, canonical_namespace, symbol_name
from .text_cleaner import clean_text, collapse_whitespace

__all__ = [
    "classify_kind",
    "derive_namespace",
    "canonical_namespace",
    "symbol_name",
    "clean_text",
    "collapse_whitespace",
]
