"""Parsers for the extracted help archive: TOC walker, page normalizer, detail extractor."""

from .toc_walker import TocWalker, parse_toc
from .markup_normalizer import MarkupNormalizer, normalize_page, read_page
from .detail_extractor import DetailExtractor

__all__ = [
    "TocWalker",
    "parse_toc",
    "MarkupNormalizer",
    "normalize_page",
    "read_page",
    "DetailExtractor",
]
