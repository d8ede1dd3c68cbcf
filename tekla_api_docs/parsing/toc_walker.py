"""
Table-of-contents walker for HTML Help (.hhc) navigation documents.

Each ``<OBJECT type="text/sitemap">`` becomes one TocEntry. Order is the
document order of the navigation tree, which is not alphabetical.
"""

import logging
from pathlib import Path
from typing import List, Optional

from bs4 import BeautifulSoup

from tekla_api_docs.config import Settings
from tekla_api_docs.schemas import TocEntry
from tekla_api_docs.utils.naming import classify_kind, derive_namespace

logger = logging.getLogger(__name__)

PAGE_PREFIX = "html/"
# HTML Help Workshop writes .hhc files in the ANSI code page
LEGACY_ENCODING = "cp1252"


def read_toc_text(toc_path: Path) -> str:
    """Decode a navigation document as UTF-8, else as the legacy code page."""
    raw = Path(toc_path).read_bytes()
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        logger.debug(f"{toc_path} is not UTF-8, decoding as {LEGACY_ENCODING}")
        return raw.decode(LEGACY_ENCODING, errors="replace")


class TocWalker:
    """
    Flatten an HTML Help navigation tree.

    Example:
        >>> walker = TocWalker()
        >>> entries = walker.parse_file(Path("extracted-docs/TeklaOpenAPI_Reference.hhc"))
        >>> entries[0].display_name
        'Tekla.Structures Namespace'
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings()

    def parse_file(self, toc_path: Path) -> List[TocEntry]:
        """
        Read and parse a navigation document.

        Args:
            toc_path: Path to the .hhc file

        Returns:
            Ordered list of TocEntry objects
        """
        toc_path = Path(toc_path)
        logger.info(f"Parsing table of contents: {toc_path}")
        return self.parse_markup(read_toc_text(toc_path))

    def parse_markup(self, content: str) -> List[TocEntry]:
        """Parse navigation markup into an ordered TocEntry list."""
        soup = BeautifulSoup(content, "html.parser")
        entries: List[TocEntry] = []

        for node in soup.find_all("object"):
            if (node.get("type") or "").lower() != "text/sitemap":
                continue

            name = self._param_value(node, "Name")
            # Labels stay as authored; the kind rules rely on their trailing spaces
            if not name or not name.strip():
                continue

            local = (self._param_value(node, "Local") or "").strip()
            if local.startswith(PAGE_PREFIX):
                local = local[len(PAGE_PREFIX):]

            entries.append(TocEntry(
                display_name=name,
                target_page=local,
                depth=len(node.find_parents("ul")),
                kind=classify_kind(name, self.settings.root_namespace),
                namespace=derive_namespace(name, self.settings.root_token),
            ))

        logger.info(f"Found {len(entries)} TOC entries")
        return entries

    @staticmethod
    def _param_value(node, param_name: str) -> Optional[str]:
        for param in node.find_all("param"):
            if (param.get("name") or "").lower() == param_name.lower():
                value = param.get("value")
                return value if value else None
        return None


def parse_toc(toc_path: Path, settings: Optional[Settings] = None) -> List[TocEntry]:
    """
    Convenience function to parse a navigation document.

    Args:
        toc_path: Path to the .hhc file
        settings: Naming conventions (default settings if omitted)

    Returns:
        Ordered list of TocEntry objects
    """
    return TocWalker(settings).parse_file(toc_path)
