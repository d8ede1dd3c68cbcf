"""
Markup normalizer: one Sandcastle help page to one ApiRecord.

Extraction priority:
- title: <title> text, else the TOC display name
- namespace: "Namespace:" label link, page container metadata, namespace
  derived from the title, the TOC entry namespace, else empty
- summary: first summary, introduction or description block as plain text,
  else the Description meta, else empty
- kind: title classification when it recognizes the page, else the TOC kind

Nothing here raises: an unreadable or empty page yields None and every other
step degrades to its default independently.
"""

import logging
from pathlib import Path
from typing import Optional

from bs4 import BeautifulSoup

from tekla_api_docs.config import Settings
from tekla_api_docs.parsing.fields import extract_field
from tekla_api_docs.schemas import ApiRecord, TocEntry
from tekla_api_docs.utils.naming import canonical_namespace, classify_kind, derive_namespace
from tekla_api_docs.utils.text_cleaner import clean_text

logger = logging.getLogger(__name__)

NAMESPACE_LABEL = "Namespace:"
# Tried in order; the first block with text wins
SUMMARY_SELECTORS = ("div.summary", ".summary", ".introduction", ".description")
CONTAINER_META_NAMES = ("container", "namespace")


def read_page(html_dir: Path, source_page: str) -> Optional[str]:
    """
    Read one help page.

    Args:
        html_dir: Directory of extracted pages
        source_page: Page path relative to html_dir

    Returns:
        Page markup, or None when the page is missing, unreadable or empty
    """
    if not source_page:
        return None

    page_path = Path(html_dir) / source_page
    if not page_path.is_file():
        logger.debug(f"Page not found: {page_path}")
        return None

    try:
        content = page_path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.warning(f"Could not read {page_path}: {e}")
        return None

    if not content.strip():
        logger.debug(f"Page is empty: {page_path}")
        return None
    return content


def parse_markup(markup: str) -> BeautifulSoup:
    return BeautifulSoup(markup, "html.parser")


def _meta_content(soup: BeautifulSoup, *names: str) -> Optional[str]:
    for meta in soup.find_all("meta"):
        meta_name = (meta.get("name") or "").lower()
        if meta_name in names:
            content = clean_text(meta.get("content") or "")
            if content:
                return content
    return None


def extract_title(soup: BeautifulSoup) -> Optional[str]:
    if soup.title is None:
        return None
    return clean_text(soup.title.get_text()) or None


def extract_description(soup: BeautifulSoup) -> Optional[str]:
    return _meta_content(soup, "description")


def extract_namespace_label(soup: BeautifulSoup) -> Optional[str]:
    """Link text next to a "Namespace:" label."""
    for label in soup.find_all(["strong", "b", "span"]):
        if NAMESPACE_LABEL not in label.get_text():
            continue
        link = label.find_next_sibling("a")
        if link is None and label.parent is not None:
            link = label.parent.find("a")
        if link is not None:
            text = clean_text(link.get_text())
            if text:
                return text
    return None


def extract_summary(soup: BeautifulSoup) -> Optional[str]:
    for selector in SUMMARY_SELECTORS:
        block = soup.select_one(selector)
        if block is None:
            continue
        text = clean_text(block.get_text(" "))
        if text:
            return text
    return None


class MarkupNormalizer:
    """
    Convert help pages into ApiRecord objects.

    Example:
        >>> normalizer = MarkupNormalizer(Path("extracted-docs/html"))
        >>> record = normalizer.normalize_page(toc_entry)
        >>> record.title, record.namespace
        ('Beam Class', 'Tekla.Structures.Model')
    """

    def __init__(self, html_dir: Optional[Path] = None, settings: Optional[Settings] = None):
        self.settings = settings or Settings()
        self.html_dir = Path(html_dir) if html_dir is not None else Path(self.settings.html_dir)

    def normalize_page(self, entry: TocEntry) -> Optional[ApiRecord]:
        """
        Read and normalize the page a TOC entry points to.

        Args:
            entry: TOC entry whose target page is read

        Returns:
            ApiRecord, or None when the page cannot be read
        """
        markup = read_page(self.html_dir, entry.target_page)
        if markup is None:
            return None
        return self.normalize_markup(markup, entry)

    def normalize_markup(self, markup: str, entry: TocEntry) -> Optional[ApiRecord]:
        """Normalize already-read page markup."""
        if not markup or not markup.strip():
            return None

        try:
            soup = parse_markup(markup)
        except Exception as e:
            logger.warning(f"Unparseable page {entry.target_page}: {e}")
            return None

        root_token = self.settings.root_token

        title = extract_field("title", lambda: extract_title(soup), None) or entry.display_name
        description = extract_field("description", lambda: extract_description(soup), "")
        summary = extract_field("summary", lambda: extract_summary(soup), None) or description

        namespace = (
            extract_field("namespace label", lambda: extract_namespace_label(soup), None)
            or extract_field("container meta", lambda: _meta_content(soup, *CONTAINER_META_NAMES), None)
            or derive_namespace(title, root_token)
            or entry.namespace
            or ""
        )

        title_kind = classify_kind(title, self.settings.root_namespace)
        kind = title_kind if title_kind != "other" else entry.kind
        if kind != entry.kind:
            logger.debug(f"Kind of '{title}' refined from TOC '{entry.kind}' to '{kind}'")

        return ApiRecord(
            title=title,
            description=description,
            summary=summary,
            namespace=namespace,
            normalized_namespace=canonical_namespace(namespace),
            kind=kind,
            depth=entry.depth,
            source_page=entry.target_page,
        )


def normalize_page(entry: TocEntry, html_dir: Path, settings: Optional[Settings] = None) -> Optional[ApiRecord]:
    """Convenience function to normalize a single page."""
    return MarkupNormalizer(html_dir, settings).normalize_page(entry)


