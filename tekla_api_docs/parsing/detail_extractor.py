"""
Deep-detail extraction of class pages.

Runs on demand (first detailed class lookup), never during the bulk
normalization pass. Each field of DetailedInfo has its own extractor that
returns a value or the field default, so the result is always complete.
"""

import logging
import re
from pathlib import Path
from typing import List, Optional

from bs4 import BeautifulSoup
from bs4.element import Tag

from tekla_api_docs.config import Settings
from tekla_api_docs.parsing.fields import extract_field
from tekla_api_docs.parsing.markup_normalizer import parse_markup, read_page
from tekla_api_docs.schemas import DetailedInfo, MemberInfo
from tekla_api_docs.utils.text_cleaner import clean_text

logger = logging.getLogger(__name__)

# Section name -> legacy Sandcastle section id
LEGACY_SECTION_IDS = {
    "Syntax": "ID2RBSection",
    "Inheritance": "ID0RBSection",
    "Constructors": "ID3RBSection",
    "Properties": "ID4RBSection",
    "Methods": "ID5RBSection",
    "Examples": "ID6RBSection",
}

SECTION_HEADINGS = {
    "Syntax": ("Syntax",),
    "Inheritance": ("Inheritance Hierarchy", "Inheritance"),
    "Constructors": ("Constructors",),
    "Properties": ("Properties",),
    "Methods": ("Methods",),
    "Examples": ("Examples", "Example"),
}

ROOT_OBJECT_NAMES = {"Object", "System.Object", "object"}
INHERITED_MARKER = "(Inherited from"
MIN_EXAMPLE_LENGTH = 10

_INHERITED_FROM = re.compile(r"\(Inherited from\s+([^)]+)\)")


def find_section(soup: BeautifulSoup, name: str) -> Optional[Tag]:
    """
    Locate a named page section.

    Tried in order: an element whose id contains the name, an element whose
    class contains it, the collapsible body following a heading with that
    text, then the legacy numbered section id.
    """
    lowered = name.lower()

    for node in soup.find_all(id=True):
        if lowered in node.get("id", "").lower():
            return node

    for node in soup.find_all(class_=True):
        classes = " ".join(node.get("class", []))
        if lowered in classes.lower():
            return node

    for heading in soup.find_all(["h1", "h2", "h3", "h4", "span", "div"]):
        if heading.find(["h1", "h2", "h3", "h4", "div", "table"]):
            continue
        text = clean_text(heading.get_text())
        if text not in SECTION_HEADINGS.get(name, (name,)):
            continue
        body = heading.find_next_sibling(["div", "table"])
        if body is None and heading.parent is not None:
            body = heading.parent.find_next_sibling(["div", "table"])
        if body is not None:
            return body

    legacy_id = LEGACY_SECTION_IDS.get(name)
    if legacy_id:
        return soup.find(id=legacy_id)
    return None


def split_inherited(text: str):
    """Split a member description into own text and inherited-from attribution."""
    if INHERITED_MARKER not in text:
        return text.strip(), False, None
    own = text.split(INHERITED_MARKER)[0].strip()
    match = _INHERITED_FROM.search(text)
    inherited_from = None
    if match:
        inherited_from = clean_text(match.group(1)).strip(" .") or None
    return own, True, inherited_from


def extract_members(section: Optional[Tag]) -> List[MemberInfo]:
    """Rows of a member table: name in the second column, description in the third."""
    if section is None:
        return []

    members: List[MemberInfo] = []
    for row in section.find_all("tr"):
        cells = row.find_all("td", recursive=False) or row.find_all("td")
        if len(cells) < 3:
            continue
        link = cells[1].find("a")
        name = clean_text((link or cells[1]).get_text())
        if not name:
            continue
        description, inherited, inherited_from = split_inherited(clean_text(cells[2].get_text(" ")))
        members.append(MemberInfo(
            name=name,
            description=description,
            inherited=inherited,
            inherited_from=inherited_from,
        ))
    return members


def extract_syntax(soup: BeautifulSoup) -> Optional[str]:
    section = find_section(soup, "Syntax")
    if section is None:
        return None
    code = section.find(["pre", "code"])
    if code is None:
        return None
    return code.get_text().strip() or None


def extract_inheritance(soup: BeautifulSoup) -> List[str]:
    """Ancestor names root-to-self, the universal root object excluded."""
    section = find_section(soup, "Inheritance")
    if section is None:
        return []

    # Derived types are listed after the page's own type
    self_node = section.find(class_="selflink")
    self_name = clean_text(self_node.get_text()) if self_node is not None else None

    chain: List[str] = []
    for text in section.stripped_strings:
        name = clean_text(text)
        if not name or name in ROOT_OBJECT_NAMES or name.startswith("System.Object"):
            continue
        if name.startswith("More"):
            continue
        if name not in chain:
            chain.append(name)
        if name == self_name:
            break
    return chain


def extract_examples(soup: BeautifulSoup) -> List[str]:
    section = find_section(soup, "Examples")
    if section is None:
        return []

    examples: List[str] = []
    for block in section.find_all("pre") or section.find_all("code"):
        code = block.get_text().strip()
        if len(code) > MIN_EXAMPLE_LENGTH:
            examples.append(code)
    return examples


class DetailExtractor:
    """
    Parse the class-level breakdown of a help page.

    Example:
        >>> extractor = DetailExtractor(Path("extracted-docs/html"))
        >>> info = extractor.extract_page("T_Tekla_Structures_Model_Beam.htm")
        >>> [m.name for m in info.methods][:2]
        ['Delete', 'Insert']
    """

    def __init__(self, html_dir: Optional[Path] = None, settings: Optional[Settings] = None):
        self.settings = settings or Settings()
        self.html_dir = Path(html_dir) if html_dir is not None else Path(self.settings.html_dir)

    def extract_page(self, source_page: str) -> Optional[DetailedInfo]:
        """
        Read a page and extract its details.

        Returns:
            DetailedInfo, or None when the page cannot be read
        """
        markup = read_page(self.html_dir, source_page)
        if markup is None:
            logger.warning(f"No page to extract details from: {source_page}")
            return None
        return self.extract_markup(markup)

    def extract_markup(self, markup: str) -> Optional[DetailedInfo]:
        if not markup or not markup.strip():
            return None
        soup = parse_markup(markup)

        info = DetailedInfo(
            syntax_text=extract_field("syntax", lambda: extract_syntax(soup), None),
            inheritance_chain=extract_field("inheritance", lambda: extract_inheritance(soup), []),
            constructors=extract_field(
                "constructors", lambda: extract_members(find_section(soup, "Constructors")), []
            ),
            properties=extract_field(
                "properties", lambda: extract_members(find_section(soup, "Properties")), []
            ),
            methods=extract_field(
                "methods", lambda: extract_members(find_section(soup, "Methods")), []
            ),
            examples=extract_field("examples", lambda: extract_examples(soup), []),
        )

        logger.debug(
            f"Extracted details: {len(info.inheritance_chain)} ancestors, "
            f"{len(info.constructors)} constructors, {len(info.properties)} properties, "
            f"{len(info.methods)} methods, {len(info.examples)} examples"
        )
        return info
