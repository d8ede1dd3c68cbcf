"""
Removal of script artifacts left in help-page text.

Sandcastle pages embed language-switch script calls whose text leaks into
titles and summaries. Cleaning is a fixed allow-list of artifact shapes, not
a markup parser.
"""

import re

_ARTIFACT_PATTERNS = [
    # AddLanguageSpecificTextSet("...");
    re.compile(r"AddLanguageSpecificTextSet\([^)]*\);?"),
    # |vb=Nothing|cpp=nullptr|nu=null");
    re.compile(r"\|[^\"]*\"\);?"),
    # trailing ";...Object" left after a truncated call
    re.compile(r";[^;]*Object$"),
    # stray markup fragments
    re.compile(r"<[^>]+>"),
]

_WHITESPACE = re.compile(r"\s+")


def collapse_whitespace(text: str) -> str:
    """Collapse whitespace runs to single spaces and trim."""
    if not text:
        return ""
    return _WHITESPACE.sub(" ", text).strip()


def clean_text(text: str) -> str:
    """
    Strip known script artifacts and stray tags, then normalize whitespace.

    Example:
        >>> clean_text('Beam AddLanguageSpecificTextSet("x?cs=.|vb=.");Class')
        'Beam Class'
    """
    if not text:
        return ""
    value = text
    for pattern in _ARTIFACT_PATTERNS:
        value = pattern.sub(" ", value)
    return collapse_whitespace(value)
