"""
Lexical rules over documentation labels.

Shared by the TOC walker (display names) and the markup normalizer (page
titles): kind classification, namespace derivation and symbol names.
"""

import re
from typing import List, Tuple

DEFAULT_ROOT_TOKEN = "Tekla"
DEFAULT_ROOT_NAMESPACE = "Tekla.Structures"

# Deeper segments are assumed to name a member rather than a namespace
MAX_NAMESPACE_SEGMENTS = 3

# (kind, contains any of, contains none of), first match wins
_KIND_RULES: List[Tuple[str, Tuple[str, ...], Tuple[str, ...]]] = [
    ("class", (" Class",), (" Classes",)),
    ("interface", (" Interface",), (" Interfaces",)),
    ("enum", (" Enumeration", " Enum"), ()),
    ("properties-collection", (" Properties", " Members"), ()),
    ("methods-collection", (" Methods",), ()),
    ("property", (" Property ",), ()),
    ("method", (" Method ", " Constructor "), ()),
    ("event", (" Event ",), ()),
    ("field", (" Field ",), ()),
    ("delegate", (" Delegate ",), ()),
]

_KIND_WORDS = {
    "Class", "Classes", "Structure", "Interface", "Interfaces", "Enumeration", "Enum",
    "Property", "Properties", "Method", "Methods", "Constructor", "Constructors",
    "Event", "Events", "Field", "Fields", "Delegate", "Delegates", "Members",
    "Namespace", "Namespaces", "Operator", "Overload",
}

_PARENTHESIZED_TAIL = re.compile(r"\s*\([^)]*\)\s*$")


def classify_kind(name: str, root_namespace: str = DEFAULT_ROOT_NAMESPACE) -> str:
    """
    Classify a label into one of the fixed kinds.

    Rules are case-sensitive on the literal suffix words and are applied in
    table order, so "Beam Properties" is a properties collection even though
    it also contains "Propert".

    Args:
        name: TOC display name or page title
        root_namespace: Name that is a namespace on its own

    Returns:
        Kind string ("other" when no rule matches)

    Example:
        >>> classify_kind("Beam Class")
        'class'
        >>> classify_kind("Beam.Insert Method (Point)")
        'method'
    """
    if not name:
        return "other"
    if name == root_namespace or "Namespace" in name:
        return "namespace"
    for kind, required, forbidden in _KIND_RULES:
        if any(token in name for token in required) and not any(token in name for token in forbidden):
            return kind
    return "other"


def derive_namespace(text: str, root_token: str = DEFAULT_ROOT_TOKEN) -> str:
    """
    Take the first dotted run starting with the root token, capped at three segments.

    Example:
        >>> derive_namespace("Tekla.Structures.Model.Beam Class")
        'Tekla.Structures.Model'
        >>> derive_namespace("Beam Class")
        ''
    """
    if not text:
        return ""
    pattern = re.compile(r"(?<![\w.])(" + re.escape(root_token) + r"(?:\.[A-Za-z0-9_]+)+)")
    match = pattern.search(text)
    if not match:
        return ""
    segments = match.group(1).split(".")
    if len(segments) > MAX_NAMESPACE_SEGMENTS:
        segments = segments[:MAX_NAMESPACE_SEGMENTS]
    return ".".join(segments)


def canonical_namespace(namespace: str) -> str:
    """Canonical display form: collapsed whitespace, no trailing 'Namespace' word, no stray dots."""
    if not namespace:
        return ""
    value = " ".join(namespace.split())
    if value.endswith(" Namespace"):
        value = value[: -len(" Namespace")]
    return value.strip(". ")


def symbol_name(title: str) -> str:
    """
    Bare symbol name of a title: overload signature and trailing kind word removed.

    Example:
        >>> symbol_name("Beam Class")
        'Beam'
        >>> symbol_name("Beam.Insert Method (Point)")
        'Beam.Insert'
    """
    if not title:
        return ""
    value = _PARENTHESIZED_TAIL.sub("", title).strip()
    words = value.split()
    while len(words) > 1 and words[-1] in _KIND_WORDS:
        words.pop()
    return " ".join(words)
