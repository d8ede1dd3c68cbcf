"""Per-field extraction with defaults."""

import logging
from typing import Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def extract_field(name: str, extractor: Callable[[], T], default: T) -> T:
    """
    Run one extraction step, returning ``default`` when it fails or finds nothing.

    A failing step never discards the rest of the record; the failure is only
    logged.

    Args:
        name: Field name, used in diagnostics
        extractor: Zero-argument callable producing the value
        default: Value used on failure or on an empty result

    Returns:
        Extracted value or default
    """
    try:
        value = extractor()
    except Exception as e:
        logger.debug(f"Extraction of '{name}' failed: {e}")
        return default
    if value is None:
        return default
    return value
