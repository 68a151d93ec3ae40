"""
General helper utilities
"""
import re
import unicodedata
from typing import Iterable


def slugify(text: str) -> str:
    """URL-safe slug for a display name ("Fried rice" -> "fried-rice")"""
    ascii_text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9]+", "-", ascii_text.lower()).strip("-")
    return slug or "category"


def sorted_unique(values: Iterable[str]) -> list[str]:
    """Deduplicate and sort string codes, dropping empties"""
    return sorted({v for v in values if v})


def enabled_keys(toggles: dict | None) -> list[str]:
    """Keys of a {name: bool} toggle map that are switched on, in insertion order"""
    if not toggles:
        return []
    return [key for key, enabled in toggles.items() if enabled]
