"""Helpers for user-supplied search text and slugs."""

import re
import unicodedata

SEARCH_TERM_MAX_LENGTH = 80


def normalize_search_term(value: str | None, max_length: int = SEARCH_TERM_MAX_LENGTH) -> str:
    """Trim a search term and cap its length."""
    if not value:
        return ""
    return value.strip()[:max_length]


def escape_like(value: str, escape: str = "\\") -> str:
    """Escape LIKE wildcards so user input matches literally."""
    return (
        value.replace(escape, escape * 2)
        .replace("%", f"{escape}%")
        .replace("_", f"{escape}_")
    )


def slugify(value: str) -> str:
    """Lowercase ASCII slug with single hyphens between words."""
    normalized = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9]+", "-", normalized.lower()).strip("-")
    return slug or "hotel"
