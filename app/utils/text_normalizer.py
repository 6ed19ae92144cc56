import re
from typing import Any

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_YEAR_RE = re.compile(r"(\d{4})\s*$")


def normalize_text(text: str | None) -> str:
    """Collapse runs of spaces/tabs and trim.

    Args:
        text: Raw user input (title, name, comment...).

    Returns:
        str: Normalized and trimmed text ("" for None).
    """
    if text is None:
        return ""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def normalize_email(email: str | None) -> str:
    """Emails are stored and compared lowercase."""
    return (email or "").strip().lower()


def is_valid_email(email: str) -> bool:
    return bool(_EMAIL_RE.match(email or ""))


def normalize_isbn(isbn: str | None) -> str | None:
    """Strip whitespace and hyphens from an ISBN; empty input becomes None."""
    if isbn is None:
        return None
    cleaned = re.sub(r"[\s-]+", "", str(isbn))
    return cleaned or None


def split_author_names(author: str | None) -> list[str]:
    """Split a legacy comma-separated author string into distinct names.

    Order is preserved (the first name is the primary author) and
    case-insensitive duplicates are dropped.
    """
    if not author:
        return []
    names: list[str] = []
    seen: set[str] = set()
    for part in author.split(","):
        name = normalize_text(part)
        if name and name.lower() not in seen:
            seen.add(name.lower())
            names.append(name)
    return names


def parse_publish_year(publish_date: Any) -> int | None:
    """Extract a year from OpenLibrary's free-form ``publish_date``.

    OpenLibrary dates look like "1997", "June 26, 1997" or "Jun 1997"; the
    year is always the trailing four digits.
    """
    if publish_date is None:
        return None
    if isinstance(publish_date, int):
        return publish_date
    match = _YEAR_RE.search(str(publish_date))
    return int(match.group(1)) if match else None


def extract_description(value: Any) -> str | None:
    """OpenLibrary descriptions are either plain strings or ``{"value": ...}``."""
    if isinstance(value, dict):
        value = value.get("value")
    if isinstance(value, str):
        return value.strip() or None
    return None
