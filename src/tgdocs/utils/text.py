"""Text helpers shared by ingestion, retrieval and the tool layer."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from urllib.parse import urlparse

_WHITESPACE_RE = re.compile(r"\s+")


def clean_content(text: str) -> str:
    """Collapse every run of whitespace into a single space."""
    return _WHITESPACE_RE.sub(" ", text or "").strip()


def truncate(text: str, max_chars: int, *, suffix: str = "...") -> str:
    """Cut text to `max_chars` characters, marking the cut with `suffix`."""
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + suffix


def extract_section(href: str) -> str:
    """Return the documentation section of a /docs/<section>/... path or URL."""
    path = urlparse(href).path if "://" in href else href
    parts = [part for part in path.split("/") if part]
    if len(parts) >= 2:
        return parts[1]
    return "general"


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
