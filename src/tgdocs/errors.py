"""Exception hierarchy for tgdocs."""

from __future__ import annotations


class TgDocsError(Exception):
    """Base class for all tgdocs errors."""


class CorpusSourceError(TgDocsError):
    """The corpus source could not produce a document set."""


class SnapshotError(TgDocsError):
    """A persisted snapshot is missing, unreadable or corrupt."""


class UnknownToolError(TgDocsError):
    """A tool name that the tool layer does not provide."""


class ToolArgumentError(TgDocsError):
    """A required tool argument is missing or has the wrong type."""
