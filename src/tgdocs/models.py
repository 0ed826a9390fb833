"""Core tgdocs data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping

from tgdocs.utils.text import format_timestamp, parse_timestamp

_REQUIRED_FIELDS = ("title", "url", "content", "section")


@dataclass(frozen=True, slots=True)
class Document:
    """One cleaned documentation page."""

    title: str
    url: str
    content: str
    section: str
    last_updated: str | None = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Document":
        """Build a document from its persisted form.

        Raises ValueError when a required field is missing or not a string.
        """
        if not isinstance(payload, Mapping):
            raise ValueError(f"Document payload must be an object, got {type(payload).__name__}")
        for name in _REQUIRED_FIELDS:
            if not isinstance(payload.get(name), str):
                raise ValueError(f"Document field '{name}' is missing or not a string")
        last_updated = payload.get("lastUpdated", payload.get("last_updated"))
        return cls(
            title=payload["title"],
            url=payload["url"],
            content=payload["content"],
            section=payload["section"],
            last_updated=last_updated if isinstance(last_updated, str) else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "title": self.title,
            "url": self.url,
            "content": self.content,
            "section": self.section,
        }
        if self.last_updated is not None:
            data["lastUpdated"] = self.last_updated
        return data


@dataclass(frozen=True, slots=True)
class CacheMetadata:
    """Metadata persisted next to a snapshot's documents file."""

    last_fetch_time: datetime
    document_count: int
    documents_file: str = "docs-cache.json"

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "CacheMetadata":
        if not isinstance(payload, Mapping):
            raise ValueError("Metadata payload must be an object")
        raw_time = payload.get("lastFetchTime")
        if not isinstance(raw_time, str):
            raise ValueError("Metadata field 'lastFetchTime' is missing")
        count = payload.get("docsCount", payload.get("documentCount", 0))
        documents_file = payload.get("documentsFile") or "docs-cache.json"
        return cls(
            last_fetch_time=parse_timestamp(raw_time),
            document_count=int(count),
            documents_file=str(documents_file),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lastFetchTime": format_timestamp(self.last_fetch_time),
            "docsCount": self.document_count,
            "documentsFile": self.documents_file,
        }


@dataclass(frozen=True, slots=True)
class Corpus:
    """Immutable url -> Document mapping produced by one fetch generation.

    Enumeration order is insertion order; a later document with an already
    seen URL replaces the earlier one in place.
    """

    documents: Mapping[str, Document] = field(default_factory=lambda: MappingProxyType({}))
    fetched_at: datetime | None = None
    origin: str = "empty"

    @classmethod
    def from_documents(
        cls,
        documents: Iterable[Document],
        *,
        fetched_at: datetime | None = None,
        origin: str = "network",
    ) -> "Corpus":
        by_url: Dict[str, Document] = {}
        for doc in documents:
            by_url[doc.url] = doc
        return cls(documents=MappingProxyType(by_url), fetched_at=fetched_at, origin=origin)

    @classmethod
    def empty(cls) -> "Corpus":
        return cls()

    def __len__(self) -> int:
        return len(self.documents)

    def __iter__(self) -> Iterator[Document]:
        return iter(self.documents.values())

    def __bool__(self) -> bool:
        return bool(self.documents)

    def get(self, url: str) -> Document | None:
        return self.documents.get(url)

    def to_list(self) -> List[Document]:
        return list(self.documents.values())

    def is_stale(self, now: datetime, ttl: timedelta) -> bool:
        if self.fetched_at is None:
            return True
        return now - self.fetched_at > ttl


@dataclass(frozen=True, slots=True)
class CodeExample:
    """Code fragments extracted from a single document."""

    document: Document
    snippets: tuple[str, ...]
