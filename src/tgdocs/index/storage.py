"""Persistent JSON snapshot of the documentation corpus."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Sequence

from tgdocs.errors import SnapshotError
from tgdocs.models import CacheMetadata, Document
from tgdocs.utils.files import atomic_write_json, read_json
from tgdocs.utils.text import format_timestamp

LOGGER = logging.getLogger(__name__)

METADATA_FILE = "metadata.json"
DOCUMENTS_GLOB = "docs-cache*.json"


@dataclass(slots=True)
class Snapshot:
    documents: List[Document]
    metadata: CacheMetadata
    rejected: int = 0


def parse_documents(payload: object, *, origin: str) -> tuple[List[Document], int]:
    """Turn a decoded JSON array into documents, skipping malformed entries.

    Raises SnapshotError if the payload is not an array at all.
    """
    if not isinstance(payload, list):
        raise SnapshotError(f"{origin}: expected a JSON array of documents")
    documents: List[Document] = []
    rejected = 0
    for index, item in enumerate(payload):
        try:
            documents.append(Document.from_dict(item))
        except ValueError as exc:
            rejected += 1
            LOGGER.warning("%s: rejecting document #%d: %s", origin, index, exc)
    return documents, rejected


class SnapshotStore:
    """Reads and writes a corpus snapshot as a metadata file plus a documents file.

    Each generation gets its own documents file; the metadata file names the
    documents file it belongs to and is replaced only after that file is
    complete on disk.
    """

    def __init__(self, cache_dir: Path) -> None:
        self.cache_dir = Path(cache_dir)

    @property
    def metadata_path(self) -> Path:
        return self.cache_dir / METADATA_FILE

    def read_snapshot(self) -> Snapshot | None:
        """Return the persisted snapshot, or None when it is absent or corrupt."""
        if not self.metadata_path.exists():
            LOGGER.info("No disk cache found in %s", self.cache_dir)
            return None
        try:
            return self._load()
        except SnapshotError as exc:
            LOGGER.error("Ignoring disk cache: %s", exc)
            return None

    def _load(self) -> Snapshot:
        try:
            metadata = CacheMetadata.from_dict(read_json(self.metadata_path))
        except (OSError, json.JSONDecodeError, ValueError, TypeError) as exc:
            raise SnapshotError(f"unreadable metadata {self.metadata_path}: {exc}") from exc

        documents_path = self.cache_dir / Path(metadata.documents_file).name
        try:
            payload = read_json(documents_path)
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise SnapshotError(f"unreadable documents file {documents_path}: {exc}") from exc

        documents, rejected = parse_documents(payload, origin=str(documents_path))
        if len(documents) + rejected != metadata.document_count:
            LOGGER.warning(
                "Disk cache metadata lists %d documents but %s holds %d",
                metadata.document_count,
                documents_path.name,
                len(documents) + rejected,
            )
        return Snapshot(documents=documents, metadata=metadata, rejected=rejected)

    def write_snapshot(self, documents: Sequence[Document], *, fetched_at: datetime) -> bool:
        """Persist one generation. Failures are logged and reported as False."""
        documents_file = _documents_file_name(fetched_at)
        metadata = CacheMetadata(
            last_fetch_time=fetched_at,
            document_count=len(documents),
            documents_file=documents_file,
        )
        try:
            atomic_write_json(self.cache_dir / documents_file, [doc.to_dict() for doc in documents])
            atomic_write_json(self.metadata_path, metadata.to_dict())
        except (OSError, TypeError, ValueError) as exc:
            LOGGER.error("Failed to save cache to disk: %s", exc)
            return False

        self._remove_old_generations(keep=documents_file)
        LOGGER.info("Saved %d docs to disk cache", len(documents))
        return True

    def clear(self) -> int:
        """Delete every snapshot file. Returns the number of files removed."""
        removed = 0
        if not self.cache_dir.exists():
            return removed
        for path in [self.metadata_path, *self.cache_dir.glob(DOCUMENTS_GLOB)]:
            try:
                path.unlink()
                removed += 1
            except FileNotFoundError:
                continue
        return removed

    def _remove_old_generations(self, *, keep: str) -> None:
        for path in self.cache_dir.glob(DOCUMENTS_GLOB):
            if path.name == keep:
                continue
            try:
                path.unlink()
            except OSError as exc:
                LOGGER.warning("Could not remove old cache file %s: %s", path, exc)


def _documents_file_name(fetched_at: datetime) -> str:
    stamp = format_timestamp(fetched_at)
    return "docs-cache-" + "".join(ch for ch in stamp if ch.isalnum()) + ".json"
