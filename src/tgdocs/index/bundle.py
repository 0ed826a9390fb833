"""Read-only offline snapshot shipped with the package."""

from __future__ import annotations

import json
import logging
from importlib.resources import files
from pathlib import Path
from typing import List

from tgdocs.errors import SnapshotError
from tgdocs.index.storage import parse_documents
from tgdocs.models import Document

LOGGER = logging.getLogger(__name__)

BUNDLE_FILE = "offline-docs.json"


def _load_packaged_text() -> str:
    resource = files("tgdocs").joinpath("data", BUNDLE_FILE)
    return resource.read_text(encoding="utf-8")


class OfflineBundle:
    """Last-resort corpus. Never written to, never refreshed."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = Path(path) if path is not None else None

    def read_bundle(self) -> List[Document]:
        try:
            if self.path is not None:
                text = self.path.read_text(encoding="utf-8")
            else:
                text = _load_packaged_text()
            documents, _ = parse_documents(json.loads(text), origin="offline bundle")
        except (OSError, json.JSONDecodeError, UnicodeDecodeError, SnapshotError) as exc:
            LOGGER.error("Offline bundle unavailable: %s", exc)
            return []
        return documents
