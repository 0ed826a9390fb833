"""Tests for the packaged offline bundle."""

from __future__ import annotations

import json
from pathlib import Path

from tgdocs.index.bundle import OfflineBundle


class TestOfflineBundle:
    """Test OfflineBundle reads."""

    def test_packaged_bundle_loads(self) -> None:
        documents = OfflineBundle().read_bundle()

        assert documents
        assert len({doc.url for doc in documents}) == len(documents)
        assert {"getting-started", "features", "reference"} <= {doc.section for doc in documents}

    def test_explicit_path(self, tmp_path: Path) -> None:
        path = tmp_path / "bundle.json"
        path.write_text(
            json.dumps(
                [
                    {
                        "title": "Only",
                        "url": "https://example.com/docs/features/only/",
                        "content": "text",
                        "section": "features",
                    }
                ]
            ),
            encoding="utf-8",
        )

        documents = OfflineBundle(path).read_bundle()
        assert [doc.title for doc in documents] == ["Only"]

    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        assert OfflineBundle(tmp_path / "missing.json").read_bundle() == []

    def test_corrupt_file_is_empty(self, tmp_path: Path) -> None:
        path = tmp_path / "bundle.json"
        path.write_text("[{broken", encoding="utf-8")
        assert OfflineBundle(path).read_bundle() == []

    def test_non_array_is_empty(self, tmp_path: Path) -> None:
        path = tmp_path / "bundle.json"
        path.write_text('{"docs": []}', encoding="utf-8")
        assert OfflineBundle(path).read_bundle() == []
