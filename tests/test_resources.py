"""Tests for markdown documentation resources."""

from __future__ import annotations

from typing import List
from urllib.parse import quote

import pytest

from tgdocs.models import Corpus, Document
from tgdocs.resources import OVERVIEW_URI, PAGE_PREFIX, SECTION_PREFIX, ResourceHandler

BASE = "https://terragrunt.gruntwork.io/docs"


class StaticProvider:
    def __init__(self, documents: List[Document]) -> None:
        self.corpus = Corpus.from_documents(documents)

    def get_corpus(self) -> Corpus:
        return self.corpus


def make_docs() -> List[Document]:
    docs = [
        Document(
            title="Quick Start",
            url=f"{BASE}/getting-started/quick-start/",
            content="Install and run.",
            section="getting-started",
            last_updated="2025-01-15T00:00:00Z",
        )
    ]
    docs += [
        Document(
            title=f"Feature {index}",
            url=f"{BASE}/features/feature-{index}/",
            content=f"Feature body {index}",
            section="features",
        )
        for index in range(60)
    ]
    return docs


@pytest.fixture
def resources() -> ResourceHandler:
    return ResourceHandler(StaticProvider(make_docs()))


class TestListResources:
    """Test ResourceHandler.list_resources."""

    def test_order_and_page_cap(self, resources: ResourceHandler) -> None:
        listed = resources.list_resources()
        uris = [resource.uri for resource in listed]

        assert uris[0] == OVERVIEW_URI
        assert uris[1:3] == [SECTION_PREFIX + "features", SECTION_PREFIX + "getting-started"]
        pages = [uri for uri in uris if uri.startswith(PAGE_PREFIX)]
        assert len(pages) == 50
        assert pages[0] == PAGE_PREFIX + quote(f"{BASE}/getting-started/quick-start/", safe="")

    def test_to_dict(self, resources: ResourceHandler) -> None:
        payload = resources.list_resources()[0].to_dict()
        assert payload["mimeType"] == "text/markdown"
        assert payload["name"] == "Terragrunt Documentation Overview"


class TestReadResource:
    """Test ResourceHandler.read_resource."""

    def test_overview(self, resources: ResourceHandler) -> None:
        content = resources.read_resource(OVERVIEW_URI)

        assert content.mime_type == "text/markdown"
        assert "Total documentation pages: 61" in content.text
        assert "### features (60 pages)" in content.text
        assert "- ... and 50 more pages" in content.text
        assert "- [Feature 9]" in content.text
        assert "- [Feature 10]" not in content.text

    def test_section(self, resources: ResourceHandler) -> None:
        content = resources.read_resource(SECTION_PREFIX + "getting-started")

        assert content.text.startswith("# Terragrunt getting-started Documentation")
        assert "## Quick Start" in content.text
        assert "Install and run." in content.text

    def test_page(self, resources: ResourceHandler) -> None:
        uri = PAGE_PREFIX + quote(f"{BASE}/getting-started/quick-start/", safe="")
        content = resources.read_resource(uri)

        assert content.text.startswith("# Quick Start")
        assert "**Section:** getting-started" in content.text
        assert "**Last Updated:** 2025-01-15T00:00:00Z" in content.text

    def test_page_without_timestamp(self, resources: ResourceHandler) -> None:
        uri = PAGE_PREFIX + quote(f"{BASE}/features/feature-0/", safe="")
        assert "**Last Updated:** unknown" in resources.read_resource(uri).text

    @pytest.mark.parametrize(
        "uri",
        [
            SECTION_PREFIX + "missing",
            PAGE_PREFIX + quote("https://nowhere.example/", safe=""),
            "terragrunt://docs/unknown",
        ],
    )
    def test_errors_are_plain_text(self, resources: ResourceHandler, uri: str) -> None:
        content = resources.read_resource(uri)

        assert content.mime_type == "text/plain"
        assert content.text.startswith("Error: ")
        assert content.to_dict()["uri"] == uri
