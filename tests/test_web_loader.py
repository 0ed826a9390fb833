"""Tests for the HTTP documentation scraper."""

from __future__ import annotations

import httpx
import pytest

from tgdocs.errors import CorpusSourceError
from tgdocs.ingestion.web_loader import (
    CORE_PAGES,
    HttpCorpusSource,
    discover_pages,
    extract_page_text,
)

BASE_URL = "https://terragrunt.example"

INDEX_HTML = """
<html><body>
  <nav>
    <a href="/docs/getting-started/quick-start/">Quick Start</a>
    <a href="/docs/features/caching/#providers">Caching</a>
    <a href="/docs/reference/cli/commands/plan/">plan</a>
    <a href="https://elsewhere.example/docs/x/">External</a>
  </nav>
  <main>
    <a href="/docs/features/caching/">Caching again</a>
    <a href="/docs/community/support/">Support</a>
    <a href="/docs/features/empty/"></a>
  </main>
</body></html>
"""

PAGE_HTML = """
<html><body>
  <div class="header">Site header</div>
  <nav><a href="/docs/">Docs</a></nav>
  <script>var tracking = 1;</script>
  <div class="content">
    <h1>Caching</h1>
    <p>Terragrunt   caches
       providers.</p>
  </div>
  <div class="footer">Copyright</div>
</body></html>
"""


class TestDiscoverPages:
    """Test discover_pages function."""

    def test_collects_links_and_core_pages(self) -> None:
        pages = discover_pages(INDEX_HTML, BASE_URL)
        urls = [page.url for page in pages]

        assert urls[:4] == [
            f"{BASE_URL}/docs/getting-started/quick-start/",
            f"{BASE_URL}/docs/features/caching/",
            f"{BASE_URL}/docs/reference/cli/commands/plan/",
            f"{BASE_URL}/docs/community/support/",
        ]
        assert len(urls) == len(set(urls))
        for href, _, _ in CORE_PAGES:
            assert f"{BASE_URL}{href}" in urls

    def test_sections_from_path(self) -> None:
        pages = {page.url: page for page in discover_pages(INDEX_HTML, BASE_URL)}

        assert pages[f"{BASE_URL}/docs/reference/cli/commands/plan/"].section == "reference"
        assert pages[f"{BASE_URL}/docs/community/support/"].section == "community"
        assert pages[f"{BASE_URL}/docs/features/caching/"].title == "Caching"

    def test_skips_links_without_text(self) -> None:
        urls = [page.url for page in discover_pages(INDEX_HTML, BASE_URL)]
        assert f"{BASE_URL}/docs/features/empty/" not in urls


class TestExtractPageText:
    """Test extract_page_text function."""

    def test_strips_chrome_and_normalizes(self) -> None:
        assert extract_page_text(PAGE_HTML) == "Caching Terragrunt caches providers."

    def test_body_fallback(self) -> None:
        html = "<html><body><p>Plain   body</p></body></html>"
        assert extract_page_text(html) == "Plain body"


def _transport(pages: dict[str, tuple[int, str]]) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        status, body = pages.get(str(request.url), (404, "missing"))
        return httpx.Response(status, text=body)

    return httpx.MockTransport(handler)


class TestHttpCorpusSource:
    """Test HttpCorpusSource with a mocked transport."""

    def test_fetches_discovered_pages(self) -> None:
        pages = {
            f"{BASE_URL}/docs/": (200, INDEX_HTML),
            f"{BASE_URL}/docs/features/caching/": (200, PAGE_HTML),
            f"{BASE_URL}/docs/community/support/": (500, "boom"),
        }
        client = httpx.Client(transport=_transport(pages))

        documents = HttpCorpusSource(client=client).fetch_corpus(BASE_URL)

        assert len(documents) == 1
        doc = documents[0]
        assert doc.title == "Caching"
        assert doc.url == f"{BASE_URL}/docs/features/caching/"
        assert doc.section == "features"
        assert doc.content == "Caching Terragrunt caches providers."
        assert doc.last_updated is not None and doc.last_updated.endswith("Z")

    def test_max_pages_bounds_crawl(self) -> None:
        requested = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(str(request.url))
            if request.url.path == "/docs/":
                return httpx.Response(200, text=INDEX_HTML)
            return httpx.Response(200, text=PAGE_HTML)

        client = httpx.Client(transport=httpx.MockTransport(handler))
        documents = HttpCorpusSource(client=client, max_pages=2).fetch_corpus(BASE_URL)

        assert len(documents) == 2
        assert len(requested) == 3

    def test_index_failure_raises(self) -> None:
        client = httpx.Client(transport=_transport({f"{BASE_URL}/docs/": (503, "down")}))

        with pytest.raises(CorpusSourceError):
            HttpCorpusSource(client=client).fetch_corpus(BASE_URL)

    def test_transport_error_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        client = httpx.Client(transport=httpx.MockTransport(handler))
        with pytest.raises(CorpusSourceError):
            HttpCorpusSource(client=client).fetch_corpus(BASE_URL)

    def test_no_documents_raises(self) -> None:
        client = httpx.Client(transport=_transport({f"{BASE_URL}/docs/": (200, INDEX_HTML)}))

        with pytest.raises(CorpusSourceError):
            HttpCorpusSource(client=client).fetch_corpus(BASE_URL)
