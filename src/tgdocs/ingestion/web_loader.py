"""Scrape the Terragrunt documentation site into documents.

Uses httpx for transport and BeautifulSoup for HTML parsing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Protocol
from urllib.parse import urljoin, urlparse

import httpx
from bs4 import BeautifulSoup

from tgdocs.errors import CorpusSourceError
from tgdocs.models import Document
from tgdocs.utils.text import clean_content, extract_section, format_timestamp, utcnow

LOGGER = logging.getLogger(__name__)

NAV_LINK_SELECTOR = 'nav a[href^="/docs/"], .sidebar a[href^="/docs/"], .menu a[href^="/docs/"]'
CONTENT_LINK_SELECTOR = '.content a[href^="/docs/"], main a[href^="/docs/"]'
CHROME_SELECTOR = "nav, .sidebar, .menu, .header, .footer, script, style"
CONTENT_SELECTORS = (".content", ".markdown", "main", ".post-content", ".doc-content", "article")

CORE_PAGES = (
    ("/docs/getting-started/quick-start/", "Quick Start", "getting-started"),
    ("/docs/reference/config-blocks-and-attributes/", "Configuration Reference", "reference"),
    ("/docs/features/keep-your-terraform-code-dry/", "Keep Your Code DRY", "features"),
    (
        "/docs/features/execute-terraform-commands-on-multiple-modules-at-once/",
        "Multiple Modules",
        "features",
    ),
)


class CorpusSource(Protocol):
    def fetch_corpus(self, base_url: str) -> List[Document]: ...


@dataclass(frozen=True, slots=True)
class PageRef:
    url: str
    title: str
    section: str


def discover_pages(index_html: str, base_url: str) -> List[PageRef]:
    """Collect documentation links from the docs landing page."""
    soup = BeautifulSoup(index_html, "html.parser")
    base = base_url.rstrip("/")
    pages: List[PageRef] = []
    seen: set[str] = set()

    def add(href: str, title: str, section: str | None = None) -> None:
        url = urljoin(base + "/", href).split("#")[0]
        if not title or url in seen:
            return
        seen.add(url)
        pages.append(PageRef(url=url, title=title, section=section or extract_section(href)))

    for selector in (NAV_LINK_SELECTOR, CONTENT_LINK_SELECTOR):
        for anchor in soup.select(selector):
            href = anchor.get("href")
            if href:
                add(href, anchor.get_text(strip=True))

    for href, title, section in CORE_PAGES:
        add(href, title, section)

    return pages


def extract_page_text(html: str) -> str:
    """Return the cleaned main text of a documentation page."""
    soup = BeautifulSoup(html, "html.parser")
    for element in soup.select(CHROME_SELECTOR):
        element.decompose()

    text = ""
    for selector in CONTENT_SELECTORS:
        element = soup.select_one(selector)
        if element is not None:
            text = element.get_text(" ", strip=True)
            break

    if not text and soup.body is not None:
        text = soup.body.get_text(" ", strip=True)

    return clean_content(text)


class HttpCorpusSource:
    """Fetches the documentation index and every page it links to."""

    def __init__(
        self,
        *,
        timeout_s: float = 20.0,
        max_pages: int | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self.timeout_s = timeout_s
        self.max_pages = max_pages
        self._client = client

    def _new_client(self) -> httpx.Client:
        return httpx.Client(
            timeout=self.timeout_s,
            follow_redirects=True,
            headers={"User-Agent": "tgdocs (+https://terragrunt.gruntwork.io/docs/)"},
        )

    def fetch_corpus(self, base_url: str) -> List[Document]:
        if self._client is not None:
            return self._fetch(self._client, base_url)
        with self._new_client() as client:
            return self._fetch(client, base_url)

    def _fetch(self, client: httpx.Client, base_url: str) -> List[Document]:
        index_url = base_url.rstrip("/") + "/docs/"
        try:
            response = client.get(index_url)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise CorpusSourceError(f"Failed to fetch documentation index {index_url}: {exc}") from exc

        pages = discover_pages(response.text, base_url)
        if self.max_pages is not None:
            pages = pages[: self.max_pages]
        LOGGER.info("Discovered %d documentation pages", len(pages))

        fetched_at = format_timestamp(utcnow())
        documents: List[Document] = []
        for page in pages:
            doc = self._fetch_page(client, page, fetched_at)
            if doc is not None:
                documents.append(doc)

        if not documents:
            raise CorpusSourceError(f"No documentation pages could be extracted from {base_url}")
        return documents

    def _fetch_page(self, client: httpx.Client, page: PageRef, fetched_at: str) -> Document | None:
        if urlparse(page.url).scheme not in {"http", "https"}:
            return None
        try:
            response = client.get(page.url)
        except httpx.HTTPError as exc:
            LOGGER.error("Failed to fetch doc page %s: %s", page.url, exc)
            return None
        if not response.is_success:
            LOGGER.warning("Failed to fetch %s: %s", page.url, response.status_code)
            return None

        content = extract_page_text(response.text)
        if not content:
            LOGGER.warning("No content found for %s", page.url)
            return None

        return Document(
            title=page.title,
            url=page.url,
            content=content,
            section=page.section,
            last_updated=fetched_at,
        )
