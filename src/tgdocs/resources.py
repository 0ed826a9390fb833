"""Markdown resources rendered from the documentation corpus."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List
from urllib.parse import quote, unquote

from tgdocs.index.search import CorpusProvider, Retriever

LOGGER = logging.getLogger(__name__)

OVERVIEW_URI = "terragrunt://docs/overview"
SECTION_PREFIX = "terragrunt://docs/section/"
PAGE_PREFIX = "terragrunt://docs/page/"

MAX_PAGE_RESOURCES = 50
OVERVIEW_PAGES_PER_SECTION = 10


@dataclass(frozen=True, slots=True)
class Resource:
    uri: str
    name: str
    description: str
    mime_type: str = "text/markdown"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uri": self.uri,
            "name": self.name,
            "description": self.description,
            "mimeType": self.mime_type,
        }


@dataclass(frozen=True, slots=True)
class ResourceContent:
    uri: str
    text: str
    mime_type: str = "text/markdown"

    def to_dict(self) -> Dict[str, Any]:
        return {"uri": self.uri, "mimeType": self.mime_type, "text": self.text}


class ResourceHandler:
    def __init__(self, provider: CorpusProvider) -> None:
        self.retriever = Retriever(provider)

    def list_resources(self) -> List[Resource]:
        retriever = self.retriever.pinned()
        resources = [
            Resource(
                uri=OVERVIEW_URI,
                name="Terragrunt Documentation Overview",
                description="Complete overview of all Terragrunt documentation",
            )
        ]
        for section in retriever.list_sections():
            resources.append(
                Resource(
                    uri=SECTION_PREFIX + section,
                    name=f"Terragrunt {section} Documentation",
                    description=f"Documentation for Terragrunt {section} features and concepts",
                )
            )
        for doc in retriever.search("")[:MAX_PAGE_RESOURCES]:
            resources.append(
                Resource(
                    uri=PAGE_PREFIX + quote(doc.url, safe=""),
                    name=doc.title,
                    description=f"Documentation: {doc.title} ({doc.section})",
                )
            )
        return resources

    def read_resource(self, uri: str) -> ResourceContent:
        """Render a resource; unknown or empty resources yield a plain-text error."""
        retriever = self.retriever.pinned()
        if uri == OVERVIEW_URI:
            return ResourceContent(uri=uri, text=self._render_overview(retriever))
        if uri.startswith(SECTION_PREFIX):
            section = uri[len(SECTION_PREFIX) :]
            docs = retriever.get_by_section(section)
            if not docs:
                return _error(uri, f"No documentation found for section: {section}")
            body = "\n".join(f"## {doc.title}\n\n{doc.content}\n\n---\n" for doc in docs)
            return ResourceContent(uri=uri, text=f"# Terragrunt {section} Documentation\n\n{body}")
        if uri.startswith(PAGE_PREFIX):
            page_url = unquote(uri[len(PAGE_PREFIX) :])
            doc = retriever.get_by_url(page_url)
            if doc is None:
                return _error(uri, f"Documentation page not found: {page_url}")
            text = (
                f"# {doc.title}\n\n"
                f"**Source:** [{doc.url}]({doc.url})\n"
                f"**Section:** {doc.section}\n"
                f"**Last Updated:** {doc.last_updated or 'unknown'}\n\n"
                f"---\n\n{doc.content}"
            )
            return ResourceContent(uri=uri, text=text)
        return _error(uri, f"Unknown resource URI: {uri}")

    @staticmethod
    def _render_overview(retriever: Retriever) -> str:
        documents = retriever.search("")
        lines = [
            "# Terragrunt Documentation Overview",
            "",
            f"Total documentation pages: {len(documents)}",
            "",
            "## Available Sections:",
            "",
        ]
        for section in retriever.list_sections():
            section_docs = retriever.get_by_section(section)
            lines.append(f"### {section} ({len(section_docs)} pages)")
            lines.append("")
            for doc in section_docs[:OVERVIEW_PAGES_PER_SECTION]:
                lines.append(f"- [{doc.title}]({doc.url})")
            remaining = len(section_docs) - OVERVIEW_PAGES_PER_SECTION
            if remaining > 0:
                lines.append(f"- ... and {remaining} more pages")
            lines.append("")
        return "\n".join(lines)


def _error(uri: str, message: str) -> ResourceContent:
    LOGGER.warning("Resource read failed: %s", message)
    return ResourceContent(uri=uri, text=f"Error: {message}", mime_type="text/plain")
