"""Full-text retrieval over the cached documentation corpus."""

from __future__ import annotations

import re
from typing import Iterator, List, Protocol, Tuple
from urllib.parse import urlparse

from tgdocs.models import CodeExample, Corpus, Document

REFERENCE_SECTION = "reference"
CLI_COMMAND_MARKER = "/cli/commands/"
HCL_URL_MARKERS = (
    "/hcl/blocks",
    "/hcl/attributes",
    "/hcl/functions",
    "/config-blocks-and-attributes",
)

MAX_EXAMPLE_DOCS = 10
MAX_SNIPPETS_PER_DOC = 5
MAX_BLOCK_CHARS = 4000

BLOCK_KEYWORDS = (
    "terraform",
    "remote_state",
    "dependency",
    "dependencies",
    "include",
    "inputs",
    "locals",
    "generate",
    "feature",
    "errors",
    "exclude",
    "catalog",
    "engine",
    "unit",
    "stack",
)
CLI_COMMANDS = (
    "run-all",
    "run",
    "plan",
    "apply",
    "destroy",
    "init",
    "validate",
    "validate-inputs",
    "output",
    "output-module-groups",
    "graph-dependencies",
    "render-json",
    "render",
    "hclfmt",
    "hcl",
    "scaffold",
    "catalog",
    "stack",
    "find",
    "list",
    "info",
    "dag",
    "exec",
    "backend",
    "aws-provider-patch",
)

_BLOCK_START_RE = re.compile(
    r'\b(?:%s)\b(?:\s+"[^"\n]*")?\s*=?\s*\{' % "|".join(BLOCK_KEYWORDS)
)
_COMMAND_RE = re.compile(
    r"\bterragrunt\s+(?:%s)\b(?:\s+(?:%s)\b)?(?:\s+--?[a-z0-9][a-z0-9-]*(?:=\S+)?)*"
    % (
        "|".join(sorted(CLI_COMMANDS, key=len, reverse=True)),
        "|".join(sorted(CLI_COMMANDS, key=len, reverse=True)),
    )
)


class CorpusProvider(Protocol):
    def get_corpus(self) -> Corpus: ...


def _matching_brace(text: str, open_index: int) -> int | None:
    """Index of the brace closing the one at `open_index`, if any.

    Braces inside double-quoted strings do not count.
    """
    depth = 0
    in_string = False
    escaped = False
    limit = min(len(text), open_index + MAX_BLOCK_CHARS)
    for index in range(open_index, limit):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index
    return None


def _iter_fragments(content: str) -> Iterator[Tuple[int, str]]:
    covered_until = -1
    for match in _BLOCK_START_RE.finditer(content):
        if match.start() < covered_until:
            continue
        close = _matching_brace(content, match.end() - 1)
        if close is None:
            continue
        covered_until = close + 1
        yield match.start(), content[match.start() : close + 1].strip()

    for match in _COMMAND_RE.finditer(content):
        yield match.start(), match.group(0).strip()


def extract_code_blocks(content: str, *, limit: int = MAX_SNIPPETS_PER_DOC) -> List[str]:
    """Pull HCL blocks and terragrunt invocations out of page text.

    Fragments come back in document order, deduplicated, at most `limit`.
    """
    blocks: List[str] = []
    seen: set[str] = set()
    for _, fragment in sorted(_iter_fragments(content), key=lambda item: item[0]):
        if fragment in seen:
            continue
        seen.add(fragment)
        blocks.append(fragment)
        if len(blocks) >= limit:
            break
    return blocks


def _command_segments(url: str) -> List[str]:
    path = urlparse(url).path.lower()
    _, _, tail = path.partition(CLI_COMMAND_MARKER)
    return [segment for segment in tail.split("/") if segment]


class _PinnedCorpus:
    def __init__(self, corpus: Corpus) -> None:
        self.corpus = corpus

    def get_corpus(self) -> Corpus:
        return self.corpus


class Retriever:
    """Read-only queries over the corpus handed out by the cache engine."""

    def __init__(self, provider: CorpusProvider) -> None:
        self.provider = provider

    def pinned(self) -> "Retriever":
        """A retriever bound to the current corpus generation."""
        return Retriever(_PinnedCorpus(self.provider.get_corpus()))

    def _documents(self) -> List[Document]:
        return self.provider.get_corpus().to_list()

    def search(self, query: str) -> List[Document]:
        documents = self._documents()
        if not query.strip():
            return documents

        needle = query.casefold()

        def title_hit(doc: Document) -> bool:
            return needle in doc.title.casefold()

        def section_hit(doc: Document) -> bool:
            return needle in doc.section.casefold()

        matches = [
            doc
            for doc in documents
            if title_hit(doc) or section_hit(doc) or needle in doc.content.casefold()
        ]
        # sorted() is stable, so ties keep corpus order
        return sorted(matches, key=lambda doc: (not title_hit(doc), not section_hit(doc)))

    def list_sections(self) -> List[str]:
        return sorted({doc.section for doc in self._documents()})

    def get_by_section(self, section: str) -> List[Document]:
        return [doc for doc in self._documents() if doc.section == section]

    def get_by_url(self, url: str) -> Document | None:
        return self.provider.get_corpus().get(url)

    def lookup_command_help(self, command: str) -> Document | None:
        """Find the CLI reference page for a terragrunt command."""
        if not command:
            return None
        wanted = command.casefold()
        candidates = [
            doc
            for doc in self._documents()
            if doc.section == REFERENCE_SECTION and CLI_COMMAND_MARKER in doc.url.lower()
        ]

        tiers = (
            lambda doc: doc.title.casefold() == wanted,
            lambda doc: wanted in _command_segments(doc.url),
            lambda doc: wanted in doc.title.casefold(),
            lambda doc: f"{wanted} " in doc.content.casefold(),
        )
        for matches in tiers:
            for doc in candidates:
                if matches(doc):
                    return doc
        return None

    def list_commands(self) -> List[str]:
        """Titles of the CLI command reference pages."""
        return sorted(
            {
                doc.title
                for doc in self._documents()
                if doc.section == REFERENCE_SECTION and CLI_COMMAND_MARKER in doc.url.lower()
            }
        )

    def lookup_config_reference(self, name: str) -> List[Document]:
        needle = name.casefold()
        return [
            doc
            for doc in self._documents()
            if doc.section == REFERENCE_SECTION
            and any(marker in doc.url.lower() for marker in HCL_URL_MARKERS)
            and (needle in doc.title.casefold() or needle in doc.content.casefold())
        ]

    def extract_code_examples(self, topic: str) -> List[CodeExample]:
        needle = topic.casefold()
        candidates = [
            doc
            for doc in self._documents()
            if needle in doc.title.casefold() or needle in doc.content.casefold()
        ][:MAX_EXAMPLE_DOCS]

        examples: List[CodeExample] = []
        for doc in candidates:
            snippets = extract_code_blocks(doc.content)
            if snippets:
                examples.append(CodeExample(document=doc, snippets=tuple(snippets)))
        return examples
