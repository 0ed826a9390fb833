"""Documentation tools exposed to the CLI and HTTP surfaces.

Every tool returns a JSON-serializable dict. Lookups that find nothing
return an `error` plus a `suggestion` instead of raising.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Sequence, TypeVar

from pydantic import BaseModel, StrictInt, StrictStr, ValidationError

from tgdocs.errors import ToolArgumentError, UnknownToolError
from tgdocs.index.search import CorpusProvider, Retriever
from tgdocs.models import Document
from tgdocs.utils.text import truncate

LOGGER = logging.getLogger(__name__)

SNIPPET_CHARS = 300
SECTION_CONTENT_CHARS = 500
CONFIG_CONTENT_CHARS = 800
DEFAULT_LIMIT = 5

T = TypeVar("T")

TOOLS: List[Dict[str, Any]] = [
    {
        "name": "search_terragrunt_docs",
        "description": (
            "Search Terragrunt documentation for specific topics, commands, "
            "concepts, or configuration options"
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": (
                        'Search query for Terragrunt documentation (e.g., "dependencies", '
                        '"remote state", "generate block")'
                    ),
                },
                "limit": {
                    "type": "number",
                    "description": "Maximum number of results to return",
                    "default": DEFAULT_LIMIT,
                    "minimum": 1,
                    "maximum": 20,
                },
            },
            "required": ["query"],
        },
    },
    {
        "name": "get_terragrunt_sections",
        "description": "Get all available documentation sections in Terragrunt docs",
        "inputSchema": {"type": "object", "properties": {}, "required": []},
    },
    {
        "name": "get_section_docs",
        "description": "Get all documentation for a specific Terragrunt section",
        "inputSchema": {
            "type": "object",
            "properties": {
                "section": {
                    "type": "string",
                    "description": 'The section name (e.g., "getting-started", "reference", "features")',
                }
            },
            "required": ["section"],
        },
    },
    {
        "name": "get_cli_command_help",
        "description": "Get the reference documentation for a Terragrunt CLI command",
        "inputSchema": {
            "type": "object",
            "properties": {
                "command": {
                    "type": "string",
                    "description": 'The CLI command name (e.g., "plan", "run-all", "hclfmt")',
                }
            },
            "required": ["command"],
        },
    },
    {
        "name": "get_hcl_config_reference",
        "description": "Look up Terragrunt HCL configuration blocks, attributes and functions",
        "inputSchema": {
            "type": "object",
            "properties": {
                "config": {
                    "type": "string",
                    "description": 'The block, attribute or function name (e.g., "remote_state", "dependency")',
                }
            },
            "required": ["config"],
        },
    },
    {
        "name": "get_code_examples",
        "description": "Extract Terragrunt configuration and command examples for a topic",
        "inputSchema": {
            "type": "object",
            "properties": {
                "topic": {
                    "type": "string",
                    "description": 'The topic to find examples for (e.g., "dependency", "remote state")',
                },
                "limit": {
                    "type": "number",
                    "description": "Maximum number of documents with examples to return",
                    "default": DEFAULT_LIMIT,
                    "minimum": 1,
                    "maximum": 20,
                },
            },
            "required": ["topic"],
        },
    },
]


class SearchArgs(BaseModel):
    query: StrictStr
    limit: StrictInt = DEFAULT_LIMIT


class SectionArgs(BaseModel):
    section: StrictStr


class CommandArgs(BaseModel):
    command: StrictStr


class ConfigArgs(BaseModel):
    config: StrictStr


class ExamplesArgs(BaseModel):
    topic: StrictStr
    limit: StrictInt = DEFAULT_LIMIT


ArgsModel = TypeVar("ArgsModel", bound=BaseModel)


def apply_limit(items: Sequence[T], limit: int) -> List[T]:
    """Slice to `limit` items. Zero or negative limits yield nothing."""
    if limit <= 0:
        return []
    return list(items[:limit])


def _parse(model: type[ArgsModel], args: Mapping[str, Any]) -> ArgsModel:
    try:
        return model.model_validate(dict(args))
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'arguments'}: {error['msg']}"
            for error in exc.errors()
        )
        raise ToolArgumentError(f"Invalid arguments: {problems}") from exc


class ToolHandler:
    """Dispatches tool calls onto the retrieval engine."""

    def __init__(self, provider: CorpusProvider) -> None:
        self.retriever = Retriever(provider)
        self._tools: Dict[str, Callable[[Mapping[str, Any]], Dict[str, Any]]] = {
            "search_terragrunt_docs": self._search_docs,
            "get_terragrunt_sections": self._get_sections,
            "get_section_docs": self._get_section_docs,
            "get_cli_command_help": self._get_cli_command_help,
            "get_hcl_config_reference": self._get_hcl_config_reference,
            "get_code_examples": self._get_code_examples,
        }

    def get_tools(self) -> List[Dict[str, Any]]:
        return [dict(tool) for tool in TOOLS]

    def call_tool(self, name: str, args: Mapping[str, Any] | None = None) -> Dict[str, Any]:
        """Run a tool, raising UnknownToolError or ToolArgumentError on bad input."""
        tool = self._tools.get(name)
        if tool is None:
            raise UnknownToolError(f"Unknown tool: {name}")
        return tool(args or {})

    def execute_tool(self, name: str, args: Mapping[str, Any] | None = None) -> Dict[str, Any]:
        """Run a tool; every failure comes back as an `error` payload."""
        try:
            return self.call_tool(name, args)
        except (UnknownToolError, ToolArgumentError) as exc:
            return {"error": str(exc)}
        except Exception as exc:
            LOGGER.exception("Error executing tool %s", name)
            return {"error": str(exc) or exc.__class__.__name__}

    def _search_docs(self, args: Mapping[str, Any]) -> Dict[str, Any]:
        params = _parse(SearchArgs, args)
        results = self.retriever.search(params.query)
        shown = apply_limit(results, params.limit)
        return {
            "query": params.query,
            "results": [
                {
                    "title": doc.title,
                    "url": doc.url,
                    "section": doc.section,
                    "snippet": truncate(doc.content, SNIPPET_CHARS),
                    "lastUpdated": doc.last_updated,
                }
                for doc in shown
            ],
            "total": len(results),
            "hasMore": len(results) > len(shown),
        }

    def _get_sections(self, args: Mapping[str, Any]) -> Dict[str, Any]:
        retriever = self.retriever.pinned()
        documents = retriever.search("")
        counts: Dict[str, int] = {}
        for doc in documents:
            counts[doc.section] = counts.get(doc.section, 0) + 1
        sections = retriever.list_sections()
        return {
            "sections": [{"name": name, "docCount": counts[name]} for name in sections],
            "totalSections": len(sections),
            "totalDocs": len(documents),
        }

    def _get_section_docs(self, args: Mapping[str, Any]) -> Dict[str, Any]:
        params = _parse(SectionArgs, args)
        retriever = self.retriever.pinned()
        docs = retriever.get_by_section(params.section)
        if not docs:
            return {
                "section": params.section,
                "error": f"No documentation found for section: {params.section}",
                "availableSections": retriever.list_sections(),
            }
        return {
            "section": params.section,
            "docs": [
                {
                    "title": doc.title,
                    "url": doc.url,
                    "content": truncate(doc.content, SECTION_CONTENT_CHARS),
                    "lastUpdated": doc.last_updated,
                }
                for doc in docs
            ],
            "totalDocs": len(docs),
        }

    def _get_cli_command_help(self, args: Mapping[str, Any]) -> Dict[str, Any]:
        params = _parse(CommandArgs, args)
        retriever = self.retriever.pinned()
        doc = retriever.lookup_command_help(params.command)
        if doc is None:
            known = retriever.list_commands()
            if known:
                suggestion = "Available commands include: " + ", ".join(known[:15])
            else:
                suggestion = "Try search_terragrunt_docs with the command name to find related pages."
            return {
                "command": params.command,
                "error": f"No documentation found for command: {params.command}",
                "suggestion": suggestion,
            }
        return {"command": params.command, **_document_payload(doc)}

    def _get_hcl_config_reference(self, args: Mapping[str, Any]) -> Dict[str, Any]:
        params = _parse(ConfigArgs, args)
        docs = self.retriever.lookup_config_reference(params.config)
        if not docs:
            return {
                "config": params.config,
                "error": f"No HCL configuration reference found for: {params.config}",
                "suggestion": (
                    "Check the block or attribute name (e.g. terraform, remote_state, "
                    "dependency, include, inputs) or use search_terragrunt_docs."
                ),
            }
        return {
            "config": params.config,
            "results": [
                {
                    "title": doc.title,
                    "url": doc.url,
                    "section": doc.section,
                    "content": truncate(doc.content, CONFIG_CONTENT_CHARS),
                }
                for doc in docs
            ],
            "total": len(docs),
        }

    def _get_code_examples(self, args: Mapping[str, Any]) -> Dict[str, Any]:
        params = _parse(ExamplesArgs, args)
        found = self.retriever.extract_code_examples(params.topic)
        if not found:
            return {
                "topic": params.topic,
                "error": f"No code examples found for topic: {params.topic}",
                "suggestion": "Try a broader topic such as a block name (dependency, remote_state) or a command.",
            }
        return {
            "topic": params.topic,
            "examples": [
                {
                    "title": example.document.title,
                    "url": example.document.url,
                    "section": example.document.section,
                    "examples": list(example.snippets),
                }
                for example in apply_limit(found, params.limit)
            ],
            "total": len(found),
        }


def _document_payload(doc: Document) -> Dict[str, Any]:
    return {
        "title": doc.title,
        "url": doc.url,
        "section": doc.section,
        "content": doc.content,
        "lastUpdated": doc.last_updated,
    }
