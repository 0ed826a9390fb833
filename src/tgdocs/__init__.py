"""tgdocs - offline-first Terragrunt documentation cache and retrieval."""

from tgdocs.config import AppConfig
from tgdocs.index.cache import CacheEngine
from tgdocs.index.search import Retriever
from tgdocs.models import CodeExample, Corpus, Document
from tgdocs.tools import ToolHandler

__all__ = [
    "__version__",
    "AppConfig",
    "CacheEngine",
    "CodeExample",
    "Corpus",
    "Document",
    "Retriever",
    "ToolHandler",
]

__version__ = "0.1.0"
