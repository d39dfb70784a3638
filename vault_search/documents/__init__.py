"""Document model and corpus adapters."""

from vault_search.documents.corpus import CorpusAdapter, InMemoryCorpus, MarkdownCorpus
from vault_search.documents.models import Document

__all__ = [
    "CorpusAdapter",
    "Document",
    "InMemoryCorpus",
    "MarkdownCorpus",
]
