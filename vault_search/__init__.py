"""Content indexing and semantic search engine for markdown vaults."""

__version__ = "0.1.0"
