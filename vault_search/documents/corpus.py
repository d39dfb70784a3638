"""Corpus adapters that feed documents to the indexing pipeline."""

import re
from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from vault_search.documents.models import Document
from vault_search.exceptions import CorpusError, ErrorCode
from vault_search.logging_config import get_logger

logger = get_logger(__name__)

_FRONT_MATTER = re.compile(r"\A---\s*\n(.*?)\n---\s*(?:\n|\Z)", re.DOTALL)
_HEADING = re.compile(r"^#\s+(.+?)\s*#*\s*$", re.MULTILINE)


class CorpusAdapter(ABC):
    """Abstract source of documents.

    Implementations guarantee every yielded document has a non-empty
    id, title and body.
    """

    @abstractmethod
    def iter_documents(self) -> Iterator[Document]:
        """Enumerate all documents currently in the corpus.

        Raises:
            CorpusError: If a content unit cannot be normalized.
        """
        ...

    def load(self) -> list[Document]:
        """Enumerate the corpus, rejecting duplicate ids.

        Returns:
            All documents in enumeration order.

        Raises:
            CorpusError: If two units share an id.
        """
        documents: list[Document] = []
        seen: set[str] = set()
        for document in self.iter_documents():
            if document.id in seen:
                raise CorpusError(
                    f"Duplicate document id: {document.id}",
                    code=ErrorCode.DUPLICATE_DOCUMENT,
                    details={"id": document.id},
                )
            seen.add(document.id)
            documents.append(document)
        return documents


class InMemoryCorpus(CorpusAdapter):
    """Corpus over documents supplied by the surrounding application."""

    def __init__(self, documents: Iterable[Document | dict[str, Any]] = ()) -> None:
        self._documents = [_coerce(doc) for doc in documents]

    def add(self, document: Document | dict[str, Any]) -> None:
        """Add or replace a document by id."""
        document = _coerce(document)
        self._documents = [d for d in self._documents if d.id != document.id]
        self._documents.append(document)

    def remove(self, document_id: str) -> None:
        """Drop a document; no-op if absent."""
        self._documents = [d for d in self._documents if d.id != document_id]

    def iter_documents(self) -> Iterator[Document]:
        return iter(list(self._documents))


class MarkdownCorpus(CorpusAdapter):
    """Markdown vault laid out as ``<root>/<folder>/**/<slug>.md``.

    Front matter (YAML between ``---`` fences) may set ``title``, ``tags``,
    ``folder`` and ``draft``. The document id is the path relative to the
    root without its extension, so it survives edits to the content.
    """

    SUPPORTED_EXTENSIONS = {".md", ".markdown"}

    def __init__(self, root: str | Path, encoding: str = "utf-8") -> None:
        self.root = Path(root)
        self.encoding = encoding

    def iter_documents(self) -> Iterator[Document]:
        if not self.root.is_dir():
            raise CorpusError(
                f"Content directory not found: {self.root}",
                details={"path": str(self.root)},
            )

        paths = sorted(
            p
            for p in self.root.rglob("*")
            if p.is_file() and p.suffix.lower() in self.SUPPORTED_EXTENSIONS
        )
        for path in paths:
            document = self.load_file(path)
            if document is not None:
                yield document

    def load_file(self, path: Path) -> Document | None:
        """Parse one markdown file.

        Returns:
            The document, or None for drafts and files without a body.

        Raises:
            CorpusError: If the file cannot be read or its front matter is invalid.
        """
        try:
            text = path.read_text(encoding=self.encoding)
        except UnicodeDecodeError as e:
            raise CorpusError(
                f"Failed to decode file: {path}",
                code=ErrorCode.DOCUMENT_INVALID,
                details={"path": str(path), "encoding": self.encoding},
            ) from e
        except OSError as e:
            raise CorpusError(
                f"Failed to read file: {path}",
                details={"path": str(path), "error": str(e)},
            ) from e

        meta, body = _split_front_matter(text, path)
        if meta.get("draft") is True:
            logger.debug(f"Skipping draft {path}")
            return None

        body = body.strip()
        if not body:
            logger.warning(f"Skipping empty document {path}")
            return None

        relative = path.relative_to(self.root).with_suffix("")
        doc_id = relative.as_posix()
        folder = meta.get("folder")
        if folder is None and len(relative.parts) > 1:
            folder = relative.parts[0]

        title = meta.get("title")
        if not title:
            heading = _HEADING.search(body)
            title = heading.group(1) if heading else path.stem

        try:
            return Document(
                id=doc_id,
                title=str(title),
                body=body,
                folder=str(folder) if folder is not None else None,
                tags=_parse_tags(meta.get("tags")),
            )
        except PydanticValidationError as e:
            raise CorpusError(
                f"Invalid document: {path}",
                code=ErrorCode.DOCUMENT_INVALID,
                details={"path": str(path), "error": str(e)},
            ) from e


def _coerce(document: Document | dict[str, Any]) -> Document:
    if isinstance(document, Document):
        return document
    try:
        return Document(**document)
    except PydanticValidationError as e:
        raise CorpusError(
            "Invalid document",
            code=ErrorCode.DOCUMENT_INVALID,
            details={"id": document.get("id"), "error": str(e)},
        ) from e


def _split_front_matter(text: str, path: Path) -> tuple[dict[str, Any], str]:
    match = _FRONT_MATTER.match(text)
    if match is None:
        return {}, text

    try:
        meta = yaml.safe_load(match.group(1)) or {}
    except yaml.YAMLError as e:
        raise CorpusError(
            f"Invalid front matter: {path}",
            code=ErrorCode.DOCUMENT_INVALID,
            details={"path": str(path), "error": str(e)},
        ) from e

    if not isinstance(meta, dict):
        raise CorpusError(
            f"Front matter must be a mapping: {path}",
            code=ErrorCode.DOCUMENT_INVALID,
            details={"path": str(path)},
        )
    return meta, text[match.end() :]


def _parse_tags(raw: Any) -> list[str]:
    if raw is None:
        return []
    if isinstance(raw, str):
        return [t.strip() for t in raw.split(",") if t.strip()]
    if isinstance(raw, (list, tuple)):
        return [str(t) for t in raw if t is not None]
    return [str(raw)]
