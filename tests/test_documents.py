"""Tests for documents and corpus adapters."""

from pathlib import Path

import pytest
from pydantic import ValidationError as PydanticValidationError

from vault_search.documents import Document, InMemoryCorpus, MarkdownCorpus
from vault_search.exceptions import CorpusError, ErrorCode


class TestDocument:
    """Tests for Document model."""

    def test_create_document(self) -> None:
        """Document can be created with metadata."""
        doc = Document(id="a", title="Title", body="Body", folder="notes", tags=["x"])
        assert doc.id == "a"
        assert doc.folder == "notes"
        assert doc.tags == ["x"]

    @pytest.mark.parametrize("field", ["id", "title", "body"])
    def test_required_text_fields(self, field: str) -> None:
        """Empty id, title or body is rejected."""
        values = {"id": "a", "title": "Title", "body": "Body", field: "   "}
        with pytest.raises(PydanticValidationError):
            Document(**values)

    def test_blank_folder_becomes_none(self) -> None:
        """Blank folder is normalized to None."""
        doc = Document(id="a", title="T", body="B", folder="  ")
        assert doc.folder is None

    def test_tags_deduplicated_in_order(self) -> None:
        """Duplicate and blank tags are dropped, first occurrence wins."""
        doc = Document(id="a", title="T", body="B", tags=["b", " a", "b", "", "a"])
        assert doc.tags == ["b", "a"]

    def test_embedding_text(self) -> None:
        """Title and body are embedded together."""
        doc = Document(id="a", title="Docker", body="containers")
        assert doc.embedding_text() == "Docker\n\ncontainers"

    def test_content_hash_stable(self) -> None:
        """Same content hashes the same."""
        a = Document(id="a", title="T", body="B", tags=["x"])
        b = Document(id="a", title="T", body="B", tags=["x"])
        assert a.content_hash() == b.content_hash()

    def test_content_hash_tracks_metadata(self) -> None:
        """Changing tags or folder changes the hash."""
        base = Document(id="a", title="T", body="B")
        assert base.content_hash() != Document(
            id="a", title="T", body="B", tags=["x"]
        ).content_hash()
        assert base.content_hash() != Document(
            id="a", title="T", body="B", folder="f"
        ).content_hash()

    def test_frozen(self) -> None:
        """Documents are immutable."""
        doc = Document(id="a", title="T", body="B")
        with pytest.raises(PydanticValidationError):
            doc.title = "Other"  # type: ignore[misc]


class TestInMemoryCorpus:
    """Tests for InMemoryCorpus."""

    def test_load_in_order(self, sample_documents: list[Document]) -> None:
        """Documents are enumerated in insertion order."""
        corpus = InMemoryCorpus(sample_documents)
        assert [d.id for d in corpus.load()] == ["a", "b", "c"]

    def test_accepts_dicts(self) -> None:
        """Plain mappings are validated into documents."""
        corpus = InMemoryCorpus([{"id": "a", "title": "T", "body": "B"}])
        assert corpus.load()[0].title == "T"

    def test_invalid_dict_raises(self) -> None:
        """Invalid mappings raise CorpusError."""
        with pytest.raises(CorpusError) as exc_info:
            InMemoryCorpus([{"id": "a", "title": "", "body": "B"}])
        assert exc_info.value.code == ErrorCode.DOCUMENT_INVALID

    def test_duplicate_ids_raise(self) -> None:
        """Two documents with one id are rejected on load."""
        corpus = InMemoryCorpus(
            [
                Document(id="a", title="One", body="B"),
                Document(id="a", title="Two", body="B"),
            ]
        )
        with pytest.raises(CorpusError) as exc_info:
            corpus.load()
        assert exc_info.value.code == ErrorCode.DUPLICATE_DOCUMENT

    def test_add_replaces_by_id(self) -> None:
        """add() replaces a document with the same id."""
        corpus = InMemoryCorpus([Document(id="a", title="Old", body="B")])
        corpus.add(Document(id="a", title="New", body="B"))
        docs = corpus.load()
        assert len(docs) == 1
        assert docs[0].title == "New"

    def test_remove(self, sample_documents: list[Document]) -> None:
        """remove() drops a document and ignores unknown ids."""
        corpus = InMemoryCorpus(sample_documents)
        corpus.remove("b")
        corpus.remove("missing")
        assert [d.id for d in corpus.load()] == ["a", "c"]


class TestMarkdownCorpus:
    """Tests for MarkdownCorpus."""

    def _write(self, root: Path, relative: str, text: str) -> None:
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")

    def test_front_matter(self, tmp_path: Path) -> None:
        """Title, tags and body come from front matter and text."""
        self._write(
            tmp_path,
            "devops/docker.md",
            "---\ntitle: Deploying with Docker\ntags: [docker, containers]\n---\n"
            "Containers and images.\n",
        )
        docs = MarkdownCorpus(tmp_path).load()

        assert len(docs) == 1
        doc = docs[0]
        assert doc.id == "devops/docker"
        assert doc.title == "Deploying with Docker"
        assert doc.folder == "devops"
        assert doc.tags == ["docker", "containers"]
        assert doc.body == "Containers and images."

    def test_title_from_heading(self, tmp_path: Path) -> None:
        """Without a front matter title the first heading is used."""
        self._write(tmp_path, "notes/k8s.md", "# Kubernetes scaling\n\nPods.\n")
        doc = MarkdownCorpus(tmp_path).load()[0]
        assert doc.title == "Kubernetes scaling"

    def test_title_from_stem(self, tmp_path: Path) -> None:
        """Without front matter or heading the file stem is the title."""
        self._write(tmp_path, "bread.md", "Flour and yeast.\n")
        doc = MarkdownCorpus(tmp_path).load()[0]
        assert doc.title == "bread"
        assert doc.id == "bread"
        assert doc.folder is None

    def test_comma_separated_tags(self, tmp_path: Path) -> None:
        """Tags may be a comma-separated string."""
        self._write(tmp_path, "a.md", "---\ntags: one, two ,three\n---\nBody\n")
        assert MarkdownCorpus(tmp_path).load()[0].tags == ["one", "two", "three"]

    def test_folder_override(self, tmp_path: Path) -> None:
        """Front matter folder wins over the directory name."""
        self._write(tmp_path, "inbox/a.md", "---\nfolder: archive\n---\nBody\n")
        assert MarkdownCorpus(tmp_path).load()[0].folder == "archive"

    def test_drafts_and_empty_skipped(self, tmp_path: Path) -> None:
        """Drafts and files without a body are not indexed."""
        self._write(tmp_path, "draft.md", "---\ndraft: true\n---\nSecret\n")
        self._write(tmp_path, "empty.md", "---\ntitle: Empty\n---\n\n")
        self._write(tmp_path, "real.md", "Body\n")
        assert [d.id for d in MarkdownCorpus(tmp_path).load()] == ["real"]

    def test_sorted_and_filtered(self, tmp_path: Path) -> None:
        """Only markdown files are read, in sorted path order."""
        self._write(tmp_path, "b/two.md", "Two\n")
        self._write(tmp_path, "a/one.markdown", "One\n")
        self._write(tmp_path, "a/image.png", "not markdown")
        ids = [d.id for d in MarkdownCorpus(tmp_path).load()]
        assert ids == ["a/one", "b/two"]

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        """Broken front matter raises CorpusError."""
        self._write(tmp_path, "bad.md", "---\ntitle: [unclosed\n---\nBody\n")
        with pytest.raises(CorpusError) as exc_info:
            MarkdownCorpus(tmp_path).load()
        assert exc_info.value.code == ErrorCode.DOCUMENT_INVALID

    def test_undecodable_file(self, tmp_path: Path) -> None:
        """Files that are not valid text raise CorpusError."""
        (tmp_path / "binary.md").write_bytes(b"\xff\xfe\xfa")
        with pytest.raises(CorpusError):
            MarkdownCorpus(tmp_path).load()

    def test_missing_root(self, tmp_path: Path) -> None:
        """A missing content directory raises CorpusError."""
        with pytest.raises(CorpusError, match="not found"):
            MarkdownCorpus(tmp_path / "missing").load()
