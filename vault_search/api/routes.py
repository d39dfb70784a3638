"""API routes for search and document browsing."""

from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, Field

from vault_search.context import SearchContext
from vault_search.documents.models import Document
from vault_search.exceptions import RecordNotFound
from vault_search.logging_config import get_logger
from vault_search.search.engine import QueryEngine
from vault_search.vectorstore.models import SearchFilter, SearchResult

logger = get_logger(__name__)


router = APIRouter(prefix="/api/v1", tags=["Search"])


class SearchRequest(BaseModel):
    """Request body for a search."""

    query: str = Field(max_length=1000, description="Natural-language query")
    limit: int | None = Field(default=None, description="Maximum results")
    folder: str | None = Field(default=None, description="Restrict to one folder")
    tags: list[str] = Field(
        default_factory=list,
        description="Restrict to documents carrying every tag",
    )

    def to_filter(self) -> SearchFilter | None:
        search_filter = SearchFilter(folder=self.folder, tags=self.tags)
        return None if search_filter.is_empty else search_filter


class SearchHit(BaseModel):
    """One ranked document."""

    id: str = Field(description="Document id")
    title: str = Field(description="Document title")
    folder: str | None = Field(default=None, description="Document folder")
    tags: list[str] = Field(default_factory=list, description="Document tags")
    similarity: float = Field(description="Cosine similarity, rounded")
    matched_by: Literal["vector", "keyword"] = Field(default="vector")


class SearchResponse(BaseModel):
    """Response from a search."""

    query: str = Field(description="Query as received")
    count: int = Field(description="Number of results")
    results: list[SearchHit] = Field(description="Ranked results")


class DocumentSummary(BaseModel):
    """Document metadata without the body."""

    id: str
    title: str
    folder: str | None = None
    tags: list[str] = Field(default_factory=list)


class DocumentListResponse(BaseModel):
    """Every indexed document."""

    count: int = Field(description="Number of documents")
    documents: list[DocumentSummary] = Field(description="Documents ordered by id")


class FolderListResponse(BaseModel):
    """Distinct folders in the index."""

    folders: list[str] = Field(description="Sorted folder names")


def get_context(request: Request) -> SearchContext:
    """Resolve the application's search context."""
    context: SearchContext | None = getattr(request.app.state, "context", None)
    if context is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={
                "error": "Search context not initialized",
                "message": "The search engine requires an embedding provider and vector store",
            },
        )
    return context


@router.post("/search", response_model=SearchResponse)
async def search_endpoint(
    request: SearchRequest,
    context: SearchContext = Depends(get_context),
) -> SearchResponse:
    """Rank indexed documents by meaning."""
    engine = QueryEngine(context)
    results = await engine.search(
        request.query,
        limit=request.limit,
        search_filter=request.to_filter(),
    )
    precision = context.settings.search.score_precision
    return SearchResponse(
        query=request.query,
        count=len(results),
        results=[to_search_hit(r, precision) for r in results],
    )


@router.get("/documents", response_model=DocumentListResponse)
async def list_documents_endpoint(
    context: SearchContext = Depends(get_context),
) -> DocumentListResponse:
    """List indexed documents."""
    documents = await context.vector_store.list_all()
    return DocumentListResponse(
        count=len(documents),
        documents=[to_summary(d) for d in documents],
    )


@router.get("/documents/{document_id:path}", response_model=Document)
async def get_document_endpoint(
    document_id: str,
    context: SearchContext = Depends(get_context),
) -> Document:
    """Fetch one indexed document with its body."""
    document = await context.vector_store.get_by_id(document_id)
    if document is None:
        raise RecordNotFound(
            f"Document not found: {document_id}",
            details={"id": document_id},
        )
    return document


@router.get("/folders", response_model=FolderListResponse)
async def list_folders_endpoint(
    context: SearchContext = Depends(get_context),
) -> FolderListResponse:
    """List distinct folders."""
    return FolderListResponse(folders=await context.vector_store.list_folders())


def to_search_hit(result: SearchResult, precision: int = 4) -> SearchHit:
    """Convert an engine result to its API shape."""
    return SearchHit(**result.to_payload(precision), matched_by=result.matched_by)


def to_summary(document: Document) -> DocumentSummary:
    """Strip the body from a document."""
    return DocumentSummary(
        id=document.id,
        title=document.title,
        folder=document.folder,
        tags=list(document.tags),
    )
