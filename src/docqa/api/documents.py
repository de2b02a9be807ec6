"""API router exposing document upload, search and question endpoints."""
from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, File, HTTPException, Query, Response, UploadFile
from pydantic import BaseModel, Field

from docqa.conversation import ConversationTurn, Role
from docqa.errors import ExtractionError, NoDocumentError, UploadTooLargeError
from docqa.ingest.format_detection import UnsupportedFormatError
from docqa.ingest.models import Document
from docqa.retrieval import Citation
from docqa.services.qa import AnswerResult, DocumentQAService, get_qa_service

router = APIRouter(prefix="/documents", tags=["documents"])


class DocumentResponse(BaseModel):
    """Metadata describing an uploaded document."""

    id: str
    name: str
    page_count: int
    size_bytes: int
    uploaded_at: datetime


class PageResponse(BaseModel):
    document_id: str
    page_number: int
    text: str


class SearchResultItem(BaseModel):
    page: int
    text: str
    relevance: float


class SearchResponse(BaseModel):
    document_id: str
    query: str
    results: list[SearchResultItem]


class TurnPayload(BaseModel):
    """A conversation turn as exchanged with clients."""

    role: Role
    content: str
    timestamp: datetime | None = None


class QueryRequest(BaseModel):
    """Request body accepted by the query endpoint."""

    question: str = Field(..., min_length=1, description="Question to ask about the document.")
    history: list[TurnPayload] = Field(
        default_factory=list, description="Earlier turns of the conversation, oldest first."
    )


class CitationItem(BaseModel):
    id: str
    page_number: int
    text: str
    confidence: float


class QueryResponse(BaseModel):
    """Response payload for the query endpoint."""

    content: str
    citations: list[CitationItem]
    history: list[TurnPayload]
    error: str | None = None


class SummaryResponse(BaseModel):
    document_id: str
    summary: str


def _serialise_document(document: Document) -> DocumentResponse:
    return DocumentResponse(
        id=document.id,
        name=document.name,
        page_count=document.page_count,
        size_bytes=document.size_bytes,
        uploaded_at=document.uploaded_at,
    )


def _serialise_citation(citation: Citation) -> CitationItem:
    return CitationItem(
        id=citation.id,
        page_number=citation.page_number,
        text=citation.text,
        confidence=citation.confidence,
    )


def _to_turn(payload: TurnPayload) -> ConversationTurn:
    if payload.timestamp is None:
        return ConversationTurn(role=payload.role, content=payload.content)
    return ConversationTurn(role=payload.role, content=payload.content, timestamp=payload.timestamp)


def _to_payload(turn: ConversationTurn) -> TurnPayload:
    return TurnPayload(role=turn.role, content=turn.content, timestamp=turn.timestamp)


def _get_document_or_404(service: DocumentQAService, document_id: str) -> Document:
    try:
        return service.get_document(document_id)
    except NoDocumentError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.post("", response_model=DocumentResponse, status_code=201)
async def upload_document(
    file: UploadFile = File(...),
    service: DocumentQAService = Depends(get_qa_service),
) -> DocumentResponse:
    """Upload a PDF, extract its pages and make it available for questions."""

    data = await file.read()
    try:
        document = service.ingest_pdf(
            data,
            file.filename or "document.pdf",
            mime_type=file.content_type,
        )
    except UnsupportedFormatError as exc:
        raise HTTPException(status_code=415, detail="Please select a PDF file.") from exc
    except UploadTooLargeError as exc:
        raise HTTPException(status_code=413, detail=str(exc)) from exc
    except ExtractionError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return _serialise_document(document)


@router.get("", response_model=list[DocumentResponse])
def list_documents(service: DocumentQAService = Depends(get_qa_service)) -> list[DocumentResponse]:
    """List uploaded documents, newest first."""

    return [_serialise_document(document) for document in service.list_documents()]


@router.get("/{document_id}", response_model=DocumentResponse)
def get_document(
    document_id: str,
    service: DocumentQAService = Depends(get_qa_service),
) -> DocumentResponse:
    return _serialise_document(_get_document_or_404(service, document_id))


@router.delete("/{document_id}", status_code=204)
def delete_document(
    document_id: str,
    service: DocumentQAService = Depends(get_qa_service),
) -> Response:
    """Drop a document and its extracted text."""

    if not service.remove_document(document_id):
        raise HTTPException(status_code=404, detail=f"Unknown document: {document_id}")
    return Response(status_code=204)


@router.get("/{document_id}/pages/{page_number}", response_model=PageResponse)
def get_page(
    document_id: str,
    page_number: int,
    service: DocumentQAService = Depends(get_qa_service),
) -> PageResponse:
    """Return the extracted text of a single page (1-based)."""

    document = _get_document_or_404(service, document_id)
    try:
        page = document.page(page_number)
    except IndexError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return PageResponse(document_id=document.id, page_number=page.number, text=page.text)


@router.get("/{document_id}/search", response_model=SearchResponse)
def search_document(
    document_id: str,
    q: str = Query("", description="Text to look for in the document."),
    service: DocumentQAService = Depends(get_qa_service),
) -> SearchResponse:
    """Return the best matching sentences for a query."""

    try:
        results = service.search(document_id, q)
    except NoDocumentError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return SearchResponse(
        document_id=document_id,
        query=q,
        results=[SearchResultItem(page=item.page, text=item.text, relevance=item.relevance) for item in results],
    )


@router.post("/{document_id}/query", response_model=QueryResponse)
async def query_document(
    document_id: str,
    request: QueryRequest,
    service: DocumentQAService = Depends(get_qa_service),
) -> QueryResponse:
    """Answer a question about the document; failures are reported in ``content``."""

    if not request.question.strip():
        raise HTTPException(status_code=422, detail="Question must not be empty")

    history = [_to_turn(turn) for turn in request.history]
    result: AnswerResult = await service.answer_query(request.question, document_id, history)
    return QueryResponse(
        content=result.content,
        citations=[_serialise_citation(citation) for citation in result.citations],
        history=[_to_payload(turn) for turn in result.history],
        error=result.error,
    )


@router.post("/{document_id}/summary", response_model=SummaryResponse)
async def summarize_document(
    document_id: str,
    service: DocumentQAService = Depends(get_qa_service),
) -> SummaryResponse:
    """Generate an overview of the document's opening pages."""

    _get_document_or_404(service, document_id)
    summary = await service.summarize_document(document_id)
    return SummaryResponse(document_id=document_id, summary=summary)
