"""Orchestration of document registration and question answering."""
from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence

from docqa.config import Settings, get_settings
from docqa.conversation import ConversationTurn, recent_turns
from docqa.errors import (
    AuthError,
    ConfigurationError,
    ModelError,
    NoDocumentError,
    UploadTooLargeError,
)
from docqa.index import DocumentIndex
from docqa.ingest.extractors import PDFExtractor
from docqa.ingest.format_detection import ensure_pdf_upload
from docqa.ingest.models import Document
from docqa.llm_provider import LLM, get_llm
from docqa.logging_config import AUDIT_LOGGER_NAME
from docqa.prompt_builder import build_prompt, build_summary_prompt
from docqa.retrieval import Citation, SearchResult, build_context, extract_citations, search
from docqa.telemetry import (
    emit_citation_event,
    emit_exception,
    emit_inference_request,
    emit_inference_result,
    emit_ingest_event,
    emit_prompt_event,
    emit_retriever_event,
    traced_duration,
)

LOGGER = logging.getLogger(__name__)
AUDIT_LOGGER = logging.getLogger(AUDIT_LOGGER_NAME)

CONFIGURATION_MESSAGE = (
    "I'm sorry, but the AI service is not properly configured. "
    "Please check that your Gemini API key is set up correctly."
)
NO_DOCUMENT_MESSAGE = (
    "I don't have access to any document right now. "
    "Please upload a PDF first so I can help you analyze its contents."
)
AUTH_ERROR_MESSAGE = (
    "There's an issue with the API configuration. "
    "Please check your Gemini API key and try again."
)
MODEL_ERROR_MESSAGE = (
    "I apologize, but I encountered an error while processing your request. "
    "Please try again in a moment."
)
SUMMARY_NOT_CONFIGURED_MESSAGE = "Unable to generate summary - AI service not configured."
SUMMARY_ERROR_MESSAGE = "Unable to generate document summary at this time."


class QueryStage(str, Enum):
    """Lifecycle of a single question."""

    IDLE = "idle"
    RETRIEVING = "retrieving"
    CONTEXT_ASSEMBLED = "context_assembled"
    AWAITING_MODEL = "awaiting_model"
    CITATIONS_EXTRACTED = "citations_extracted"
    DONE = "done"


@dataclass(slots=True)
class AnswerResult:
    """Structured result returned from :meth:`DocumentQAService.answer_query`."""

    content: str
    citations: List[Citation] = field(default_factory=list)
    history: List[ConversationTurn] = field(default_factory=list)
    error: Optional[str] = None


class _QueryTrace:
    """Track stage transitions of one query for debug logging."""

    def __init__(self, req_id: str) -> None:
        self.req_id = req_id
        self.stage = QueryStage.IDLE

    def advance(self, stage: QueryStage) -> None:
        LOGGER.debug("query %s: %s -> %s", self.req_id, self.stage.value, stage.value)
        self.stage = stage


class DocumentQAService:
    """High level orchestration for the document question answering workflow."""

    def __init__(
        self,
        *,
        index: DocumentIndex | None = None,
        llm: LLM | None = None,
        extractor: PDFExtractor | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.index = index if index is not None else DocumentIndex()
        self.extractor = extractor or PDFExtractor()
        self.settings = settings or get_settings()
        self._llm = llm

    @property
    def llm(self) -> LLM:
        if self._llm is None:
            self._llm = get_llm()
        return self._llm

    # Documents -------------------------------------------------------------------
    def register_document(
        self,
        document_id: str,
        pages: Sequence[str],
        *,
        name: str | None = None,
        size_bytes: int = 0,
        page_count: int | None = None,
    ) -> Document:
        """Store page texts for *document_id*, replacing any earlier version."""

        return self.index.register(
            document_id,
            pages,
            name=name,
            size_bytes=size_bytes,
            page_count=page_count,
        )

    def ingest_pdf(
        self,
        data: bytes,
        file_name: str,
        *,
        mime_type: str | None = None,
        document_id: str | None = None,
    ) -> Document:
        """Validate and extract an uploaded PDF, then register it.

        Raises :class:`~docqa.ingest.format_detection.UnsupportedFormatError`,
        :class:`~docqa.errors.UploadTooLargeError` or
        :class:`~docqa.errors.ExtractionError`; the index is untouched on failure.
        """

        document_id = document_id or uuid.uuid4().hex
        ensure_pdf_upload(file_name, mime_type)
        if len(data) > self.settings.max_upload_bytes:
            limit_mb = self.settings.max_upload_bytes / (1024 * 1024)
            raise UploadTooLargeError(f"File size must be less than {limit_mb:g}MB.")

        emit_ingest_event(
            "ingest.file.start", document_id=document_id, file_name=file_name, size_bytes=len(data)
        )
        started = time.perf_counter()
        try:
            with traced_duration("ingest.extract", logger=LOGGER, file=file_name):
                pages = self.extractor.extract(data)
        except Exception as error:
            emit_ingest_event(
                "ingest.file.error",
                document_id=document_id,
                file_name=file_name,
                size_bytes=len(data),
                error=error,
            )
            raise
        page_count = len(pages)

        document = self.register_document(
            document_id,
            pages,
            name=file_name,
            size_bytes=len(data),
            page_count=page_count,
        )
        emit_ingest_event(
            "ingest.file.complete",
            document_id=document_id,
            file_name=file_name,
            size_bytes=len(data),
            duration_ms=(time.perf_counter() - started) * 1000.0,
            pages=page_count,
        )
        AUDIT_LOGGER.info(
            {"event": "upload", "document_id": document_id, "file_name": file_name, "pages": page_count}
        )
        return document

    def remove_document(self, document_id: str) -> bool:
        """Forget *document_id*; later queries behave as if nothing was uploaded."""

        removed = self.index.remove(document_id)
        if removed:
            AUDIT_LOGGER.info({"event": "delete", "document_id": document_id})
        return removed

    def get_document(self, document_id: str) -> Document:
        document = self.index.get(document_id)
        if document is None:
            raise NoDocumentError(f"Unknown document: {document_id}")
        return document

    def list_documents(self) -> List[Document]:
        return self.index.list()

    def search(self, document_id: str, query: str) -> List[SearchResult]:
        """Return ranked passages of *document_id* matching *query*."""

        document = self.get_document(document_id)
        started = time.perf_counter()
        results = search(document.pages, query)
        emit_retriever_event(
            document_id=document_id,
            query=query,
            results=[{"page": item.page, "relevance": item.relevance} for item in results],
            duration_ms=(time.perf_counter() - started) * 1000.0,
        )
        return results

    # Questions -------------------------------------------------------------------
    async def answer_query(
        self,
        query: str,
        document_id: str | None,
        history: Sequence[ConversationTurn] = (),
    ) -> AnswerResult:
        """Answer *query* against a registered document.

        Never raises: unknown documents, missing configuration and model
        failures all produce a fixed message with no citations. The user turn is
        always recorded in the returned history.
        """

        trace = _QueryTrace(uuid.uuid4().hex)
        updated_history = list(history)
        updated_history.append(ConversationTurn.user(query))

        document = self.index.get(document_id)
        if document is None:
            return self._finish(trace, updated_history, NO_DOCUMENT_MESSAGE, error="no_document")

        try:
            return await self._answer(trace, query, document, history, updated_history)
        except Exception as error:
            emit_exception(
                module=f"{__name__}.answer_query",
                error=error,
                req_id=trace.req_id,
                document_id=document.id,
            )
            return self._finish(trace, updated_history, MODEL_ERROR_MESSAGE, error="internal")

    async def _answer(
        self,
        trace: _QueryTrace,
        query: str,
        document: Document,
        history: Sequence[ConversationTurn],
        updated_history: List[ConversationTurn],
    ) -> AnswerResult:
        pages = document.pages

        trace.advance(QueryStage.RETRIEVING)
        results = self.search(document.id, query)

        budget = self.settings.context_budget_chars
        context = build_context(pages, query, budget)
        prompt_history = recent_turns(history)
        prompt = build_prompt(query, context, prompt_history)
        trace.advance(QueryStage.CONTEXT_ASSEMBLED)
        emit_prompt_event(
            req_id=trace.req_id,
            context_chars=len(context),
            budget=budget,
            history_turns=len(prompt_history),
            fallback_context=bool(context) and not results,
        )

        trace.advance(QueryStage.AWAITING_MODEL)
        llm = self.llm
        emit_inference_request(
            req_id=trace.req_id,
            document_id=document.id,
            model=llm.model_name,
            prompt_preview=prompt,
            prompt_len=len(prompt),
            timeout_seconds=llm.timeout_seconds,
        )
        started = time.perf_counter()
        try:
            answer = await llm.complete(prompt)
        except ConfigurationError as error:
            LOGGER.warning("Model is not configured: %s", error)
            return self._model_failure(
                trace, document, llm, started, updated_history, CONFIGURATION_MESSAGE, "configuration"
            )
        except AuthError as error:
            LOGGER.warning("Model rejected credentials: %s", error)
            return self._model_failure(
                trace, document, llm, started, updated_history, AUTH_ERROR_MESSAGE, "auth"
            )
        except ModelError as error:
            LOGGER.warning("Model call failed (%s): %s", error.__class__.__name__, error)
            return self._model_failure(
                trace, document, llm, started, updated_history, MODEL_ERROR_MESSAGE, "model"
            )

        content = answer.strip()
        emit_inference_result(
            req_id=trace.req_id,
            document_id=document.id,
            duration_ms=(time.perf_counter() - started) * 1000.0,
            model_used=llm.model_name,
            answer_preview=content,
            fallback=False,
        )

        citations = extract_citations(content, pages, query)
        trace.advance(QueryStage.CITATIONS_EXTRACTED)
        emit_citation_event(
            req_id=trace.req_id,
            document_id=document.id,
            citations=[
                {"page": citation.page_number, "confidence": round(citation.confidence, 3)}
                for citation in citations
            ],
        )
        AUDIT_LOGGER.info(
            {
                "event": "query",
                "document_id": document.id,
                "question": query,
                "citations": [citation.page_number for citation in citations],
            }
        )
        return self._finish(trace, updated_history, content, citations=citations)

    def _model_failure(
        self,
        trace: _QueryTrace,
        document: Document,
        llm: LLM,
        started: float,
        updated_history: List[ConversationTurn],
        message: str,
        error_kind: str,
    ) -> AnswerResult:
        emit_inference_result(
            req_id=trace.req_id,
            document_id=document.id,
            duration_ms=(time.perf_counter() - started) * 1000.0,
            model_used=llm.model_name,
            answer_preview=message,
            fallback=True,
            error_kind=error_kind,
        )
        return self._finish(trace, updated_history, message, error=error_kind)

    @staticmethod
    def _finish(
        trace: _QueryTrace,
        updated_history: List[ConversationTurn],
        content: str,
        *,
        citations: Optional[List[Citation]] = None,
        error: Optional[str] = None,
    ) -> AnswerResult:
        updated_history.append(ConversationTurn.assistant(content))
        trace.advance(QueryStage.DONE)
        return AnswerResult(
            content=content,
            citations=list(citations or []),
            history=updated_history,
            error=error,
        )

    async def summarize_document(self, document_id: str) -> str:
        """Ask the model for an overview of the opening pages of *document_id*."""

        document = self.get_document(document_id)
        prompt = build_summary_prompt(document.pages)
        try:
            summary = await self.llm.complete(prompt)
        except ConfigurationError:
            return SUMMARY_NOT_CONFIGURED_MESSAGE
        except Exception as error:
            emit_exception(module=f"{__name__}.summarize_document", error=error, document_id=document_id)
            return SUMMARY_ERROR_MESSAGE
        return summary.strip()


_qa_service: DocumentQAService | None = None


def get_qa_service() -> DocumentQAService:
    """FastAPI dependency returning the shared :class:`DocumentQAService` instance."""

    global _qa_service
    if _qa_service is None:
        _qa_service = DocumentQAService()
    return _qa_service


__all__ = [
    "AUTH_ERROR_MESSAGE",
    "AnswerResult",
    "CONFIGURATION_MESSAGE",
    "DocumentQAService",
    "MODEL_ERROR_MESSAGE",
    "NO_DOCUMENT_MESSAGE",
    "QueryStage",
    "get_qa_service",
]
