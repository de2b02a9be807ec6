from __future__ import annotations

import pytest

from docqa.config import Settings
from docqa.conversation import ConversationTurn, Role
from docqa.errors import (
    AuthError,
    ConfigurationError,
    ExtractionError,
    NoDocumentError,
    RateLimitError,
    UploadTooLargeError,
)
from docqa.index import DocumentIndex
from docqa.ingest import UnsupportedFormatError
from docqa.llm_provider import LLMStub
from docqa.retrieval import Citation
from docqa.services.qa import (
    AUTH_ERROR_MESSAGE,
    CONFIGURATION_MESSAGE,
    MODEL_ERROR_MESSAGE,
    NO_DOCUMENT_MESSAGE,
    SUMMARY_ERROR_MESSAGE,
    SUMMARY_NOT_CONFIGURED_MESSAGE,
    DocumentQAService,
)

CELL_PAGE = "The mitochondria is the powerhouse of the cell. It generates ATP."


@pytest.mark.anyio
async def test_answer_query_returns_model_answer_with_citations(service, fake_llm) -> None:
    service.register_document("doc-1", [CELL_PAGE])

    result = await service.answer_query("powerhouse", "doc-1")

    assert result.error is None
    assert result.content == "The mitochondria acts as the powerhouse of every cell"
    assert result.citations == [
        Citation(
            id="1",
            page_number=1,
            text="The mitochondria is the powerhouse of the cell",
            confidence=0.95,
        )
    ]
    assert [turn.role for turn in result.history] == [Role.USER, Role.ASSISTANT]
    assert result.history[0].content == "powerhouse"
    assert result.history[1].content == result.content

    prompt = fake_llm.prompts[0]
    assert "[Page 1]" in prompt
    assert "The mitochondria is the powerhouse of the cell" in prompt
    assert "Current Question: powerhouse" in prompt


@pytest.mark.anyio
async def test_unknown_document_returns_fixed_message_without_model_call(service, fake_llm) -> None:
    result = await service.answer_query("anything", "missing")

    assert result.content == NO_DOCUMENT_MESSAGE
    assert result.citations == []
    assert result.error == "no_document"
    assert [turn.role for turn in result.history] == [Role.USER, Role.ASSISTANT]
    assert fake_llm.prompts == []


@pytest.mark.anyio
async def test_missing_document_id_is_treated_as_no_document(service) -> None:
    result = await service.answer_query("anything", None)

    assert result.content == NO_DOCUMENT_MESSAGE


@pytest.mark.anyio
@pytest.mark.parametrize(
    ("error", "message", "kind"),
    [
        (ConfigurationError("not configured"), CONFIGURATION_MESSAGE, "configuration"),
        (AuthError("bad key"), AUTH_ERROR_MESSAGE, "auth"),
        (RateLimitError("slow down"), MODEL_ERROR_MESSAGE, "model"),
        (ValueError("unexpected"), MODEL_ERROR_MESSAGE, "internal"),
    ],
)
async def test_model_failures_map_to_fixed_messages(llm_factory, error, message, kind) -> None:
    service = DocumentQAService(index=DocumentIndex(), llm=llm_factory(error=error), settings=Settings())
    service.register_document("doc-1", [CELL_PAGE])

    result = await service.answer_query("powerhouse", "doc-1")

    assert result.content == message
    assert result.citations == []
    assert result.error == kind
    assert result.history[-1].content == message


@pytest.mark.anyio
async def test_stub_backend_yields_configuration_message() -> None:
    service = DocumentQAService(index=DocumentIndex(), llm=LLMStub(), settings=Settings())
    service.register_document("doc-1", [CELL_PAGE])

    result = await service.answer_query("powerhouse", "doc-1")

    assert result.content == CONFIGURATION_MESSAGE
    assert result.error == "configuration"


@pytest.mark.anyio
async def test_history_is_extended_and_windowed_in_prompt(service, fake_llm) -> None:
    service.register_document("doc-1", [CELL_PAGE])
    history = [ConversationTurn.user(f"earlier question {index}") for index in range(8)]

    result = await service.answer_query("powerhouse", "doc-1", history)

    assert len(result.history) == 10
    assert result.history[:8] == history
    prompt = fake_llm.prompts[0]
    assert "earlier question 1\n" not in prompt
    assert "User: earlier question 2" in prompt
    assert "User: earlier question 7" in prompt


@pytest.mark.anyio
async def test_context_budget_comes_from_settings(llm_factory) -> None:
    llm = llm_factory(answer="ok")
    service = DocumentQAService(index=DocumentIndex(), llm=llm, settings=Settings(context_budget_chars=5))
    service.register_document("doc-1", [CELL_PAGE])

    await service.answer_query("powerhouse", "doc-1")

    assert "Document Content:\n\n\nPrevious Conversation:" in llm.prompts[0]


@pytest.mark.anyio
async def test_removed_document_behaves_as_missing(service) -> None:
    service.register_document("doc-1", [CELL_PAGE])

    assert service.remove_document("doc-1") is True
    assert service.remove_document("doc-1") is False
    result = await service.answer_query("powerhouse", "doc-1")

    assert result.content == NO_DOCUMENT_MESSAGE


def test_ingest_pdf_registers_extracted_pages(service, pdf_factory) -> None:
    data = pdf_factory(["Contract renewal terms apply", "Termination clause details"])

    document = service.ingest_pdf(data, "contract.pdf", document_id="doc-pdf")

    assert document.id == "doc-pdf"
    assert document.name == "contract.pdf"
    assert document.page_count == 2
    assert document.size_bytes == len(data)
    assert service.get_document("doc-pdf") is document
    assert [document.id for document in service.list_documents()] == ["doc-pdf"]


def test_ingest_pdf_generates_ids(service, pdf_factory) -> None:
    first = service.ingest_pdf(pdf_factory(["One"]), "a.pdf")
    second = service.ingest_pdf(pdf_factory(["Two"]), "b.pdf")

    assert first.id and second.id and first.id != second.id


def test_ingest_pdf_rejects_invalid_uploads(llm_factory, pdf_factory) -> None:
    service = DocumentQAService(
        index=DocumentIndex(), llm=llm_factory(), settings=Settings(max_upload_bytes=64)
    )

    with pytest.raises(UnsupportedFormatError):
        service.ingest_pdf(b"plain text", "notes.txt", mime_type="text/plain")
    with pytest.raises(UploadTooLargeError):
        service.ingest_pdf(pdf_factory(["Too large for the limit"]), "big.pdf")
    with pytest.raises(ExtractionError):
        service.ingest_pdf(b"not a pdf", "broken.pdf")

    assert service.list_documents() == []


def test_search_requires_known_document(service) -> None:
    service.register_document("doc-1", [CELL_PAGE])

    assert [result.page for result in service.search("doc-1", "powerhouse")] == [1]
    with pytest.raises(NoDocumentError):
        service.search("missing", "powerhouse")


@pytest.mark.anyio
async def test_summarize_document(service, fake_llm) -> None:
    service.register_document("doc-1", [CELL_PAGE, "Second page text"])

    summary = await service.summarize_document("doc-1")

    assert summary == fake_llm.answer
    assert "Second page text" in fake_llm.prompts[0]


@pytest.mark.anyio
async def test_summarize_without_model_or_document() -> None:
    service = DocumentQAService(index=DocumentIndex(), llm=LLMStub(), settings=Settings())
    service.register_document("doc-1", [CELL_PAGE])

    assert await service.summarize_document("doc-1") == SUMMARY_NOT_CONFIGURED_MESSAGE
    with pytest.raises(NoDocumentError):
        await service.summarize_document("missing")


@pytest.mark.anyio
async def test_injected_empty_index_is_shared_with_caller(fake_llm) -> None:
    index = DocumentIndex()
    service = DocumentQAService(index=index, llm=fake_llm, settings=Settings())

    index.register("doc-1", [CELL_PAGE])
    result = await service.answer_query("powerhouse", "doc-1")

    assert service.index is index
    assert result.error is None
    assert result.content == fake_llm.answer


@pytest.mark.anyio
async def test_summary_falls_back_on_unexpected_errors(llm_factory) -> None:
    service = DocumentQAService(
        index=DocumentIndex(), llm=llm_factory(error=ValueError("boom")), settings=Settings()
    )
    service.register_document("doc-1", [CELL_PAGE])

    assert await service.summarize_document("doc-1") == SUMMARY_ERROR_MESSAGE


def test_ingest_pdf_parses_upload_once(service, pdf_factory, monkeypatch) -> None:
    def _fail(data: bytes) -> int:
        raise AssertionError("page_count should not re-parse the upload")

    monkeypatch.setattr(service.extractor, "page_count", _fail)

    document = service.ingest_pdf(pdf_factory(["One", "Two", "Three"]), "three.pdf")

    assert document.page_count == 3
