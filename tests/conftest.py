"""Shared fixtures: a scripted model backend and a tiny PDF builder."""
from __future__ import annotations

from typing import Callable, List, Optional, Sequence

import pytest

from docqa.config import Settings
from docqa.index import DocumentIndex
from docqa.llm_provider import LLM
from docqa.services.qa import DocumentQAService


@pytest.fixture
def anyio_backend():
    return "asyncio"


class FakeLLM(LLM):
    """Return a canned answer (or raise) and remember every prompt."""

    provider = "fake"

    def __init__(self, answer: str = "", error: Optional[Exception] = None) -> None:
        super().__init__(timeout_seconds=5.0)
        self.answer = answer
        self.error = error
        self.prompts: List[str] = []

    async def _generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.answer

    @property
    def model_name(self) -> str:
        return "fake-model"

    @property
    def ready(self) -> bool:
        return True


@pytest.fixture
def llm_factory() -> type[FakeLLM]:
    return FakeLLM


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM(answer="The mitochondria acts as the powerhouse of every cell")


@pytest.fixture
def service(fake_llm: FakeLLM) -> DocumentQAService:
    return DocumentQAService(index=DocumentIndex(), llm=fake_llm, settings=Settings())


def _escape_pdf_text(text: str) -> str:
    return text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")


def build_pdf(pages: Sequence[str]) -> bytes:
    """Assemble a minimal PDF with one line of Helvetica text per page."""

    page_count = len(pages)
    font_id = 3
    first_page_id = 4
    kids = " ".join(f"{first_page_id + 2 * index} 0 R" for index in range(page_count))

    objects: List[bytes] = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        f"<< /Type /Pages /Kids [{kids}] /Count {page_count} >>".encode("latin-1"),
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    for index, text in enumerate(pages):
        content_id = first_page_id + 2 * index + 1
        objects.append(
            (
                f"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
                f"/Contents {content_id} 0 R /Resources << /Font << /F1 {font_id} 0 R >> >> >>"
            ).encode("latin-1")
        )
        stream = f"BT /F1 12 Tf 72 720 Td ({_escape_pdf_text(text)}) Tj ET".encode("latin-1")
        objects.append(
            b"<< /Length " + str(len(stream)).encode("ascii") + b" >>\nstream\n" + stream + b"\nendstream"
        )

    output = bytearray(b"%PDF-1.4\n")
    offsets: List[int] = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(output))
        output += f"{number} 0 obj\n".encode("ascii") + body + b"\nendobj\n"

    xref_offset = len(output)
    output += f"xref\n0 {len(objects) + 1}\n".encode("ascii")
    output += b"0000000000 65535 f \n"
    for offset in offsets:
        output += f"{offset:010d} 00000 n \n".encode("ascii")
    output += f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\nstartxref\n{xref_offset}\n%%EOF\n".encode(
        "ascii"
    )
    return bytes(output)


@pytest.fixture
def pdf_factory() -> Callable[[Sequence[str]], bytes]:
    return build_pdf
