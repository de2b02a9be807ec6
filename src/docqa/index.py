"""In-process registry of uploaded documents and their page texts."""
from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from docqa.ingest.models import Document

LOGGER = logging.getLogger(__name__)


class DocumentIndex:
    """Map document ids to immutable :class:`Document` snapshots.

    Writes (register/remove) are rare and serialised by a single lock. Readers
    receive the immutable document and run retrieval outside the lock.
    """

    def __init__(self) -> None:
        self._documents: Dict[str, Document] = {}
        self._lock = threading.RLock()

    def register(
        self,
        document_id: str,
        pages: Iterable[str],
        *,
        name: Optional[str] = None,
        size_bytes: int = 0,
        page_count: Optional[int] = None,
        uploaded_at: Optional[datetime] = None,
    ) -> Document:
        """Store *pages* under *document_id*, replacing any previous entry."""

        page_texts = tuple(str(page) for page in pages)
        document = Document(
            id=document_id,
            name=name or document_id,
            pages=page_texts,
            size_bytes=size_bytes,
            page_count=page_count if page_count is not None else len(page_texts),
            uploaded_at=uploaded_at or datetime.now(timezone.utc),
        )
        with self._lock:
            replaced = document_id in self._documents
            self._documents[document_id] = document
        LOGGER.info(
            "Registered document %s (%d pages, replaced=%s)", document_id, len(page_texts), replaced
        )
        return document

    def get(self, document_id: Optional[str]) -> Optional[Document]:
        if not document_id:
            return None
        with self._lock:
            return self._documents.get(document_id)

    def pages(self, document_id: Optional[str]) -> Optional[tuple[str, ...]]:
        document = self.get(document_id)
        return document.pages if document is not None else None

    def remove(self, document_id: str) -> bool:
        """Drop *document_id*; returns ``False`` when it was not registered."""

        with self._lock:
            removed = self._documents.pop(document_id, None)
        if removed is not None:
            LOGGER.info("Removed document %s", document_id)
        return removed is not None

    def list(self) -> List[Document]:
        """Return all documents, most recently uploaded first."""

        with self._lock:
            documents = list(self._documents.values())
        return sorted(documents, key=lambda document: document.uploaded_at, reverse=True)

    def __contains__(self, document_id: object) -> bool:
        with self._lock:
            return document_id in self._documents

    def __len__(self) -> int:
        with self._lock:
            return len(self._documents)


__all__ = ["DocumentIndex"]
