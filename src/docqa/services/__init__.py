"""Service layer orchestrating retrieval and model calls."""

from .qa import AnswerResult, DocumentQAService, QueryStage, get_qa_service

__all__ = ["AnswerResult", "DocumentQAService", "QueryStage", "get_qa_service"]
