"""Exception taxonomy shared by the ingestion, model and service layers."""
from __future__ import annotations


class DocQAError(RuntimeError):
    """Base class for all errors raised by the document QA service."""

    def __init__(self, message: str, *, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.__cause__ = cause


class ConfigurationError(DocQAError):
    """Raised when the generative model client is not configured."""


class NoDocumentError(DocQAError):
    """Raised when a query references an unknown document id."""


class ExtractionError(DocQAError):
    """Raised when page text cannot be extracted from an uploaded file."""


class UploadTooLargeError(DocQAError):
    """Raised when an uploaded file exceeds the configured size limit."""


class ModelError(DocQAError):
    """Base class for failures of the generative model call."""


class AuthError(ModelError):
    """The model backend rejected the configured credential."""


class RateLimitError(ModelError):
    """The model backend throttled the request."""


class NetworkError(ModelError):
    """The model backend could not be reached or returned a server error."""


class ModelTimeoutError(ModelError):
    """The model call did not complete within the configured timeout."""


__all__ = [
    "AuthError",
    "ConfigurationError",
    "DocQAError",
    "ExtractionError",
    "ModelError",
    "ModelTimeoutError",
    "NetworkError",
    "NoDocumentError",
    "RateLimitError",
    "UploadTooLargeError",
]
