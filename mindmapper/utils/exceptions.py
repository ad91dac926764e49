"""Custom exception hierarchy for the mind map editor and its collaborators."""

from __future__ import annotations


class MindMapperError(Exception):
    """Base exception for all mindmapper errors."""


class LLMError(MindMapperError):
    """Base for model-related failures on the server side."""


class ModelTimeoutError(LLMError):
    """Model call timed out."""


class ModelResponseParsingError(LLMError):
    """The model answered, but not with JSON matching the expected shape."""


class CollaboratorError(MindMapperError):
    """A call to the map API failed. The message is safe to show inline."""


class CollaboratorHTTPError(CollaboratorError):
    """The map API answered with a non-2xx status."""

    def __init__(self, status_code: int, detail: str = "") -> None:
        self.status_code = status_code
        self.detail = detail
        message = f"API error ({status_code})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class CollaboratorResponseError(CollaboratorError):
    """The map API answered 2xx with a body that is not valid JSON of the expected shape."""


class CollaboratorUnavailableError(CollaboratorError):
    """The map API could not be reached."""


class StorageError(MindMapperError):
    """Durable key-value backend failure (connection, timeout)."""
