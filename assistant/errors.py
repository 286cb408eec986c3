from __future__ import annotations

from typing import Optional


class AssistantError(Exception):
    """Base class for failures surfaced to API callers."""


class DocumentUnavailable(AssistantError):
    """The handbook PDF could not be found or read."""


class ModelCallFailed(AssistantError):
    """The hosted model could not produce a reply.

    ``status_code`` carries the upstream HTTP status when one was received.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code


class MalformedUpstreamResponse(ModelCallFailed):
    """The upstream replied successfully but without the expected fields."""

    def __init__(self, message: str = "Model response did not contain any content"):
        super().__init__(message, status_code=502, code="malformed_response")
