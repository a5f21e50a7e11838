"""
Custom exceptions for the LLM client layer.

Every failure of a single generation round trip surfaces as an
LLMClientError subclass carrying the HTTP status and the provider's own
status string when they are known. The ErrorClassifier reads those two
fields to decide between retrying and aborting; the exception type itself
is only informative.
"""

from typing import Optional


class LLMClientError(Exception):
    """
    Base exception for all LLM client errors.

    All LLM-specific exceptions inherit from this to allow catching
    any LLM-related error with a single except clause.
    """
    def __init__(
        self,
        message: str,
        details: dict | None = None,
        status_code: Optional[int] = None,
        provider_status: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.status_code = status_code
        self.provider_status = provider_status


class LLMConnectionError(LLMClientError):
    """
    Raised when unable to reach the generative API.

    Includes DNS failures, refused connections, TLS errors, etc.
    """
    pass


class LLMTimeoutError(LLMConnectionError):
    """
    Raised when one attempt exceeds its time budget.

    Separate from generic connection errors so logs can tell a hung
    request from an unreachable host.
    """
    pass


class LLMGenerationError(LLMClientError):
    """
    Raised when the API answers with an error or an unusable body.

    Examples:
    - Malformed request (400 INVALID_ARGUMENT)
    - Empty candidate list (prompt blocked by safety filters)
    - Internal server error (500)
    """
    pass


class LLMAuthenticationError(LLMGenerationError):
    """Raised on a missing, invalid or unauthorized API key (401/403)."""
    pass


class LLMRateLimitError(LLMGenerationError):
    """
    Raised when the API reports exhausted quota (429 RESOURCE_EXHAUSTED).

    Quota windows are measured in hours or days, so this is not retried.
    """
    pass


class LLMOverloadedError(LLMGenerationError):
    """
    Raised when the API reports temporary overload (502/503 UNAVAILABLE).

    This is the failure the retry/fallback loop exists for.
    """
    pass


class LLMModelNotAvailableError(LLMGenerationError):
    """Raised when the requested model does not exist (404 NOT_FOUND)."""
    pass
