"""
Caller-facing exception taxonomy.

ExtractionFailed is the single error a caller sees when no model produced
a response. MalformedResponse (a model answered with unusable output) and
Cancelled (the caller gave up) are re-exported here unchanged.
"""

from typing import Any

from question_extractor.retry.exceptions import (
    AllModelsExhausted,
    Cancelled,
    FatalProviderError,
    FatalRequestError,
    ProviderFailure,
    TransientProviderError,
)
from question_extractor.validation.exceptions import (
    BusinessRuleViolation,
    JSONParseError,
    MalformedResponse,
    SchemaValidationError,
)

LAST_MESSAGES_KEPT = 3


class ExtractionFailed(Exception):
    """
    Aggregated failure of one extraction call.

    Attributes:
        message: Human-readable summary
        models_tried: Models that received at least one attempt, in order
        attempts_per_model: Attempts made on each of those models
        total_attempts: Attempts across all models
        last_messages: Up to the last three raw provider messages
        retryable: True when every failure was transient (the caller may
            try again later); False after a fatal error
    """

    def __init__(
        self,
        message: str,
        models_tried: list[str],
        attempts_per_model: dict[str, int],
        total_attempts: int,
        last_messages: list[str],
        retryable: bool,
    ):
        super().__init__(message)
        self.message = message
        self.models_tried = models_tried
        self.attempts_per_model = attempts_per_model
        self.total_attempts = total_attempts
        self.last_messages = last_messages
        self.retryable = retryable

    @classmethod
    def from_failure(cls, failure: ProviderFailure) -> "ExtractionFailed":
        """Summarize an orchestrator failure for the caller."""
        models_tried = failure.models_tried
        attempts_per_model = failure.attempts_per_model
        last_messages = [error.message for error in failure.errors[-LAST_MESSAGES_KEPT:]]
        retryable = isinstance(failure, AllModelsExhausted)

        if retryable:
            message = (
                f"Gemini overloaded: tried {len(models_tried)} models, "
                f"{failure.max_attempts_per_model} attempts each"
            )
        else:
            last = failure.last_error
            model = last.model if last else "unknown"
            text = last.message if last else failure.message
            message = f"Gemini request failed on {model}: {text}"

        return cls(
            message=message,
            models_tried=models_tried,
            attempts_per_model=attempts_per_model,
            total_attempts=len(failure.errors),
            last_messages=last_messages,
            retryable=retryable,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "models_tried": self.models_tried,
            "attempts_per_model": self.attempts_per_model,
            "total_attempts": self.total_attempts,
            "last_messages": self.last_messages,
            "retryable": self.retryable,
        }


__all__ = [
    "ExtractionFailed",
    "ProviderFailure",
    "TransientProviderError",
    "FatalProviderError",
    "FatalRequestError",
    "AllModelsExhausted",
    "Cancelled",
    "MalformedResponse",
    "JSONParseError",
    "SchemaValidationError",
    "BusinessRuleViolation",
]
