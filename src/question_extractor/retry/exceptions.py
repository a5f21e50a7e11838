"""
Retry engine exceptions.

These are raised by RetryOrchestrator.run when no model produced a
response. Each carries the classified errors collected during the run, in
the order they happened, so callers can report exactly what went wrong.
"""

from typing import Sequence

from question_extractor.retry.classifier import ClassifiedError


class ProviderFailure(Exception):
    """
    Base exception for failed orchestrator runs.

    Attributes:
        message: Human-readable summary
        errors: Classified errors, oldest first
    """

    def __init__(self, message: str, errors: Sequence[ClassifiedError] = ()):
        super().__init__(message)
        self.message = message
        self.errors: list[ClassifiedError] = list(errors)

    @property
    def last_error(self) -> ClassifiedError | None:
        return self.errors[-1] if self.errors else None

    @property
    def models_tried(self) -> list[str]:
        """Distinct models that received at least one attempt, in order."""
        seen: list[str] = []
        for error in self.errors:
            if error.model not in seen:
                seen.append(error.model)
        return seen

    @property
    def attempts_per_model(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for error in self.errors:
            counts[error.model] = counts.get(error.model, 0) + 1
        return counts


class TransientProviderError(ProviderFailure):
    """
    A single retryable failure (overload / temporary unavailability).

    Never escapes the orchestrator on its own; the last one is chained as
    the __cause__ of AllModelsExhausted.
    """

    def __init__(self, error: ClassifiedError):
        super().__init__(f"{error.model}: {error.message}", [error])
        self.error = error


class FatalProviderError(ProviderFailure):
    """
    A non-retryable failure. Raised on the first fatal error; no further
    attempt or model is tried.

    `error` is the fatal error itself; `errors` also holds the transient
    errors that preceded it.
    """

    def __init__(self, error: ClassifiedError, previous: Sequence[ClassifiedError] = ()):
        super().__init__(
            f"Fatal error from {error.model} on attempt {error.attempt_number}: {error.message}",
            [*previous, error],
        )
        self.error = error


FatalRequestError = FatalProviderError


class AllModelsExhausted(ProviderFailure):
    """Every model in the roster failed transiently on every attempt."""

    def __init__(self, errors: Sequence[ClassifiedError], attempts_per_model: int):
        errors = list(errors)
        models = len({error.model for error in errors})
        super().__init__(
            f"All models overloaded: tried {models} models, {attempts_per_model} attempts each",
            errors,
        )
        self.max_attempts_per_model = attempts_per_model


class Cancelled(ProviderFailure):
    """The caller cancelled the run before it finished."""

    def __init__(self, errors: Sequence[ClassifiedError] = ()):
        errors = list(errors)
        super().__init__(f"Extraction cancelled after {len(errors)} failed attempts", errors)
