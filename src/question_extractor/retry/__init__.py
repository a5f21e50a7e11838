"""
Retry and model fallback engine.

Overloaded models are retried with exponential backoff, then abandoned in
favor of the next model in the roster:

1. **Retry**: same model, waits of 4s, 8s, 16s (up to max attempts)
2. **Fallback**: next model in the roster, no wait
3. **Exhausted**: AllModelsExhausted once the roster runs out

Fatal errors (bad key, bad request, quota, timeouts) stop immediately.

Main Components:
    - RetryOrchestrator: The retry / fallback state machine
    - AttemptExecutor: One request, one model, one credential
    - ErrorClassifier: Transient vs fatal decision tables
    - BackoffPolicy: Delay schedule
    - ModelRoster: Prioritized model list
    - ProgressEvent / ProgressReporter: Live progress feed
    - CancellationToken: Caller-driven abort

Usage:
    >>> from question_extractor.retry import AttemptExecutor, RetryOrchestrator
    >>> orchestrator = RetryOrchestrator(AttemptExecutor(client))
    >>> outcome = await orchestrator.run(prompt, api_key)
"""

from question_extractor.retry.backoff import BackoffPolicy
from question_extractor.retry.cancellation import CancellationToken
from question_extractor.retry.classifier import (
    TRANSIENT_PROVIDER_STATUSES,
    TRANSIENT_STATUS_CODES,
    ClassifiedError,
    ErrorClassifier,
)
from question_extractor.retry.exceptions import (
    AllModelsExhausted,
    Cancelled,
    FatalProviderError,
    FatalRequestError,
    ProviderFailure,
    TransientProviderError,
)
from question_extractor.retry.executor import AttemptExecutor, AttemptOutcome
from question_extractor.retry.metadata import AttemptState
from question_extractor.retry.orchestrator import RetryOrchestrator
from question_extractor.retry.progress import (
    GuardedProgressReporter,
    LoggingProgressReporter,
    NullProgressReporter,
    ProgressCallback,
    ProgressEvent,
    ProgressReporter,
)
from question_extractor.retry.roster import DEFAULT_MODEL_ROSTER, ModelRoster

__all__ = [
    "RetryOrchestrator",
    "AttemptExecutor",
    "AttemptOutcome",
    "AttemptState",
    "BackoffPolicy",
    "CancellationToken",
    "ClassifiedError",
    "ErrorClassifier",
    "TRANSIENT_STATUS_CODES",
    "TRANSIENT_PROVIDER_STATUSES",
    "ModelRoster",
    "DEFAULT_MODEL_ROSTER",
    "ProgressEvent",
    "ProgressReporter",
    "ProgressCallback",
    "GuardedProgressReporter",
    "LoggingProgressReporter",
    "NullProgressReporter",
    "ProviderFailure",
    "TransientProviderError",
    "FatalProviderError",
    "FatalRequestError",
    "AllModelsExhausted",
    "Cancelled",
]
