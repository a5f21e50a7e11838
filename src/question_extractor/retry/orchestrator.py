"""
Retry / model fallback orchestrator.

Runs one prompt against the model roster until a model answers:

    Attempting(m, k) --success----------------------> Succeeded
    Attempting(m, k) --fatal------------------------> FatalProviderError
    Attempting(m, k) --transient, k < max-----------> Retrying(m, k+1)   (backoff wait)
    Attempting(m, k) --transient, k == max, m+1 ok--> Attempting(m+1, 1) (no wait)
    Attempting(m, k) --transient, k == max, last----> AllModelsExhausted

One ProgressEvent is emitted before every attempt, so events are strictly
increasing in (model_index, attempt_number). The first event carries
is_retrying=True; the first event on a fallback model carries False.

Usage:
    orchestrator = RetryOrchestrator(executor)
    outcome = await orchestrator.run(prompt, api_key, reporter=reporter)
"""

import dataclasses
from typing import Optional, Union

import structlog

from question_extractor.models.enums import ErrorKind
from question_extractor.monitoring.metrics import llm_attempts_total, model_fallbacks_total
from question_extractor.retry.backoff import BackoffPolicy
from question_extractor.retry.cancellation import CancellationToken
from question_extractor.retry.classifier import ClassifiedError, ErrorClassifier
from question_extractor.retry.exceptions import (
    AllModelsExhausted,
    Cancelled,
    FatalProviderError,
    TransientProviderError,
)
from question_extractor.retry.executor import AttemptExecutor, AttemptOutcome
from question_extractor.retry.metadata import AttemptState
from question_extractor.retry.progress import (
    ProgressCallback,
    ProgressEvent,
    ProgressReporter,
    as_reporter,
)
from question_extractor.retry.roster import DEFAULT_MODEL_ROSTER, ModelRoster


logger = structlog.get_logger(__name__)


class RetryOrchestrator:
    """
    Drives AttemptExecutor across the roster.

    The instance only holds read-only collaborators and defaults; every
    run() owns its AttemptState and error list, so one orchestrator can
    serve concurrent extractions.

    Attributes:
        executor: Single-attempt executor
        roster: Default model roster
        max_attempts_per_model: Default attempt budget per model
        backoff: Delay schedule between attempts on one model
        classifier: Transient / fatal decision
    """

    def __init__(
        self,
        executor: AttemptExecutor,
        roster: ModelRoster = DEFAULT_MODEL_ROSTER,
        max_attempts_per_model: int = 3,
        backoff: Optional[BackoffPolicy] = None,
        classifier: Optional[ErrorClassifier] = None,
    ):
        if max_attempts_per_model < 1:
            raise ValueError(f"max_attempts_per_model must be >= 1, got {max_attempts_per_model}")

        self.executor = executor
        self.roster = roster
        self.max_attempts_per_model = max_attempts_per_model
        self.backoff = backoff or BackoffPolicy()
        self.classifier = classifier or ErrorClassifier()

        logger.info(
            "RetryOrchestrator initialized",
            models=list(roster),
            max_attempts_per_model=max_attempts_per_model,
            backoff_base=self.backoff.base_delay,
            backoff_max=self.backoff.max_delay,
        )

    async def run(
        self,
        prompt: str,
        credential: str,
        reporter: Union[ProgressReporter, ProgressCallback, None] = None,
        cancel_token: Optional[CancellationToken] = None,
        roster: Optional[ModelRoster] = None,
        max_attempts_per_model: Optional[int] = None,
    ) -> AttemptOutcome:
        """
        Run the prompt until some model answers.

        Args:
            prompt: Fully rendered prompt (sent unchanged on every attempt)
            credential: Opaque API key
            reporter: Progress sink (reporter object or bare callback)
            cancel_token: Caller-driven abort
            roster: Per-call roster override
            max_attempts_per_model: Per-call attempt budget override

        Returns:
            Successful AttemptOutcome with total_attempts filled in

        Raises:
            FatalProviderError: First non-retryable error
            AllModelsExhausted: Every model failed transiently max times
            Cancelled: cancel_token fired before an attempt or during a wait
        """
        roster = self.roster if roster is None else roster
        max_attempts = self.max_attempts_per_model if max_attempts_per_model is None else max_attempts_per_model
        if max_attempts < 1:
            raise ValueError(f"max_attempts_per_model must be >= 1, got {max_attempts}")

        sink = as_reporter(reporter)
        token = cancel_token or CancellationToken()
        state = AttemptState()
        errors: list[ClassifiedError] = []

        logger.info(
            "Starting extraction run",
            models=list(roster),
            max_attempts_per_model=max_attempts,
            prompt_length=len(prompt),
        )

        await self._emit(sink, roster, state, max_attempts, is_retrying=True)

        while True:
            if token.cancelled:
                self._log_cancelled(state, errors, token)
                raise Cancelled(errors)

            model = roster[state.model_index]
            state.total_attempts += 1
            outcome = await self.executor.execute(model, prompt, credential)

            if outcome.ok:
                llm_attempts_total.labels(model=model, outcome="success").inc()
                logger.info(
                    "Attempt succeeded",
                    model=model,
                    model_index=state.model_index,
                    attempt=state.attempt_number,
                    total_attempts=state.total_attempts,
                )
                return dataclasses.replace(
                    outcome,
                    model_index=state.model_index,
                    total_attempts=state.total_attempts,
                )

            error = self.classifier.classify(
                outcome.error, model, state.model_index, state.attempt_number
            )
            errors.append(error)
            llm_attempts_total.labels(model=model, outcome=error.kind.value).inc()

            if error.kind is ErrorKind.FATAL:
                logger.error(
                    "Fatal error, aborting extraction",
                    model=model,
                    attempt=state.attempt_number,
                    status_code=error.status_code,
                    provider_status=error.provider_status,
                    error=error.message,
                )
                raise FatalProviderError(error, errors[:-1]) from outcome.error

            logger.warning(
                "Transient error",
                model=model,
                attempt=state.attempt_number,
                max_attempts=max_attempts,
                status_code=error.status_code,
                provider_status=error.provider_status,
                error=error.message,
            )

            if state.attempt_number < max_attempts:
                delay = self.backoff.delay(state.attempt_number)
                state.next_attempt()
                await self._emit(sink, roster, state, max_attempts, is_retrying=True)

                if token.cancelled:
                    self._log_cancelled(state, errors, token)
                    raise Cancelled(errors)

                logger.info(
                    f"Retrying same model (attempt {state.attempt_number}/{max_attempts})",
                    model=model,
                    delay_seconds=delay,
                )
                if await token.sleep(delay):
                    self._log_cancelled(state, errors, token)
                    raise Cancelled(errors)
                continue

            if roster.has_next(state.model_index):
                model_fallbacks_total.labels(from_model=model).inc()
                state.next_model()
                logger.warning(
                    "Model exhausted, switching to next model",
                    from_model=model,
                    to_model=roster[state.model_index],
                    model_index=state.model_index,
                )
                await self._emit(sink, roster, state, max_attempts, is_retrying=False)
                continue

            logger.error(
                "All models exhausted",
                models=list(roster),
                total_attempts=state.total_attempts,
                last_error=error.message,
            )
            raise AllModelsExhausted(errors, max_attempts) from TransientProviderError(error)

    @staticmethod
    async def _emit(
        sink: ProgressReporter,
        roster: ModelRoster,
        state: AttemptState,
        max_attempts: int,
        is_retrying: bool,
    ) -> None:
        event = ProgressEvent(
            model_id=roster[state.model_index],
            model_index=state.model_index,
            total_models=len(roster),
            attempt_number=state.attempt_number,
            max_attempts_per_model=max_attempts,
            is_retrying=is_retrying,
        )
        try:
            await sink.report(event)
        except Exception as e:
            logger.warning("Progress reporter failed", error=str(e), error_type=type(e).__name__)

    @staticmethod
    def _log_cancelled(state: AttemptState, errors: list[ClassifiedError], token: CancellationToken) -> None:
        logger.info(
            "Extraction cancelled",
            model_index=state.model_index,
            attempt=state.attempt_number,
            failed_attempts=len(errors),
            reason=token.reason,
        )
