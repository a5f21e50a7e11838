"""
Extraction pipeline: document text in, structured questions out.

    document text
        -> PromptBuilder          (one prompt, reused for every attempt)
        -> RetryOrchestrator      (retry / model fallback, progress events)
        -> ResponseValidationPipeline (parse once, never retried)
        -> QuestionEnricher       (optional, one call per question lacking an explanation)
        -> ExtractionResult

Usage:
    async with GeminiClient() as client:
        pipeline = ExtractionPipeline.from_settings(client)
        result = await pipeline.extract(text, api_key, on_progress=print)
"""

from typing import Optional, Sequence, Union

import structlog

from question_extractor.config import Settings, settings as default_settings
from question_extractor.enrichment import EnrichmentCallback, QuestionEnricher
from question_extractor.exceptions import ExtractionFailed
from question_extractor.llm.base_client import BaseLLMClient
from question_extractor.llm.gemini_client import GeminiClient
from question_extractor.llm.prompt_builder import PromptBuilder
from question_extractor.models.enums import ExtractionOutcome
from question_extractor.models.question_models import ExtractionResult
from question_extractor.monitoring.metrics import extractions_total
from question_extractor.retry.backoff import BackoffPolicy
from question_extractor.retry.cancellation import CancellationToken
from question_extractor.retry.exceptions import (
    AllModelsExhausted,
    Cancelled,
    FatalProviderError,
)
from question_extractor.retry.executor import AttemptExecutor
from question_extractor.retry.orchestrator import RetryOrchestrator
from question_extractor.retry.progress import GuardedProgressReporter, ProgressCallback
from question_extractor.retry.roster import ModelRoster
from question_extractor.validation.enrichment import EnrichmentResponseParser
from question_extractor.validation.exceptions import MalformedResponse
from question_extractor.validation.pipeline import ResponseValidationPipeline


logger = structlog.get_logger(__name__)


RosterLike = Union[ModelRoster, Sequence[str]]


def _as_roster(model_roster: Optional[RosterLike]) -> Optional[ModelRoster]:
    if model_roster is None or isinstance(model_roster, ModelRoster):
        return model_roster
    if isinstance(model_roster, str):
        raise ValueError("model_roster must be a sequence of model ids, not a string")
    return ModelRoster.of(model_roster)


class ExtractionPipeline:
    """
    Entry point for one extraction.

    All collaborators are shared read-only, so a single pipeline can run
    any number of concurrent extract() calls.
    """

    def __init__(
        self,
        prompt_builder: PromptBuilder,
        orchestrator: RetryOrchestrator,
        validator: ResponseValidationPipeline,
        enricher: Optional[QuestionEnricher] = None,
    ):
        self.prompt_builder = prompt_builder
        self.orchestrator = orchestrator
        self.validator = validator
        self.enricher = enricher

    @classmethod
    def from_settings(
        cls,
        client: BaseLLMClient,
        config: Optional[Settings] = None,
    ) -> "ExtractionPipeline":
        """Wire a pipeline around `client` using application settings."""
        config = config or default_settings

        executor = AttemptExecutor(
            client,
            attempt_timeout=config.ATTEMPT_TIMEOUT_SECONDS,
            temperature=config.LLM_TEMPERATURE,
            max_tokens=config.LLM_MAX_TOKENS,
        )
        orchestrator = RetryOrchestrator(
            executor,
            roster=ModelRoster.of(config.MODEL_ROSTER),
            max_attempts_per_model=config.MAX_ATTEMPTS_PER_MODEL,
            backoff=BackoffPolicy(
                base_delay=config.BACKOFF_BASE_SECONDS,
                max_delay=config.BACKOFF_MAX_DELAY_SECONDS,
            ),
        )
        prompt_builder = PromptBuilder(
            templates_dir=config.PROMPT_TEMPLATES_DIR,
            document_char_limit=config.DOCUMENT_CHAR_LIMIT,
        )
        return cls(
            prompt_builder=prompt_builder,
            orchestrator=orchestrator,
            validator=ResponseValidationPipeline(config.JSON_SCHEMA_PATH),
            enricher=QuestionEnricher(
                prompt_builder,
                orchestrator,
                EnrichmentResponseParser(config.ENRICHMENT_SCHEMA_PATH),
                pause_seconds=config.ENRICHMENT_PAUSE_SECONDS,
            ),
        )

    async def extract(
        self,
        document_text: str,
        credential: str,
        *,
        model_roster: Optional[RosterLike] = None,
        max_attempts_per_model: Optional[int] = None,
        on_progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
        enrich: bool = False,
        on_enrichment_progress: Optional[EnrichmentCallback] = None,
    ) -> ExtractionResult:
        """
        Extract questions from already-extracted document text.

        Args:
            document_text: Document text (non-blank)
            credential: Opaque API key (non-blank)
            model_roster: Models to try, in priority order (default: configured roster)
            max_attempts_per_model: Attempt budget per model (>= 1)
            on_progress: Sync or async callback receiving ProgressEvent
            cancel_token: Caller-driven abort
            enrich: Ask for an explanation for every question that lacks one
            on_enrichment_progress: Callback receiving EnrichmentProgress

        Returns:
            ExtractionResult (possibly with zero questions)

        Raises:
            ValueError: Invalid input
            ExtractionFailed: No model produced a response
            MalformedResponse: A model answered but the output is unusable
            Cancelled: cancel_token fired
        """
        if not credential or not credential.strip():
            raise ValueError("credential must not be blank")
        if max_attempts_per_model is not None and max_attempts_per_model < 1:
            raise ValueError(f"max_attempts_per_model must be >= 1, got {max_attempts_per_model}")
        if enrich and self.enricher is None:
            raise ValueError("enrichment requested but this pipeline has no enricher")

        roster = _as_roster(model_roster)
        prompt, prompt_metadata = self.prompt_builder.build_prompt(document_text)
        reporter = GuardedProgressReporter(on_progress)

        try:
            outcome = await self.orchestrator.run(
                prompt,
                credential,
                reporter=reporter,
                cancel_token=cancel_token,
                roster=roster,
                max_attempts_per_model=max_attempts_per_model,
            )
        except (AllModelsExhausted, FatalProviderError) as e:
            outcome_label = (
                ExtractionOutcome.EXHAUSTED if isinstance(e, AllModelsExhausted) else ExtractionOutcome.FATAL
            )
            extractions_total.labels(outcome=outcome_label.value).inc()
            failure = ExtractionFailed.from_failure(e)
            logger.error(
                "Extraction failed",
                outcome=outcome_label.value,
                models_tried=failure.models_tried,
                total_attempts=failure.total_attempts,
                last_messages=failure.last_messages,
            )
            raise failure from e
        except Cancelled:
            extractions_total.labels(outcome=ExtractionOutcome.CANCELLED.value).inc()
            raise
        finally:
            reporter.close()

        try:
            questions, warnings = self.validator.validate(outcome.content)
        except MalformedResponse:
            extractions_total.labels(outcome=ExtractionOutcome.MALFORMED.value).inc()
            raise

        enriched = 0
        if enrich and questions:
            try:
                enrichment = await self.enricher.enrich(
                    questions,
                    credential,
                    on_progress=on_enrichment_progress,
                    cancel_token=cancel_token,
                    roster=roster,
                    max_attempts_per_model=max_attempts_per_model,
                )
            except Cancelled:
                extractions_total.labels(outcome=ExtractionOutcome.CANCELLED.value).inc()
                raise
            questions = enrichment.questions
            enriched = enrichment.enriched
            # Quality warnings describe the final questions
            warnings = self.validator.stage4.validate(questions) + enrichment.warnings

        extractions_total.labels(outcome=ExtractionOutcome.SUCCESS.value).inc()
        logger.info(
            "Extraction succeeded",
            model=outcome.model,
            questions=len(questions),
            total_attempts=outcome.total_attempts,
            truncation_applied=prompt_metadata["truncation_applied"],
            enriched=enriched,
        )

        return ExtractionResult(
            questions=questions,
            model=outcome.model,
            total_attempts=outcome.total_attempts,
            warnings=warnings,
            enriched_questions=enriched,
        )


async def extract_questions(
    document_text: str,
    credential: str,
    model_roster: Optional[RosterLike] = None,
    max_attempts_per_model: int = 3,
    on_progress: Optional[ProgressCallback] = None,
    cancel_token: Optional[CancellationToken] = None,
    client: Optional[BaseLLMClient] = None,
    enrich: bool = False,
    on_enrichment_progress: Optional[EnrichmentCallback] = None,
) -> ExtractionResult:
    """
    One-call extraction with the built-in defaults.

    When no client is given a GeminiClient is created for this call and
    closed afterwards.
    """
    if client is not None:
        pipeline = ExtractionPipeline.from_settings(client)
        return await pipeline.extract(
            document_text,
            credential,
            model_roster=model_roster,
            max_attempts_per_model=max_attempts_per_model,
            on_progress=on_progress,
            cancel_token=cancel_token,
            enrich=enrich,
            on_enrichment_progress=on_enrichment_progress,
        )

    async with GeminiClient(
        base_url=default_settings.GEMINI_BASE_URL,
        timeout=default_settings.ATTEMPT_TIMEOUT_SECONDS,
    ) as owned_client:
        pipeline = ExtractionPipeline.from_settings(owned_client)
        return await pipeline.extract(
            document_text,
            credential,
            model_roster=model_roster,
            max_attempts_per_model=max_attempts_per_model,
            on_progress=on_progress,
            cancel_token=cancel_token,
            enrich=enrich,
            on_enrichment_progress=on_enrichment_progress,
        )
