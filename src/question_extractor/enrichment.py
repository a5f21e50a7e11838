"""
Explanation enrichment: one follow-up call per question without an
explanation.

    ExtractedQuestion (explanation is None)
        -> PromptBuilder.build_enrichment_prompt
        -> RetryOrchestrator       (same roster, retry and fallback rules)
        -> EnrichmentResponseParser
        -> question with explanation / link filled in

A question whose enrichment fails (every model overloaded, fatal provider
error, malformed reply) is kept exactly as extracted and a warning is
recorded. Only cancellation aborts the whole step.
"""

import dataclasses
from typing import Awaitable, Callable, Literal, Optional, Union

import structlog
from pydantic import BaseModel, ConfigDict, Field

from question_extractor.llm.prompt_builder import PromptBuilder
from question_extractor.models.question_models import ExtractedQuestion
from question_extractor.monitoring.metrics import enrichments_total
from question_extractor.retry.cancellation import CancellationToken
from question_extractor.retry.exceptions import AllModelsExhausted, Cancelled, FatalProviderError
from question_extractor.retry.orchestrator import RetryOrchestrator
from question_extractor.retry.progress import GuardedProgressReporter
from question_extractor.retry.roster import ModelRoster
from question_extractor.validation.enrichment import EnrichmentResponseParser
from question_extractor.validation.exceptions import MalformedResponse


logger = structlog.get_logger(__name__)

PREVIEW_CHARS = 100


class EnrichmentProgress(BaseModel):
    """
    Per-question progress of the enrichment step.

    One "processing" event precedes each follow-up call; a single
    "complete" event closes the step.
    """

    model_config = ConfigDict(frozen=True)

    stage: Literal["processing", "complete"]
    current_question: int = Field(..., ge=0, description="1-based position among questions being enriched")
    total_questions: int = Field(..., ge=0, description="Questions needing an explanation")
    question_index: Optional[int] = Field(
        default=None, ge=0, description="Position of the question in the result list"
    )
    question_preview: Optional[str] = Field(default=None, description="Start of the question text")
    enriched: int = Field(default=0, ge=0, description="Questions enriched so far")

    def describe(self) -> str:
        if self.stage == "complete":
            return f"Explanations added to {self.enriched} of {self.total_questions} questions"
        return f"Adding explanation to question {self.current_question} of {self.total_questions}..."


EnrichmentCallback = Callable[[EnrichmentProgress], Union[None, Awaitable[None]]]


@dataclasses.dataclass(frozen=True)
class EnrichmentOutcome:
    """Questions after enrichment, in their original order."""

    questions: list[ExtractedQuestion]
    warnings: list[str]
    enriched: int


class QuestionEnricher:
    """
    Fills in missing explanations and links.

    Questions are processed one at a time, with a short pause between
    calls. Shares the extraction pipeline's orchestrator, so it is safe to
    use from concurrent extractions.
    """

    def __init__(
        self,
        prompt_builder: PromptBuilder,
        orchestrator: RetryOrchestrator,
        parser: EnrichmentResponseParser,
        pause_seconds: float = 0.5,
    ):
        self.prompt_builder = prompt_builder
        self.orchestrator = orchestrator
        self.parser = parser
        self.pause_seconds = pause_seconds

    async def enrich(
        self,
        questions: list[ExtractedQuestion],
        credential: str,
        *,
        on_progress: Optional[EnrichmentCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
        roster: Optional[ModelRoster] = None,
        max_attempts_per_model: Optional[int] = None,
    ) -> EnrichmentOutcome:
        """
        Enrich every question whose explanation is missing.

        Returns:
            EnrichmentOutcome (questions keep their order; failed ones are
            unchanged and have a warning)

        Raises:
            Cancelled: cancel_token fired during a call or a pause
        """
        token = cancel_token or CancellationToken()
        reporter = GuardedProgressReporter(on_progress)
        targets = [index for index, question in enumerate(questions) if question.explanation is None]
        results = list(questions)
        warnings: list[str] = []
        enriched = 0

        logger.info("Starting explanation enrichment", questions=len(questions), targets=len(targets))

        try:
            for position, index in enumerate(targets, start=1):
                if position > 1 and self.pause_seconds > 0 and await token.sleep(self.pause_seconds):
                    raise Cancelled()

                question = questions[index]
                await reporter.report(EnrichmentProgress(
                    stage="processing",
                    current_question=position,
                    total_questions=len(targets),
                    question_index=index,
                    question_preview=question.question_text[:PREVIEW_CHARS],
                    enriched=enriched,
                ))

                try:
                    results[index] = await self._enrich_one(
                        question, credential, token, roster, max_attempts_per_model
                    )
                except (AllModelsExhausted, FatalProviderError, MalformedResponse) as e:
                    outcome = "malformed" if isinstance(e, MalformedResponse) else "failed"
                    enrichments_total.labels(outcome=outcome).inc()
                    warnings.append(f"Question {index + 1}: explanation not added ({e.message})")
                    logger.warning(
                        "Enrichment failed, keeping question as extracted",
                        question_index=index,
                        error_type=type(e).__name__,
                        error=e.message,
                    )
                    continue

                enriched += 1
                enrichments_total.labels(outcome="enriched").inc()

            await reporter.report(EnrichmentProgress(
                stage="complete",
                current_question=len(targets),
                total_questions=len(targets),
                enriched=enriched,
            ))
        finally:
            reporter.close()

        logger.info("Explanation enrichment finished", enriched=enriched, failed=len(warnings))
        return EnrichmentOutcome(questions=results, warnings=warnings, enriched=enriched)

    async def _enrich_one(
        self,
        question: ExtractedQuestion,
        credential: str,
        token: CancellationToken,
        roster: Optional[ModelRoster],
        max_attempts_per_model: Optional[int],
    ) -> ExtractedQuestion:
        prompt = self.prompt_builder.build_enrichment_prompt(question)
        outcome = await self.orchestrator.run(
            prompt,
            credential,
            cancel_token=token,
            roster=roster,
            max_attempts_per_model=max_attempts_per_model,
        )
        enrichment = self.parser.parse(outcome.content)
        return question.model_copy(update={
            "explanation": enrichment.explanation,
            "link": enrichment.link or question.link,
        })
