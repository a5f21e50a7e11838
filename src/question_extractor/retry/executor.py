"""
Single-attempt executor.

Performs exactly one generation round trip for one (model, prompt,
credential) triple, bounded by a per-attempt timeout, and reports the
result as an AttemptOutcome instead of raising. No retry logic lives here.
"""

import asyncio
from dataclasses import dataclass
from typing import Optional

import structlog

from question_extractor.llm.base_client import BaseLLMClient
from question_extractor.llm.exceptions import LLMClientError, LLMTimeoutError
from question_extractor.models.llm_models import LLMGenerationRequest, LLMGenerationResponse


logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class AttemptOutcome:
    """
    Either a response or the client error that replaced it.

    model_index and total_attempts are filled in by the orchestrator on
    the outcome it returns.
    """

    model: str
    response: Optional[LLMGenerationResponse] = None
    error: Optional[LLMClientError] = None
    model_index: int = 0
    total_attempts: int = 1

    @classmethod
    def success(cls, model: str, response: LLMGenerationResponse) -> "AttemptOutcome":
        return cls(model=model, response=response)

    @classmethod
    def failure(cls, model: str, error: LLMClientError) -> "AttemptOutcome":
        return cls(model=model, error=error)

    @property
    def ok(self) -> bool:
        return self.response is not None

    @property
    def content(self) -> str:
        if self.response is None:
            raise ValueError("failed attempt has no content")
        return self.response.content


class AttemptExecutor:
    """
    Wraps a BaseLLMClient with a per-attempt time budget.

    Shared read-only across concurrent runs.
    """

    def __init__(
        self,
        client: BaseLLMClient,
        attempt_timeout: Optional[float] = 120.0,
        temperature: float = 0.1,
        max_tokens: int = 8192,
    ):
        self.client = client
        self.attempt_timeout = attempt_timeout
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def execute(self, model: str, prompt: str, credential: str) -> AttemptOutcome:
        """
        Send one generation request.

        Returns:
            AttemptOutcome.success or AttemptOutcome.failure (for any
            LLMClientError, including the per-attempt timeout)

        Raises:
            Anything that is not an LLMClientError (programming errors)
        """
        request = LLMGenerationRequest(
            prompt=prompt,
            model=model,
            credential=credential,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )

        try:
            response = await asyncio.wait_for(
                self.client.generate(request), timeout=self.attempt_timeout
            )
        except asyncio.TimeoutError as e:
            logger.warning("Attempt timed out", model=model, timeout=self.attempt_timeout)
            error = LLMTimeoutError(
                f"Attempt exceeded {self.attempt_timeout}s",
                details={"model": model, "timeout": self.attempt_timeout},
                provider_status="DEADLINE_EXCEEDED",
            )
            error.__cause__ = e
            return AttemptOutcome.failure(model, error)
        except LLMClientError as e:
            return AttemptOutcome.failure(model, e)

        return AttemptOutcome.success(model, response)
