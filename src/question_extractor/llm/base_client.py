"""
Abstract base client for LLM inference.

Defines the single-shot "send prompt, get text" primitive the retry engine
builds on. Concrete clients translate one LLMGenerationRequest into one
round trip against a provider and report failures as LLMClientError.
"""

from abc import ABC, abstractmethod

import structlog

from question_extractor.models.llm_models import LLMGenerationRequest, LLMGenerationResponse


logger = structlog.get_logger(__name__)


class BaseLLMClient(ABC):
    """
    Abstract base class for LLM inference clients.

    Responsibilities:
    - Send exactly one generation request per call
    - Parse responses into standardized format
    - Map transport and provider errors to LLMClientError subclasses

    Does NOT handle:
    - Prompt construction (that's PromptBuilder's job)
    - Response parsing into questions (that's the validation pipeline's job)
    - Retries or model fallback (that's RetryOrchestrator's job)
    """

    def __init__(self, base_url: str, timeout: float = 120.0, **kwargs):
        """
        Initialize base client.

        Args:
            base_url: Base URL of the generative API
            timeout: Transport-level request timeout in seconds
            **kwargs: Additional provider-specific config
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.extra_config = kwargs

        logger.info(
            "Initialized LLM client",
            client_class=self.__class__.__name__,
            base_url=self.base_url,
            timeout=timeout,
        )

    @abstractmethod
    async def generate(self, request: LLMGenerationRequest) -> LLMGenerationResponse:
        """
        Generate a completion with the model named in the request.

        Implementations must not retry: one call is one network round trip.

        Args:
            request: Standardized generation request

        Returns:
            LLMGenerationResponse with generated text and metadata

        Raises:
            LLMConnectionError: Network errors
            LLMTimeoutError: Request exceeded timeout
            LLMGenerationError: Provider-side errors (and subclasses)
        """
        pass

    async def close(self):
        """
        Close client connections and cleanup resources.

        Default implementation does nothing. Subclasses should override if
        they hold persistent connections.
        """
        logger.debug("Closing LLM client", client_class=self.__class__.__name__)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"base_url={self.base_url}, "
            f"timeout={self.timeout}s)"
        )
