"""
LLM client abstraction and implementations.

Components:
- BaseLLMClient: Abstract base class for LLM clients
- GeminiClient: Implementation for the Gemini generateContent API
- PromptBuilder: Constructs the extraction prompt from document text
- text_utils: Text processing utilities (normalization, truncation)
- exceptions: LLM-specific exceptions
"""

from question_extractor.llm.base_client import BaseLLMClient
from question_extractor.llm.gemini_client import GeminiClient
from question_extractor.llm.prompt_builder import PromptBuilder
from question_extractor.llm.exceptions import (
    LLMAuthenticationError,
    LLMClientError,
    LLMConnectionError,
    LLMGenerationError,
    LLMModelNotAvailableError,
    LLMOverloadedError,
    LLMRateLimitError,
    LLMTimeoutError,
)

__all__ = [
    "BaseLLMClient",
    "GeminiClient",
    "PromptBuilder",
    "LLMClientError",
    "LLMConnectionError",
    "LLMTimeoutError",
    "LLMGenerationError",
    "LLMAuthenticationError",
    "LLMRateLimitError",
    "LLMOverloadedError",
    "LLMModelNotAvailableError",
]
