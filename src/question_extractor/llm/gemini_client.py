"""
Gemini client implementation for LLM inference.

Communicates with the Gemini REST API (generateContent) using httpx
AsyncClient. Supports:
- JSON response mode (responseMimeType)
- Per-request API key (x-goog-api-key header)
- Connection pooling shared across concurrent extractions
- Provider error mapping (HTTP status + google.rpc status string)
"""

import json
import time
from typing import Any, Dict, Optional

import httpx
import structlog

from question_extractor.llm.base_client import BaseLLMClient
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
from question_extractor.models.llm_models import LLMGenerationRequest, LLMGenerationResponse
from question_extractor.monitoring.metrics import llm_latency_seconds


logger = structlog.get_logger(__name__)


_STATUS_ERRORS: dict[int, type[LLMClientError]] = {
    401: LLMAuthenticationError,
    403: LLMAuthenticationError,
    404: LLMModelNotAvailableError,
    429: LLMRateLimitError,
    502: LLMOverloadedError,
    503: LLMOverloadedError,
}


class GeminiClient(BaseLLMClient):
    """
    Gemini-specific LLM client using httpx for async HTTP communication.

    API Endpoints:
    - POST /models/{model}:generateContent: Generate completion

    The client is stateless apart from its connection pool, so one instance
    can serve any number of concurrent extractions with different keys.
    """

    def __init__(
        self,
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: float = 120.0,
        connection_limits: Optional[httpx.Limits] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **kwargs
    ):
        """
        Initialize Gemini client.

        Args:
            base_url: Gemini API root (including version segment)
            timeout: Transport-level request timeout in seconds
            connection_limits: httpx connection pool limits (default: 10 max connections)
            transport: Optional httpx transport (used by tests)
            **kwargs: Additional config
        """
        super().__init__(base_url, timeout, **kwargs)

        if connection_limits is None:
            connection_limits = httpx.Limits(
                max_keepalive_connections=5,
                max_connections=10,
                keepalive_expiry=30.0
            )

        self._client: Optional[httpx.AsyncClient] = None
        self._connection_limits = connection_limits
        self._transport = transport

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                limits=self._connection_limits,
                transport=self._transport,
                follow_redirects=True
            )
            logger.debug("Created new httpx AsyncClient")
        return self._client

    @staticmethod
    def build_payload(request: LLMGenerationRequest) -> Dict[str, Any]:
        """
        Build the generateContent body.

        {
            "contents": [{"role": "user", "parts": [{"text": "..."}]}],
            "generationConfig": {
                "temperature": 0.1,
                "maxOutputTokens": 8192,
                "responseMimeType": "application/json"
            }
        }
        """
        generation_config: Dict[str, Any] = {
            "temperature": request.temperature,
            "maxOutputTokens": request.max_tokens,
        }
        if request.response_mime_type:
            generation_config["responseMimeType"] = request.response_mime_type

        return {
            "contents": [{"role": "user", "parts": [{"text": request.prompt}]}],
            "generationConfig": generation_config,
        }

    async def generate(self, request: LLMGenerationRequest) -> LLMGenerationResponse:
        """
        Generate completion using the Gemini API.

        Response:
        {
            "candidates": [{
                "content": {"parts": [{"text": "..."}], "role": "model"},
                "finishReason": "STOP"
            }],
            "usageMetadata": {"promptTokenCount": 50, "candidatesTokenCount": 150, "totalTokenCount": 200},
            "modelVersion": "gemini-2.5-flash"
        }

        Error body:
        {"error": {"code": 503, "message": "The model is overloaded.", "status": "UNAVAILABLE"}}
        """
        start_time = time.time()
        payload = self.build_payload(request)

        logger.info(
            "Sending generation request to Gemini",
            model=request.model,
            prompt_length=len(request.prompt),
            temperature=request.temperature,
            max_tokens=request.max_tokens,
        )

        try:
            client = await self._get_client()
            response = await client.post(
                f"/models/{request.model}:generateContent",
                json=payload,
                headers={"x-goog-api-key": request.credential},
            )
        except httpx.TimeoutException as e:
            self._observe(request.model, start_time, success=False)
            logger.warning("Gemini request timeout", model=request.model, timeout=self.timeout, error=str(e))
            raise LLMTimeoutError(
                f"Request timeout after {self.timeout}s",
                details={"model": request.model, "timeout": self.timeout},
                provider_status="DEADLINE_EXCEEDED",
            ) from e
        except httpx.TransportError as e:
            self._observe(request.model, start_time, success=False)
            logger.warning("Gemini network error", model=request.model, error=str(e))
            raise LLMConnectionError(
                f"Network error: {str(e)}",
                details={"model": request.model, "error_type": type(e).__name__},
            ) from e

        if response.is_error:
            self._observe(request.model, start_time, success=False)
            raise self._error_from_response(response, request.model)

        try:
            response_data = response.json()
        except json.JSONDecodeError as e:
            self._observe(request.model, start_time, success=False)
            logger.error("Failed to parse Gemini response JSON", model=request.model, error=str(e))
            raise LLMGenerationError(
                "Invalid JSON response from Gemini",
                details={"parse_error": str(e)},
                status_code=response.status_code,
            ) from e

        if not isinstance(response_data, dict):
            self._observe(request.model, start_time, success=False)
            logger.error(
                "Unexpected Gemini response body",
                model=request.model,
                body_type=type(response_data).__name__,
            )
            raise LLMGenerationError(
                f"Unexpected response body from Gemini (got {type(response_data).__name__})",
                details={"body_type": type(response_data).__name__},
                status_code=response.status_code,
            )

        latency_ms = int((time.time() - start_time) * 1000)
        candidates = response_data.get("candidates") or []
        if not candidates:
            self._observe(request.model, start_time, success=False)
            block_reason = (response_data.get("promptFeedback") or {}).get("blockReason")
            raise LLMGenerationError(
                "Gemini returned no candidates",
                details={"block_reason": block_reason},
                status_code=response.status_code,
                provider_status=block_reason,
            )

        candidate = candidates[0]
        parts = (candidate.get("content") or {}).get("parts") or []
        content = "".join(part.get("text", "") for part in parts)
        finish_reason = candidate.get("finishReason", "STOP")
        if not content.strip():
            # Blank output is rejected by response validation
            logger.warning("Gemini returned blank text", model=request.model, finish_reason=finish_reason)

        usage = response_data.get("usageMetadata") or {}
        model_version = response_data.get("modelVersion", request.model)

        logger.info(
            "Gemini generation successful",
            model=model_version,
            latency_ms=latency_ms,
            prompt_tokens=usage.get("promptTokenCount"),
            completion_tokens=usage.get("candidatesTokenCount"),
            finish_reason=finish_reason,
        )
        self._observe(request.model, start_time, success=True)

        return LLMGenerationResponse(
            content=content,
            model_version=model_version,
            finish_reason=finish_reason,
            prompt_tokens=usage.get("promptTokenCount"),
            completion_tokens=usage.get("candidatesTokenCount"),
            usage_tokens=usage.get("totalTokenCount"),
            latency_ms=latency_ms,
            raw_metadata={"response_id": response_data.get("responseId")},
        )

    @staticmethod
    def _error_from_response(response: httpx.Response, model: str) -> LLMClientError:
        """Map an HTTP error response onto the matching LLMClientError."""
        status_code = response.status_code
        provider_status: Optional[str] = None
        message = response.text[:500]
        try:
            error_body = response.json().get("error") or {}
            provider_status = error_body.get("status")
            message = error_body.get("message") or message
        except (json.JSONDecodeError, AttributeError):
            pass  # non-JSON error page (e.g. from a proxy)

        error_class = _STATUS_ERRORS.get(status_code, LLMGenerationError)
        logger.warning(
            "Gemini HTTP error",
            model=model,
            status_code=status_code,
            provider_status=provider_status,
            error_text=message,
        )
        return error_class(
            f"Gemini error {status_code} ({provider_status or 'unknown'}): {message}",
            details={"model": model, "status": status_code},
            status_code=status_code,
            provider_status=provider_status,
        )

    @staticmethod
    def _observe(model: str, start_time: float, success: bool) -> None:
        llm_latency_seconds.labels(
            model=model, success=str(success).lower()
        ).observe(time.time() - start_time)

    async def close(self):
        """Close the HTTP client connection."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            logger.debug("Closed Gemini client connection")
