"""Unit test fixtures (mocks and stubs).

Provides scripted LLM clients and progress recorders for testing without
network access.
"""

from typing import Union

import pytest

from question_extractor.llm.base_client import BaseLLMClient
from question_extractor.llm.exceptions import (
    LLMAuthenticationError,
    LLMClientError,
    LLMOverloadedError,
)
from question_extractor.models.llm_models import LLMGenerationRequest, LLMGenerationResponse
from question_extractor.retry.progress import ProgressEvent


def make_response(content: str = "[]", model: str = "model-a") -> LLMGenerationResponse:
    """Helper to create a successful generation response."""
    return LLMGenerationResponse(
        content=content,
        model_version=model,
        finish_reason="STOP",
        prompt_tokens=100,
        completion_tokens=50,
        usage_tokens=150,
        latency_ms=25,
    )


def overloaded(message: str = "The model is overloaded. Please try again later.") -> LLMOverloadedError:
    return LLMOverloadedError(message, status_code=503, provider_status="UNAVAILABLE")


def unauthorized(message: str = "API key not valid.") -> LLMAuthenticationError:
    return LLMAuthenticationError(message, status_code=400, provider_status="INVALID_ARGUMENT")


Scripted = Union[LLMGenerationResponse, LLMClientError, BaseException, str]


class ScriptedClient(BaseLLMClient):
    """
    LLM client that replays a script.

    The script maps model id -> list of outcomes consumed in order. An
    outcome is a response, an exception to raise, or a string (wrapped into
    a response). Every request is recorded in `requests`.
    """

    def __init__(self, script: dict[str, list[Scripted]]):
        super().__init__(base_url="https://gemini.test/v1beta")
        self.script = {model: list(outcomes) for model, outcomes in script.items()}
        self.requests: list[LLMGenerationRequest] = []

    @property
    def calls(self) -> list[str]:
        return [request.model for request in self.requests]

    async def generate(self, request: LLMGenerationRequest) -> LLMGenerationResponse:
        self.requests.append(request)
        outcomes = self.script.get(request.model)
        if not outcomes:
            raise AssertionError(f"unexpected call for {request.model}")
        outcome = outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        if isinstance(outcome, str):
            return make_response(outcome, request.model)
        return outcome


class RecordingReporter:
    """Progress reporter that keeps every event."""

    def __init__(self):
        self.events: list[ProgressEvent] = []

    async def report(self, event: ProgressEvent) -> None:
        self.events.append(event)

    @property
    def coordinates(self) -> list[tuple[int, int, bool]]:
        return [(e.model_index, e.attempt_number, e.is_retrying) for e in self.events]


@pytest.fixture
def scripted_client():
    """Factory fixture for ScriptedClient.

    Usage:
        def test_something(scripted_client):
            client = scripted_client({"model-a": [overloaded(), "[]"]})
    """
    return ScriptedClient


@pytest.fixture
def recording_reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture
def response_factory():
    """Factory fixture: response_factory(content, model) -> LLMGenerationResponse."""
    return make_response


@pytest.fixture
def overloaded_error():
    """Factory fixture: a 503 UNAVAILABLE client error."""
    return overloaded


@pytest.fixture
def fatal_error():
    """Factory fixture: an invalid-key client error."""
    return unauthorized
