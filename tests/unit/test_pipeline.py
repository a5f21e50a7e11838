"""
Unit tests for ExtractionPipeline and extract_questions.

The Gemini client is replaced by a scripted client; everything else (prompt
template, orchestrator, validation stages) is the real thing.
"""

import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from question_extractor.exceptions import ExtractionFailed
from question_extractor.llm.gemini_client import GeminiClient
from question_extractor.models.llm_models import LLMGenerationResponse
from question_extractor.pipeline import ExtractionPipeline, extract_questions
from question_extractor.retry.cancellation import CancellationToken
from question_extractor.retry.exceptions import AllModelsExhausted, Cancelled, FatalProviderError
from question_extractor.retry.roster import ModelRoster
from question_extractor.validation.exceptions import JSONParseError, MalformedResponse


@pytest.fixture
def create_pipeline(test_settings, scripted_client):
    """Factory fixture: build a pipeline over a scripted client."""
    def _create(script):
        client = scripted_client(script)
        return ExtractionPipeline.from_settings(client, test_settings), client

    return _create


class TestExtractSuccess:

    @pytest.mark.asyncio
    async def test_happy_path(self, create_pipeline, sample_document, valid_model_output):
        pipeline, client = create_pipeline({"model-a": [valid_model_output]})

        result = await pipeline.extract(sample_document, "key")

        assert len(result.questions) == 2
        assert result.model == "model-a"
        assert result.total_attempts == 1
        assert client.calls == ["model-a"]
        assert "OSI model" in client.requests[0].prompt

    @pytest.mark.asyncio
    async def test_fallback_then_success(
        self, create_pipeline, sample_document, valid_model_output, overloaded_error
    ):
        pipeline, client = create_pipeline({
            "model-a": [overloaded_error() for _ in range(3)],
            "model-b": [valid_model_output],
        })
        events = []

        result = await pipeline.extract(sample_document, "key", on_progress=events.append)

        assert result.model == "model-b"
        assert result.total_attempts == 4
        assert [(e.model_index, e.attempt_number, e.is_retrying) for e in events] == [
            (0, 1, True), (0, 2, True), (0, 3, True), (1, 1, False),
        ]

    @pytest.mark.asyncio
    async def test_roster_and_attempts_override(
        self, create_pipeline, sample_document, overloaded_error
    ):
        pipeline, client = create_pipeline({"x": [overloaded_error()], "y": ["[]"]})

        result = await pipeline.extract(
            sample_document, "key", model_roster=["x", "y"], max_attempts_per_model=1
        )

        assert result.questions == []
        assert client.calls == ["x", "y"]

    @pytest.mark.asyncio
    async def test_accepts_model_roster_instance(self, create_pipeline, sample_document):
        pipeline, client = create_pipeline({"z": ["[]"]})
        await pipeline.extract(sample_document, "key", model_roster=ModelRoster(("z",)))
        assert client.calls == ["z"]

    @pytest.mark.asyncio
    async def test_no_progress_after_return(self, create_pipeline, sample_document):
        pipeline, _ = create_pipeline({"model-a": ["[]"]})
        events = []

        await pipeline.extract(sample_document, "key", on_progress=events.append)

        assert len(events) == 1


class TestExtractFailures:

    @pytest.mark.asyncio
    async def test_exhaustion_aggregated(self, create_pipeline, sample_document, overloaded_error):
        pipeline, client = create_pipeline({
            "model-a": [overloaded_error(f"a{i}") for i in range(3)],
            "model-b": [overloaded_error(f"b{i}") for i in range(3)],
        })

        with pytest.raises(ExtractionFailed) as exc_info:
            await pipeline.extract(sample_document, "key")

        failure = exc_info.value
        assert failure.retryable is True
        assert failure.models_tried == ["model-a", "model-b"]
        assert failure.attempts_per_model == {"model-a": 3, "model-b": 3}
        assert failure.total_attempts == 6
        assert failure.last_messages == ["b0", "b1", "b2"]
        assert failure.message == "Gemini overloaded: tried 2 models, 3 attempts each"
        assert isinstance(failure.__cause__, AllModelsExhausted)
        assert len(client.calls) == 6

    @pytest.mark.asyncio
    async def test_fatal_aggregated(self, create_pipeline, sample_document, fatal_error):
        pipeline, client = create_pipeline({"model-a": [fatal_error("API key not valid.")]})

        with pytest.raises(ExtractionFailed) as exc_info:
            await pipeline.extract(sample_document, "key")

        failure = exc_info.value
        assert failure.retryable is False
        assert failure.total_attempts == 1
        assert "API key not valid." in failure.message
        assert isinstance(failure.__cause__, FatalProviderError)
        assert client.calls == ["model-a"]

    @pytest.mark.asyncio
    async def test_malformed_first_payload_not_retried(self, create_pipeline, sample_document):
        pipeline, client = create_pipeline({"model-a": ["this is not json", "[]"]})

        with pytest.raises(JSONParseError):
            await pipeline.extract(sample_document, "key")

        assert client.calls == ["model-a"]

    @pytest.mark.parametrize("text", ["", "  \n "])
    @pytest.mark.asyncio
    async def test_blank_gemini_reply_is_malformed(self, test_settings, sample_document, text):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={
                "candidates": [{"content": {"parts": [{"text": text}]}, "finishReason": "MAX_TOKENS"}],
                "modelVersion": "model-a",
            })

        async with GeminiClient(
            base_url=test_settings.GEMINI_BASE_URL, transport=httpx.MockTransport(handler)
        ) as client:
            pipeline = ExtractionPipeline.from_settings(client, test_settings)
            with pytest.raises(JSONParseError):
                await pipeline.extract(sample_document, "key")

        assert len(requests) == 1

    @pytest.mark.asyncio
    async def test_zero_correct_options_is_malformed(
        self, create_pipeline, sample_document, create_question_dict
    ):
        payload = json.dumps([create_question_dict(correct=())])
        pipeline, _ = create_pipeline({"model-a": [payload]})

        with pytest.raises(MalformedResponse):
            await pipeline.extract(sample_document, "key")

    @pytest.mark.asyncio
    async def test_cancelled_propagates_unchanged(self, create_pipeline, sample_document):
        pipeline, client = create_pipeline({"model-a": ["[]"]})
        token = CancellationToken()
        token.cancel()

        with pytest.raises(Cancelled):
            await pipeline.extract(sample_document, "key", cancel_token=token)

        assert client.calls == []


class TestEnrichment:

    @pytest.mark.asyncio
    async def test_missing_explanations_filled(
        self, create_pipeline, sample_document, create_question_dict
    ):
        payload = json.dumps([
            create_question_dict(question_text="What is 2 + 2?", explanation=None),
            create_question_dict(question_text="What is 3 + 3?", explanation="Arithmetic."),
        ])
        enrichment_reply = json.dumps({"explanation": "Two plus two is four.", "link": "https://example.org/sums"})
        pipeline, client = create_pipeline({"model-a": [payload, enrichment_reply]})
        extraction_events, enrichment_events = [], []

        result = await pipeline.extract(
            sample_document,
            "key",
            enrich=True,
            on_progress=extraction_events.append,
            on_enrichment_progress=enrichment_events.append,
        )

        assert client.calls == ["model-a", "model-a"]
        assert result.questions[0].explanation == "Two plus two is four."
        assert result.questions[0].link == "https://example.org/sums"
        assert result.questions[1].explanation == "Arithmetic."
        assert result.enriched_questions == 1
        assert result.total_attempts == 1
        assert not any("without explanation" in w for w in result.warnings)
        assert len(extraction_events) == 1
        assert [e.stage for e in enrichment_events] == ["processing", "complete"]

    @pytest.mark.asyncio
    async def test_failed_enrichment_keeps_extraction(
        self, create_pipeline, sample_document, create_question_dict
    ):
        payload = json.dumps([create_question_dict(explanation=None)])
        pipeline, _ = create_pipeline({"model-a": [payload, "no json at all"]})

        result = await pipeline.extract(sample_document, "key", enrich=True)

        assert result.questions[0].explanation is None
        assert result.enriched_questions == 0
        assert any(w.startswith("Question 1: explanation not added") for w in result.warnings)
        assert any("without explanation" in w for w in result.warnings)

    @pytest.mark.asyncio
    async def test_not_enriched_by_default(self, create_pipeline, sample_document, create_question_dict):
        payload = json.dumps([create_question_dict(explanation=None)])
        pipeline, client = create_pipeline({"model-a": [payload]})

        result = await pipeline.extract(sample_document, "key")

        assert client.calls == ["model-a"]
        assert result.enriched_questions == 0

    @pytest.mark.asyncio
    async def test_cancelled_during_enrichment(self, create_pipeline, sample_document, create_question_dict):
        payload = json.dumps([create_question_dict(explanation=None)])
        pipeline, client = create_pipeline({"model-a": [payload]})
        token = CancellationToken()

        def cancel_on_enrichment(event):
            token.cancel("user left")

        with pytest.raises(Cancelled):
            await pipeline.extract(
                sample_document,
                "key",
                enrich=True,
                cancel_token=token,
                on_enrichment_progress=cancel_on_enrichment,
            )

        assert client.calls == ["model-a"]

    @pytest.mark.asyncio
    async def test_enrich_without_enricher_rejected(
        self, test_settings, scripted_client, sample_document
    ):
        wired = ExtractionPipeline.from_settings(scripted_client({}), test_settings)
        pipeline = ExtractionPipeline(wired.prompt_builder, wired.orchestrator, wired.validator)

        with pytest.raises(ValueError, match="enricher"):
            await pipeline.extract(sample_document, "key", enrich=True)


class TestInputValidation:

    @pytest.mark.parametrize("document", ["", "  \n "])
    @pytest.mark.asyncio
    async def test_blank_document(self, create_pipeline, document):
        pipeline, client = create_pipeline({})
        with pytest.raises(ValueError):
            await pipeline.extract(document, "key")
        assert client.calls == []

    @pytest.mark.parametrize("credential", ["", "   "])
    @pytest.mark.asyncio
    async def test_blank_credential(self, create_pipeline, sample_document, credential):
        pipeline, _ = create_pipeline({})
        with pytest.raises(ValueError, match="credential"):
            await pipeline.extract(sample_document, credential)

    @pytest.mark.asyncio
    async def test_zero_attempts(self, create_pipeline, sample_document):
        pipeline, _ = create_pipeline({})
        with pytest.raises(ValueError, match="max_attempts_per_model"):
            await pipeline.extract(sample_document, "key", max_attempts_per_model=0)

    @pytest.mark.parametrize("roster", [[], ["a", "a"], "gemini-2.5-pro"])
    @pytest.mark.asyncio
    async def test_bad_roster(self, create_pipeline, sample_document, roster):
        pipeline, _ = create_pipeline({})
        with pytest.raises(ValueError):
            await pipeline.extract(sample_document, "key", model_roster=roster)


class TestExtractQuestions:

    @pytest.mark.asyncio
    async def test_with_injected_client(self, scripted_client, sample_document, valid_model_output):
        client = scripted_client({"gemini-2.5-pro": [valid_model_output]})

        result = await extract_questions(sample_document, "key", client=client)

        assert result.model == "gemini-2.5-pro"
        assert len(result.questions) == 2

    @pytest.mark.asyncio
    async def test_enrich_passed_through(self, scripted_client, sample_document, create_question_dict):
        client = scripted_client({"gemini-2.5-pro": [
            json.dumps([create_question_dict(explanation=None)]),
            json.dumps({"explanation": "Two plus two is four."}),
        ]})
        events = []

        result = await extract_questions(
            sample_document, "key", client=client, enrich=True, on_enrichment_progress=events.append
        )

        assert result.enriched_questions == 1
        assert events[-1].stage == "complete"

    @pytest.mark.asyncio
    async def test_owns_and_closes_default_client(self, sample_document):
        with patch("question_extractor.pipeline.GeminiClient.generate", new_callable=AsyncMock) as mock_generate, \
                patch("question_extractor.pipeline.GeminiClient.close", new_callable=AsyncMock) as mock_close:
            mock_generate.return_value = LLMGenerationResponse(
                content="[]", model_version="gemini-2.5-pro", finish_reason="STOP", latency_ms=1
            )

            result = await extract_questions(sample_document, "key")

        assert result.questions == []
        mock_close.assert_awaited_once()
