"""
Extraction API routes.

- POST /v1/extract: run one extraction and return the result
- POST /v1/extract/stream: same, as NDJSON progress lines followed by one
  result or error line
- GET /health, GET /schema: service metadata
"""

import asyncio
import contextlib
import time
from typing import Any, AsyncIterator, Optional

import structlog
from fastapi import APIRouter, Depends, status
from fastapi.responses import StreamingResponse

from question_extractor.api.dependencies import get_api_key, get_pipeline, get_settings
from question_extractor.api.error_handlers import (
    HTTP_499_CLIENT_CLOSED_REQUEST,
    status_for_extraction_failure,
)
from question_extractor.api.models import (
    ExtractRequest,
    ExtractResponse,
    HealthResponse,
    StreamLine,
)
from question_extractor.config import Settings
from question_extractor.enrichment import EnrichmentProgress
from question_extractor.exceptions import ExtractionFailed
from question_extractor.pipeline import ExtractionPipeline
from question_extractor.retry.cancellation import CancellationToken
from question_extractor.retry.exceptions import Cancelled
from question_extractor.retry.progress import ProgressEvent
from question_extractor.validation.exceptions import MalformedResponse

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.post(
    "/v1/extract",
    response_model=ExtractResponse,
    status_code=status.HTTP_200_OK,
    summary="Extract exam questions from document text",
    responses={
        200: {"description": "Extraction completed"},
        400: {"description": "Invalid request"},
        401: {"description": "Missing X-Api-Key header"},
        422: {"description": "Model output could not be parsed"},
        502: {"description": "Upstream rejected the request"},
        503: {"description": "Every model overloaded"},
    },
)
async def extract(
    request: ExtractRequest,
    api_key: str = Depends(get_api_key),
    pipeline: ExtractionPipeline = Depends(get_pipeline),
) -> ExtractResponse:
    start_time = time.perf_counter()
    logger.info(
        "Extraction request received",
        document_length=len(request.document_text),
        model_roster=request.model_roster,
        max_attempts_per_model=request.max_attempts_per_model,
        enrich=request.enrich,
    )

    result = await pipeline.extract(
        request.document_text,
        api_key,
        model_roster=request.model_roster,
        max_attempts_per_model=request.max_attempts_per_model,
        enrich=request.enrich,
    )

    logger.info(
        "Extraction request completed",
        questions=len(result.questions),
        enriched=result.enriched_questions,
        model=result.model,
        duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
    )
    return ExtractResponse(status="success", result=result, warnings=result.warnings)


def progress_line(event: ProgressEvent) -> StreamLine:
    return StreamLine(type="progress", data={**event.model_dump(), "message": event.describe()})


def enrichment_line(event: EnrichmentProgress) -> StreamLine:
    return StreamLine(type="enrichment", data={**event.model_dump(), "message": event.describe()})


def error_line(exc: Exception) -> StreamLine:
    """Render a terminal error in-band (the 200 status is already sent)."""
    data: dict[str, Any]
    if isinstance(exc, ExtractionFailed):
        data = {"status": status_for_extraction_failure(exc), "error": "extraction_failed",
                "message": exc.message, "details": exc.to_dict()}
    elif isinstance(exc, MalformedResponse):
        data = {"status": status.HTTP_422_UNPROCESSABLE_ENTITY, "error": "malformed_response",
                "message": exc.message, "details": exc.details}
    elif isinstance(exc, Cancelled):
        data = {"status": HTTP_499_CLIENT_CLOSED_REQUEST, "error": "cancelled", "message": exc.message}
    elif isinstance(exc, ValueError):
        data = {"status": status.HTTP_400_BAD_REQUEST, "error": "invalid_request", "message": str(exc)}
    else:
        data = {"status": status.HTTP_500_INTERNAL_SERVER_ERROR, "error": "internal_error",
                "message": "An unexpected error occurred"}
    return StreamLine(type="error", data=data)


async def stream_extraction(
    pipeline: ExtractionPipeline,
    request: ExtractRequest,
    api_key: str,
    cancel_token: Optional[CancellationToken] = None,
) -> AsyncIterator[str]:
    """
    Run one extraction and yield NDJSON lines as it progresses.

    Closing the iterator early (client disconnect) cancels the extraction.
    """
    queue: asyncio.Queue[Optional[StreamLine]] = asyncio.Queue()
    token = cancel_token or CancellationToken()

    async def on_progress(event: ProgressEvent) -> None:
        await queue.put(progress_line(event))

    async def on_enrichment_progress(event: EnrichmentProgress) -> None:
        await queue.put(enrichment_line(event))

    async def run() -> None:
        try:
            result = await pipeline.extract(
                request.document_text,
                api_key,
                model_roster=request.model_roster,
                max_attempts_per_model=request.max_attempts_per_model,
                on_progress=on_progress,
                cancel_token=token,
                enrich=request.enrich,
                on_enrichment_progress=on_enrichment_progress,
            )
            line = StreamLine(type="result", data=result.model_dump(mode="json"))
        except (ExtractionFailed, MalformedResponse, Cancelled, ValueError) as e:
            line = error_line(e)
        except Exception as e:
            logger.exception("Unexpected error during streamed extraction", error_type=type(e).__name__)
            line = error_line(e)
        await queue.put(line)
        await queue.put(None)

    task = asyncio.create_task(run())
    try:
        while True:
            line = await queue.get()
            if line is None:
                break
            yield line.model_dump_json() + "\n"
    finally:
        if not task.done():
            token.cancel("stream closed")
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
            logger.info("Streamed extraction abandoned by client")


@router.post(
    "/v1/extract/stream",
    summary="Extract exam questions with live progress (NDJSON)",
    responses={200: {"content": {"application/x-ndjson": {}}}},
)
async def extract_stream(
    request: ExtractRequest,
    api_key: str = Depends(get_api_key),
    pipeline: ExtractionPipeline = Depends(get_pipeline),
) -> StreamingResponse:
    return StreamingResponse(
        stream_extraction(pipeline, request, api_key),
        media_type="application/x-ndjson",
    )


@router.get("/health", response_model=HealthResponse, summary="Service health check")
async def health_check(settings: Settings = Depends(get_settings)) -> HealthResponse:
    """
    Liveness only.

    The upstream API is not called: that would need a caller's key.
    """
    return HealthResponse(status="healthy", version=settings.APP_VERSION, models=settings.MODEL_ROSTER)


@router.get("/schema", summary="JSON Schema of the model output")
async def get_schema(pipeline: ExtractionPipeline = Depends(get_pipeline)) -> dict:
    return pipeline.validator.stage2.schema
