"""
FastAPI application entry point for the Question Extractor.
"""

from contextlib import asynccontextmanager
from pathlib import Path

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from question_extractor.api.dependencies import get_llm_client
from question_extractor.api.error_handlers import EXCEPTION_HANDLERS
from question_extractor.api.middleware import RequestTracingMiddleware
from question_extractor.api.routes import router
from question_extractor.config import settings
from question_extractor.logging_config import configure_logging

configure_logging(settings.LOG_LEVEL, settings.ENVIRONMENT, settings.APP_VERSION)
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Verify bundled resources on startup, close the shared client on shutdown."""
    logger.info(
        "Application startup",
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        gemini_base_url=settings.GEMINI_BASE_URL,
        models=settings.MODEL_ROSTER,
    )

    schema_path = Path(settings.JSON_SCHEMA_PATH)
    if schema_path.exists():
        logger.info("JSON Schema found", path=str(schema_path))
    else:
        logger.error("JSON Schema not found", path=str(schema_path))

    templates_dir = Path(settings.PROMPT_TEMPLATES_DIR)
    if templates_dir.exists():
        logger.info("Prompt templates directory found", path=str(templates_dir))
    else:
        logger.error("Prompt templates directory not found", path=str(templates_dir))

    yield

    logger.info("Application shutdown")
    if get_llm_client.cache_info().currsize:
        await get_llm_client().close()
    logger.info("Application shutdown complete")


app = FastAPI(
    title=settings.APP_NAME,
    description="Exam question extraction with retry and model fallback over Gemini",
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(RequestTracingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

for exc_class, handler in EXCEPTION_HANDLERS.items():
    app.add_exception_handler(exc_class, handler)

app.include_router(router, tags=["extraction"])

if settings.PROMETHEUS_ENABLED:
    Instrumentator().instrument(app).expose(app)


@app.get("/")
async def root():
    """Root endpoint with API documentation links."""
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "health": "/health",
        "schema": "/schema",
        "metrics": "/metrics" if settings.PROMETHEUS_ENABLED else None,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "question_extractor.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )
