"""
FastAPI API routes and endpoints.

- routes.py: POST /v1/extract, POST /v1/extract/stream, GET /health, GET /schema
- dependencies.py: Dependency injection for the client and pipeline
- models.py: API-specific request/response models
- error_handlers.py: Exception handlers for structured error responses
- middleware.py: Request id tracing
"""

from question_extractor.api import dependencies, error_handlers, models
from question_extractor.api.routes import router

__all__ = [
    "router",
    "dependencies",
    "error_handlers",
    "models",
]
