"""Monitoring and metrics instrumentation for the Question Extractor.

Exports custom Prometheus metrics for operational monitoring and alerting.
"""

from question_extractor.monitoring.metrics import (
    enrichments_total,
    extractions_total,
    llm_attempts_total,
    llm_latency_seconds,
    malformed_responses_total,
    model_fallbacks_total,
)

__all__ = [
    "llm_attempts_total",
    "model_fallbacks_total",
    "llm_latency_seconds",
    "extractions_total",
    "malformed_responses_total",
    "enrichments_total",
]
