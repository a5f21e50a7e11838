"""Custom Prometheus metrics for the Question Extractor.

These metrics are exposed at /metrics endpoint and should be scraped by Prometheus.
Alert rules should be configured for:
- llm_attempts_total{outcome="transient"} (provider overload)
- model_fallbacks_total (primary model unavailable)
- extractions_total{outcome="exhausted"} (every model overloaded)
- malformed_responses_total (prompt/model drift)
"""

from prometheus_client import Counter, Histogram

# === Attempt Metrics ===

llm_attempts_total = Counter(
    "llm_attempts_total",
    "Total generation attempts by model and outcome",
    ["model", "outcome"],
)
"""
Generation attempts counter.

Labels:
- model: Model id (e.g., gemini-2.5-pro)
- outcome: success, transient, fatal

Alert thresholds:
- WARN: transient share > 20% over 15 minutes
"""

model_fallbacks_total = Counter(
    "model_fallbacks_total",
    "Total switches to the next model in the roster",
    ["from_model"],
)

llm_latency_seconds = Histogram(
    "llm_latency_seconds",
    "Generation round-trip latency in seconds",
    ["model", "success"],
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0],
)
"""
Generation latency histogram.

Buckets cover the long tail of large-document prompts (up to 5 minutes).
"""

# === Extraction Metrics ===

extractions_total = Counter(
    "extractions_total",
    "Total extraction calls by terminal outcome",
    ["outcome"],
)
"""
Extraction outcome counter.

Labels:
- outcome: success, exhausted, fatal, malformed, cancelled
"""

malformed_responses_total = Counter(
    "malformed_responses_total",
    "Model responses rejected by validation stage",
    ["stage", "error_type"],
)

# === Enrichment Metrics ===

enrichments_total = Counter(
    "question_enrichments_total",
    "Per-question explanation enrichment calls by outcome",
    ["outcome"],
)
"""
Enrichment outcome counter.

Labels:
- outcome: enriched, failed, malformed
"""
