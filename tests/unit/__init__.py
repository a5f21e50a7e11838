"""
Unit tests for the Question Extractor.

Test individual components in isolation:
- Data models (validation, computed fields)
- LLM layer (Gemini client over httpx.MockTransport, prompt builder, text utils)
- Retry engine (backoff, classifier, executor, orchestrator state machine)
- Validation stages (each stage with positive/negative cases)
- Extraction pipeline and HTTP API
"""
