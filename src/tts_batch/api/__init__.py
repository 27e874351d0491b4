"""
FastAPI REST API Layer for tts-batch.

This package defines all HTTP endpoints:
    - routes.py: /v1/synthesize, /v1/chunks, /health, /metrics
    - schemas.py: Request/response Pydantic models
    - dependencies.py: FastAPI dependency injection
"""
