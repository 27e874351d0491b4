"""
FastAPI Application Entry Point.

Usage:
    # Run with uvicorn
    uvicorn tts_batch.main:app --host 0.0.0.0 --port 8000

    # Or use the module directly
    python -m uvicorn tts_batch.main:app --reload
"""

from __future__ import annotations

from fastapi import FastAPI

from tts_batch import __version__
from tts_batch.api.routes import router
from tts_batch.core.logging import configure_logging


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Configures structured logging (TTS_BATCH_LOG_LEVEL, settings file) and
    registers the /v1/synthesize, /v1/chunks, /health and /metrics routes.
    The synthesis service is created on the first request.
    """
    configure_logging()

    app = FastAPI(title="tts-batch", version=__version__)
    app.include_router(router)

    return app


# Global application instance for ASGI servers (uvicorn, gunicorn, etc.)
app = create_app()
