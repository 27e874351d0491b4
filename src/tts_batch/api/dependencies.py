"""
FastAPI Dependency Injection Providers.

    1. get_settings() - Loads and caches application configuration
    2. get_document_service() - Returns the singleton DocumentSynthesisService

Tests replace either provider through app.dependency_overrides.

Usage in Route Handlers:
    @router.post("/v1/synthesize")
    async def synthesize(
        req: SynthesizeRequest,
        service: DocumentSynthesisService = Depends(get_document_service),
    ):
        ...
"""
from __future__ import annotations

from functools import lru_cache

from tts_batch.core.config import Settings, load_settings
from tts_batch.services.document_service import (
    DocumentSynthesisService,
    default_settings_path,
    get_service,
)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Load and cache application settings.

    Reads TTS_BATCH_SETTINGS (default config/settings.yaml); a missing
    file means all defaults.
    """
    return load_settings(default_settings_path(), missing_ok=True)


def get_document_service() -> DocumentSynthesisService:
    """Get the singleton DocumentSynthesisService instance."""
    return get_service(get_settings())
