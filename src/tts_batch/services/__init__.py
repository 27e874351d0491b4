"""
tts-batch Services Layer.

Sits between the CLI / API and the synthesis pipeline.

Components:
    - document_service.py: DocumentSynthesisService (read, chunk,
      synthesize, assemble)
"""
from .document_service import (
    DocumentResult,
    DocumentSynthesisService,
    get_service,
    read_document,
    reset_service,
)

__all__ = [
    "DocumentSynthesisService",
    "DocumentResult",
    "read_document",
    "get_service",
    "reset_service",
]
