"""
API Request/Response Schemas.

Models:
    SynthesizeRequest: Input schema for /v1/synthesize
    ChunksRequest: Input schema for /v1/chunks (dry run)
    ChunkPreview / ChunksResponse: /v1/chunks output

Example Request:
    {
        "text": "A long chapter of text ...",
        "voice": "en-US-Chirp3-HD-Orus",
        "language_code": "en-US"
    }
"""
from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field

from tts_batch.core.config import Defaults


class SynthesizeRequest(BaseModel):
    """
    Document synthesis request.

    voice and language_code fall back to the server configuration when
    omitted; an explicitly empty string is rejected with INVALID_ARGUMENT.
    """
    text: str = Field(
        ...,
        min_length=1,
        max_length=Defaults.API_MAX_TEXT_CHARS,
        description="Document text to synthesize"
    )
    voice: str | None = Field(
        default=None,
        description="Voice name (None for the configured default)"
    )
    language_code: str | None = Field(
        default=None,
        description="Language code, e.g. 'en-US' (None for the configured default)"
    )


class ChunksRequest(BaseModel):
    text: str = Field(
        ...,
        min_length=1,
        max_length=Defaults.API_MAX_TEXT_CHARS,
        description="Document text to split"
    )
    max_chars: int | None = Field(
        default=None,
        gt=0,
        description="Override the configured chunk size"
    )


class ChunkPreview(BaseModel):
    index: int
    chars: int
    bytes: int
    preview: str


class ChunksResponse(BaseModel):
    """
    Chunking dry-run result.

    Example Response:
        {
            "request_id": "abc123def456",
            "max_chars": 4500,
            "total_chars": 10000,
            "chunks": [{"index": 0, "chars": 4489, "bytes": 4489, "preview": "..."}]
        }
    """
    request_id: str = Field(..., description="Unique request identifier for tracing")
    max_chars: int
    total_chars: int
    chunks: List[ChunkPreview]
