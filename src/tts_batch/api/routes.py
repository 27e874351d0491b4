"""
tts-batch API Routes.

Endpoints:
    POST /v1/synthesize   - Synthesize a document (returns encoded audio)
    POST /v1/chunks       - Chunking dry run (no synthesis)
    GET  /health          - Health check for load balancers and probes
    GET  /metrics         - Prometheus metrics

Request Flow (/v1/synthesize):
    1. Generate unique request ID for tracing
    2. Chunk the text with the configured limits
    3. Synthesize every chunk concurrently
    4. Return the assembled audio with metadata headers

Error Handling:
    All errors are returned as JSON:
    {
        "ok": false,
        "error": "<ERROR_CODE>",
        "message": "<human readable message>"
    }

    HTTP status codes are mapped from TTSBatchError codes:
        - INVALID_ARGUMENT -> 400 Bad Request
        - CANCELLED -> 504 Gateway Timeout (request deadline exceeded)
        - REMOTE_CALL_FAILED -> 502 Bad Gateway
        - anything else -> 500 Internal Server Error

Example Usage:
    curl -X POST http://localhost:8000/v1/synthesize \\
        -H "Content-Type: application/json" \\
        -d '{"text": "Hello there.", "voice": "en-US-Chirp3-HD-Orus"}' \\
        --output speech.mp3
"""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse

from tts_batch.api.dependencies import get_document_service
from tts_batch.api.schemas import ChunkPreview, ChunksRequest, ChunksResponse, SynthesizeRequest
from tts_batch.core.errors import ErrorCode, InvalidArgumentError, TTSBatchError
from tts_batch.core.logging import fail, get_logger, set_request_id, success
from tts_batch.core.metrics import metrics
from tts_batch.services.document_service import DocumentSynthesisService

router = APIRouter()

_LOG = get_logger("tts-batch.api")

_STATUS_MAP = {
    ErrorCode.INVALID_ARGUMENT: 400,
    ErrorCode.CANCELLED: 504,
    ErrorCode.REMOTE_CALL_FAILED: 502,
}


def _new_request_id() -> str:
    rid = str(uuid.uuid4())[:12]
    set_request_id(rid)
    return rid


def _error_response(error: TTSBatchError, rid: str) -> JSONResponse:
    """Standardized JSON error response for a TTSBatchError."""
    content = error.to_dict()
    content["request_id"] = rid
    return JSONResponse(status_code=_STATUS_MAP.get(error.code, 500), content=content)


@router.post("/v1/synthesize", response_class=Response)
async def synthesize(
    req: SynthesizeRequest,
    service: DocumentSynthesisService = Depends(get_document_service),
):
    """
    Synthesize a whole document.

    Returns:
        Response: Audio bytes (media type from the configured encoding) with
        headers:
            - X-Request-Id: Unique request identifier for tracing
            - X-Chunks: Number of chunks synthesized
            - X-Bytes: Size of audio data in bytes
    """
    rid = _new_request_id()

    try:
        if len(req.text) > service.config.api.max_text_chars:
            raise InvalidArgumentError(
                f"text exceeds {service.config.api.max_text_chars} characters",
                {"chars": len(req.text)},
            )
        if not req.text.strip():
            raise InvalidArgumentError("text is empty", {"field": "text"})

        result = await service.synthesize_text(
            req.text,
            voice=req.voice,
            language_code=req.language_code,
        )

        headers = {
            "X-Request-Id": rid,
            "X-Chunks": str(len(result.chunks)),
            "X-Bytes": str(len(result.audio)),
        }
        success(_LOG, "response", chunks=len(result.chunks), bytes=len(result.audio),
                seconds=round(result.total_seconds, 3))
        return Response(content=result.audio, media_type=result.media_type, headers=headers)

    except TTSBatchError as e:
        return _error_response(e, rid)

    except Exception as e:
        # Log internally but don't expose details
        fail(_LOG, "request_failed", error=str(e), error_type=type(e).__name__)
        return JSONResponse(
            status_code=500,
            content={
                "ok": False,
                "error": ErrorCode.INTERNAL_ERROR,
                "message": "Internal server error",
                "request_id": rid,
            },
        )


@router.post("/v1/chunks", response_model=ChunksResponse)
def chunks(
    req: ChunksRequest,
    service: DocumentSynthesisService = Depends(get_document_service),
):
    """
    Show how a text would be chunked, without synthesizing it.
    """
    rid = _new_request_id()
    max_chars = req.max_chars or service.config.chunking.max_chars
    preview_len = service.config.logging.text_preview_chars

    cr = service.chunk(req.text, max_chars=max_chars)
    return ChunksResponse(
        request_id=rid,
        max_chars=max_chars,
        total_chars=len(req.text),
        chunks=[
            ChunkPreview(
                index=c.index,
                chars=len(c.content),
                bytes=len(c.content.encode("utf-8")),
                preview=c.content[:preview_len],
            )
            for c in cr.text_chunks()
        ],
    )


@router.get("/health")
def health(service: DocumentSynthesisService = Depends(get_document_service)):
    """
    Health check endpoint.

    Returns the service status and effective configuration (provider,
    default voice and language, chunking and concurrency limits).
    """
    return service.get_health_info()


@router.get("/metrics")
def prometheus_metrics():
    """Prometheus metrics in text exposition format."""
    content, content_type = metrics.get_metrics_response()
    return Response(content=content, media_type=content_type)
