"""
DocumentSynthesisService - Document-to-Audio Pipeline.

The single entry point used by both the CLI and the HTTP API.

Architecture:
    Read → Chunk → Synthesize (concurrent) → Assemble

Key Components:
    - Chunker: Splits text into request-sized chunks (tts/chunker.py)
    - Orchestrator: Concurrent, fail-fast, order-preserving synthesis
      (tts/orchestrator.py)
    - Client factory: Builds a SynthesisClient per document (tts/client.py)
    - Assembler: Concatenates per-chunk audio (tts/assembler.py)

Error Handling:
    All failures surface as TTSBatchError subclasses (core/errors.py):
    IOFailureError when reading input, InvalidArgumentError for bad
    voice / language code, SynthesisCancelledError on deadline or
    caller cancellation, RemoteCallError when a chunk call fails.

Example:
    >>> import asyncio
    >>> from tts_batch.core.config import Settings
    >>> from tts_batch.services import DocumentSynthesisService, read_document
    >>>
    >>> service = DocumentSynthesisService(Settings(raw={}))
    >>> result = asyncio.run(service.synthesize_text(read_document("book.txt")))
    >>> print(f"{len(result.chunks)} chunks, {len(result.audio)} bytes")
"""
from __future__ import annotations

import asyncio
import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from tts_batch import __version__
from tts_batch.core.config import ServiceConfig, Settings, load_settings
from tts_batch.core.errors import IOFailureError
from tts_batch.core.logging import debug, get_logger, info, verbose
from tts_batch.tts.assembler import assemble
from tts_batch.tts.cancellation import CancellationToken
from tts_batch.tts.chunker import ChunkResult, TextChunk, chunk_text
from tts_batch.tts.client import ClientFactory, get_client_factory, media_type_for
from tts_batch.tts.orchestrator import ProgressCallback, SynthesisOrchestrator
from tts_batch.utils.timeit import timeit

_LOG = get_logger("tts-batch.service")


# =============================================================================
# Input
# =============================================================================

def read_document(path: Union[str, Path]) -> str:
    """
    Read a text document as UTF-8.

    Raises:
        IOFailureError: If the file is missing, unreadable or not UTF-8.
    """
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise IOFailureError(f"failed to read {p}: {e}", {"path": str(p)}) from e
    verbose(_LOG, "document_read", path=str(p), chars=len(text))
    return text


# =============================================================================
# Result
# =============================================================================

@dataclass
class DocumentResult:
    """
    Result of synthesizing a whole document.

    Attributes:
        audio: Assembled audio of every chunk, in order.
        parts: Per-chunk audio, in chunk order.
        chunks: The chunks that were synthesized.
        voice: Voice used.
        language_code: Language code used.
        media_type: MIME type of the audio.
        total_seconds: Chunking plus synthesis time.
        timings: Per-stage timing breakdown.
    """
    audio: bytes
    parts: List[bytes]
    chunks: Tuple[TextChunk, ...]
    voice: str
    language_code: str
    media_type: str
    total_seconds: float
    timings: Dict[str, float] = field(default_factory=dict)


# =============================================================================
# Service
# =============================================================================

class DocumentSynthesisService:
    """
    Turns documents into audio.

    Usage:
        service = DocumentSynthesisService(load_settings("config/settings.yaml"))
        result = await service.synthesize_text(text, voice="en-US-Chirp3-HD-Orus")

    Args:
        settings: Raw settings; validated into a ServiceConfig here.
        client_factory: Overrides the provider client (tests, embedding).

    Raises:
        ConfigValidationError: If the settings are invalid.
        ValueError: If the configured provider is unknown.
    """

    def __init__(self, settings: Settings, client_factory: Optional[ClientFactory] = None):
        self._settings = settings
        self._config = ServiceConfig.from_settings(settings)
        self._client_factory = client_factory or get_client_factory(self._config.synthesis)

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def config(self) -> ServiceConfig:
        return self._config

    @property
    def default_voice(self) -> str:
        return self._config.synthesis.voice

    @property
    def default_language_code(self) -> str:
        return self._config.synthesis.language_code

    @property
    def media_type(self) -> str:
        """MIME type of the configured audio encoding."""
        return media_type_for(self._config.synthesis.audio_encoding)

    # =========================================================================
    # Pipeline Stages
    # =========================================================================

    def chunk(self, text: str, max_chars: Optional[int] = None) -> ChunkResult:
        """
        Split text with the configured limits.

        Args:
            text: Document text.
            max_chars: Overrides chunking.max_chars for this call.
        """
        return chunk_text(
            text,
            max_chars=max_chars or self._config.chunking.max_chars,
            max_bytes=self._config.chunking.max_bytes,
        )

    async def synthesize_chunks(
        self,
        chunks: Sequence[Union[str, TextChunk]],
        voice: Optional[str] = None,
        language_code: Optional[str] = None,
        cancellation: Optional[CancellationToken] = None,
        on_progress: Optional[ProgressCallback] = None,
        max_concurrent: Optional[int] = None,
    ) -> List[bytes]:
        """
        Synthesize chunks concurrently; audio comes back in chunk order.

        voice / language_code default to the configured values when None.
        An explicitly empty string is rejected (InvalidArgumentError).
        """
        orchestrator = SynthesisOrchestrator(
            self._client_factory,
            max_concurrent=max_concurrent if max_concurrent is not None
            else self._config.concurrency.max_concurrent,
            on_progress=on_progress,
        )
        return await orchestrator.synthesize(
            chunks,
            self.default_voice if voice is None else voice,
            self.default_language_code if language_code is None else language_code,
            cancellation=cancellation,
        )

    async def synthesize_text(
        self,
        text: str,
        voice: Optional[str] = None,
        language_code: Optional[str] = None,
        cancellation: Optional[CancellationToken] = None,
        on_progress: Optional[ProgressCallback] = None,
        max_chars: Optional[int] = None,
        max_concurrent: Optional[int] = None,
        timeout_s: Optional[float] = None,
    ) -> DocumentResult:
        """
        Chunk, synthesize and assemble a whole document.

        Args:
            text: Document text.
            voice: Voice identifier (None = configured default).
            language_code: Language code (None = configured default).
            cancellation: Caller token that aborts the document.
            on_progress: Called as (result, done, total) per finished chunk.
            max_chars: Overrides chunking.max_chars.
            max_concurrent: Overrides concurrency.max_concurrent.
            timeout_s: Deadline for the whole document. Defaults to
                synthesis.request_timeout_s. Runs on a private token that
                also follows the caller's token, and is stopped when the
                call returns; the caller's token is left untouched.

        Returns:
            DocumentResult. Empty or whitespace-only text yields no chunks
            and empty audio without contacting the service.

        Raises:
            SynthesisCancelledError: Cancelled or deadline exceeded.
            InvalidArgumentError: Empty voice or language code.
            RemoteCallError: A chunk call failed.
        """
        timings: Dict[str, float] = {}
        voice = self.default_voice if voice is None else voice
        language_code = self.default_language_code if language_code is None else language_code

        preview_len = self._config.logging.text_preview_chars
        info(_LOG, "request", chars=len(text), text_preview=text[:preview_len] if preview_len > 0 else "")
        debug(_LOG, "request_full", voice=voice, language_code=language_code, text=text)

        timeout_s = timeout_s if timeout_s is not None else self._config.synthesis.request_timeout_s
        deadline: Optional[CancellationToken] = None
        follower: Optional[asyncio.Task] = None
        if timeout_s:
            # The caller's token is never armed; it only feeds the deadline token
            deadline = CancellationToken()
            if cancellation is not None:
                if cancellation.cancelled:
                    deadline.cancel(cancellation.reason or "cancelled")
                else:
                    follower = asyncio.ensure_future(deadline.follow(cancellation))
            deadline.cancel_after(timeout_s)
            cancellation = deadline

        try:
            with timeit("request_total") as total_t:
                cr = self.chunk(text, max_chars=max_chars)
                timings["chunk"] = cr.timings_s["chunk"]
                chunks = cr.text_chunks()

                with timeit("synth") as t_synth:
                    parts = await self.synthesize_chunks(
                        chunks,
                        voice=voice,
                        language_code=language_code,
                        cancellation=cancellation,
                        on_progress=on_progress,
                        max_concurrent=max_concurrent,
                    )
                timings["synth"] = t_synth.seconds

                audio = assemble(parts)
        finally:
            if deadline is not None:
                deadline.clear_deadline()
            if follower is not None:
                follower.cancel()
                await asyncio.gather(follower, return_exceptions=True)

        return DocumentResult(
            audio=audio,
            parts=parts,
            chunks=chunks,
            voice=voice,
            language_code=language_code,
            media_type=self.media_type,
            total_seconds=total_t.seconds,
            timings=timings,
        )

    # =========================================================================
    # Health Check
    # =========================================================================

    def get_health_info(self) -> Dict[str, Any]:
        """Service status and effective configuration."""
        return {
            "ok": True,
            "version": __version__,
            "provider": self._config.synthesis.provider,
            "voice": self.default_voice,
            "language_code": self.default_language_code,
            "audio_encoding": self._config.synthesis.audio_encoding,
            "media_type": self.media_type,
            "chunking": {
                "max_chars": self._config.chunking.max_chars,
                "max_bytes": self._config.chunking.max_bytes,
            },
            "concurrency": {
                "max_concurrent": self._config.concurrency.max_concurrent,
            },
        }


# =============================================================================
# Global Service Singleton
# =============================================================================

_service: Optional[DocumentSynthesisService] = None
_service_lock = threading.Lock()


def default_settings_path() -> str:
    return os.getenv("TTS_BATCH_SETTINGS", "config/settings.yaml")


def get_service(settings: Optional[Settings] = None) -> DocumentSynthesisService:
    """
    Get or create the global DocumentSynthesisService instance.

    Thread-safe lazy singleton. Without settings, the file named by
    TTS_BATCH_SETTINGS (default config/settings.yaml) is loaded; a missing
    file means all defaults.
    """
    global _service
    if _service is None:
        with _service_lock:
            if _service is None:
                if settings is None:
                    settings = load_settings(default_settings_path(), missing_ok=True)
                _service = DocumentSynthesisService(settings)
    return _service


def reset_service() -> None:
    """
    Reset the global service instance.

    Used primarily for testing to ensure clean state between tests.
    """
    global _service
    with _service_lock:
        _service = None
