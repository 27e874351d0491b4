"""
tts-batch: Chunked Document Text-to-Speech.

Turns a long text document into one audio stream by splitting it into
request-sized chunks, synthesizing every chunk concurrently against a
remote speech service, and concatenating the audio in document order.

Key Features:
    - Whitespace-aware chunking bounded in characters and UTF-8 bytes
    - Concurrent, fail-fast synthesis with order-preserving reassembly
    - Google Cloud Text-to-Speech client (MP3 by default)
    - CLI (tts-batch) and a small HTTP API (/v1/synthesize)
    - Prometheus metrics and structured logging

Example Usage:
    >>> import asyncio
    >>> from tts_batch.services import get_service
    >>>
    >>> service = get_service()
    >>> result = asyncio.run(service.synthesize_text("Hello there."))
    >>> with open("output.mp3", "wb") as f:
    ...     f.write(result.audio)
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
