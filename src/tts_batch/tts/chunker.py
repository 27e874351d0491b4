"""
Text Chunking for Synthesis Requests.

Synthesis services cap the size of a single request, so a document is
split into chunks that each fit one call:
    - at most max_chars characters
    - optionally at most max_bytes bytes once UTF-8 encoded (Google Cloud
      Text-to-Speech rejects input over 5000 bytes, which a 4500 character
      chunk of non-Latin text easily exceeds)

Splits happen at the last whitespace inside the allowed window so words
stay whole; a window without any whitespace is cut at its end.

Example:
    >>> from tts_batch.tts.chunker import chunk_text
    >>> result = chunk_text("the quick brown fox jumps", max_chars=10)
    >>> print(result.chunks)
    ['the quick', 'brown fox', 'jumps']
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from tts_batch.core.logging import get_logger, verbose
from tts_batch.utils.timeit import timeit

_LOG = get_logger("tts-batch.chunker")

# Last whitespace character of a window
_LAST_SPACE = re.compile(r"\s(?=\S*$)", re.UNICODE)


# =============================================================================
# Data Classes
# =============================================================================

@dataclass(frozen=True)
class TextChunk:
    """
    One chunk of the document.

    Attributes:
        index: Position in the document, starting at 0.
        content: Chunk text, never empty, no surrounding whitespace.
    """
    index: int
    content: str


@dataclass
class ChunkResult:
    """
    Result of text chunking operation.

    Attributes:
        chunks: Chunk texts in document order.
        timings_s: Timing measurements in seconds.
    """
    chunks: List[str]
    timings_s: Dict[str, float]

    def text_chunks(self) -> Tuple[TextChunk, ...]:
        """Chunks as an immutable, indexed sequence."""
        return tuple(TextChunk(index=i, content=c) for i, c in enumerate(self.chunks))


# =============================================================================
# Chunking
# =============================================================================

def _fits(text: str, max_chars: int, max_bytes: Optional[int]) -> bool:
    if len(text) > max_chars:
        return False
    return max_bytes is None or len(text.encode("utf-8")) <= max_bytes


def _window(text: str, max_chars: int, max_bytes: Optional[int]) -> str:
    window = text[:max_chars]
    if max_bytes is not None:
        # Drop any character cut in half by the byte limit
        window = window.encode("utf-8")[:max_bytes].decode("utf-8", errors="ignore")
    return window


def chunk_text(text: str, max_chars: int = 4500, max_bytes: Optional[int] = None) -> ChunkResult:
    """
    Split text into request-sized chunks on whitespace boundaries.

    Strategy:
        1. Trim the text
        2. While the remainder is too large, take the leading window
           (max_chars characters, shrunk to max_bytes UTF-8 bytes when set)
        3. Split at the window's last whitespace, or hard-cut at its end
        4. Trim chunk and remainder, repeat; emit the final remainder

    Args:
        text: Input text to chunk.
        max_chars: Maximum characters per chunk.
        max_bytes: Maximum UTF-8 bytes per chunk (None = no byte limit).

    Returns:
        ChunkResult with the chunks in order. Empty or whitespace-only
        text yields no chunks.

    Raises:
        ValueError: If a limit is not positive, or max_bytes cannot hold
            a single character of the text.
    """
    if max_chars <= 0:
        raise ValueError(f"max_chars must be positive, got {max_chars}")
    if max_bytes is not None and max_bytes <= 0:
        raise ValueError(f"max_bytes must be positive, got {max_bytes}")

    timings: Dict[str, float] = {}

    with timeit("chunk") as t:
        out: List[str] = []
        remaining = text.strip()

        while remaining and not _fits(remaining, max_chars, max_bytes):
            window = _window(remaining, max_chars, max_bytes)
            if not window:
                raise ValueError(f"max_bytes={max_bytes} cannot hold character {remaining[0]!r}")

            m = _LAST_SPACE.search(window)
            cut = m.start() if m else len(window)

            out.append(remaining[:cut].strip())
            remaining = remaining[cut:].strip()

        if remaining:
            out.append(remaining)

    timings["chunk"] = t.seconds
    verbose(_LOG, "chunked", chunks=len(out), chars=len(text), max_chars=max_chars,
            seconds=round(timings["chunk"], 4))

    return ChunkResult(chunks=out, timings_s=timings)
