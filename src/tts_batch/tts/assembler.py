"""
Audio Assembly.

Per-chunk audio comes back from the service as complete encoded segments
(MP3 frames by default). Encoded MP3 segments can be played back to back,
so assembling a document is plain concatenation in chunk order; no audio
is decoded or re-encoded here.

    assemble(parts)          -> one bytes object (HTTP responses)
    write_parts(parts, sink) -> one write() per chunk (CLI output file)
"""
from __future__ import annotations

from typing import BinaryIO, Sequence

from tts_batch.core.errors import IOFailureError
from tts_batch.core.logging import fail, get_logger, verbose

_LOG = get_logger("tts-batch.assembler")


def assemble(parts: Sequence[bytes]) -> bytes:
    """Concatenate audio parts in order. No parts gives b""."""
    return b"".join(parts)


def write_parts(parts: Sequence[bytes], sink: BinaryIO) -> int:
    """
    Write each part to the sink with its own write() call.

    A failed write is logged and the remaining parts are still written, so
    one bad chunk does not lose the rest of the document.

    Args:
        parts: Audio parts in chunk order.
        sink: Binary file-like object.

    Returns:
        Number of parts whose write failed (0 = complete output).
    """
    failed = 0
    for index, part in enumerate(parts):
        try:
            sink.write(part)
        except (OSError, ValueError) as e:
            failed += 1
            err = IOFailureError(f"failed to write chunk #{index}: {e}", {"index": index})
            fail(_LOG, "write_failed", index=index, error=err.message, code=err.code)
            continue
        verbose(_LOG, "chunk_written", index=index, bytes=len(part))
    return failed
