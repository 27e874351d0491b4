"""
Timing Utilities for Performance Measurement.

Timing data feeds the stage logs (chunking, per-chunk synthesis calls,
the whole batch) and the batch duration histogram.

Uses time.perf_counter() for high-resolution timing.

Example Usage:
    with timeit("chunk") as t:
        result = chunk_text(text, max_chars=4500)
    print(f"Took {t.timing.seconds:.3f}s")

    # Async blocks work the same way
    with timeit("synth", meta={"index": 3}) as t:
        audio = await client.synthesize(request)
"""
from __future__ import annotations

from dataclasses import dataclass
from time import perf_counter
from typing import Any, Dict, Optional


@dataclass
class Timing:
    """
    Timing measurement result.

    Attributes:
        name: Identifier for what was timed (e.g., "chunk", "batch").
        seconds: Duration in seconds.
        meta: Optional metadata dictionary for additional context.
    """
    name: str
    seconds: float
    meta: Optional[Dict[str, Any]] = None


class timeit:
    """
    Context manager for timing code blocks.

    The timing is recorded even when the block raises, so failed
    batches still report how long they ran.

    Attributes:
        name: Identifier for this timing.
        meta: Optional metadata.
        timing: Timing result (available after context exit).
    """

    def __init__(self, name: str, meta: Optional[Dict[str, Any]] = None):
        self.name = name
        self.meta = meta
        self._t0: float | None = None
        self.timing: Timing | None = None

    def __enter__(self) -> "timeit":
        """Start timing."""
        self._t0 = perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        """Stop timing and store result."""
        t1 = perf_counter()
        assert self._t0 is not None
        self.timing = Timing(name=self.name, seconds=(t1 - self._t0), meta=self.meta)

    @property
    def seconds(self) -> float:
        """Elapsed seconds, or -1.0 while the block is still running."""
        return self.timing.seconds if self.timing else -1.0
