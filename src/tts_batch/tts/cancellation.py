"""
Caller-Controlled Cancellation.

A CancellationToken lets the caller abort a document that is being
synthesized: the orchestrator races the token against the batch and, when
the token fires first, cancels every outstanding chunk call.

Example:
    token = CancellationToken()
    token.cancel_after(120.0)        # deadline for the whole document
    try:
        audio = await orchestrator.synthesize(chunks, voice, lang, cancellation=token)
    finally:
        token.clear_deadline()

Tokens are bound to the event loop they are used on; create them inside
the running loop when using cancel_after().
"""
from __future__ import annotations

import asyncio
from typing import Optional


class CancellationToken:
    """
    One-shot cancellation signal.

    Once cancelled a token stays cancelled; cancel() is idempotent and the
    first reason given is kept.
    """

    def __init__(self):
        self._event = asyncio.Event()
        self._reason: Optional[str] = None
        self._timer: Optional[asyncio.TimerHandle] = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        """Why the token was cancelled, None while it is not."""
        return self._reason

    def cancel(self, reason: str = "cancelled") -> None:
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def cancel_after(self, seconds: float) -> None:
        """
        Cancel the token after a delay on the running event loop.

        A later call replaces the earlier deadline.

        Raises:
            RuntimeError: If no event loop is running.
            ValueError: If seconds is negative.
        """
        if seconds < 0:
            raise ValueError(f"seconds must be non-negative, got {seconds}")
        if self._timer is not None:
            self._timer.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(seconds, self.cancel, f"deadline of {seconds}s exceeded")

    def clear_deadline(self) -> None:
        """Stop a pending cancel_after() timer. A fired token stays cancelled."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    async def follow(self, source: "CancellationToken") -> None:
        """Cancel this token, with the same reason, once source is cancelled."""
        await source.wait()
        self.cancel(source.reason or "cancelled")

    async def wait(self) -> None:
        """Block until the token is cancelled."""
        await self._event.wait()
