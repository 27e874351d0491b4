"""
Concurrent Chunk Synthesis.

SynthesisOrchestrator turns an ordered sequence of chunks into an ordered
list of audio byte strings, calling the synthesis service for all chunks
concurrently.

Guarantees:
    - Output order is chunk order, whatever order the calls finish in.
      Every task owns exactly one slot of a pre-allocated result table.
    - Fail-fast: the first failing call cancels every other call,
      including ones not started yet, and no partial output is returned.
    - The client is opened once, shared by all tasks, and closed once
      after every task has finished, on success and on failure alike.

Concurrency:
    One asyncio task per chunk inside one asyncio.TaskGroup, which is the
    shared cancellation scope. With max_concurrent set, the dispatch loop
    takes a semaphore slot before creating each task and the task gives
    it back when its call finishes, so at most max_concurrent calls are in
    flight. With max_concurrent unset every task is created at once.

Cancellation:
    A CancellationToken passed by the caller is raced against the batch;
    if it fires first the batch is cancelled and SynthesisCancelledError
    is raised. The orchestrator sets no deadline of its own.

Which error wins:
    When several calls fail, the error raised is the first one recorded
    by the TaskGroup, i.e. the first call to fail in completion order.

Example:
    >>> orchestrator = SynthesisOrchestrator(factory, max_concurrent=8)
    >>> parts = await orchestrator.synthesize(
    ...     ["First chunk.", "Second chunk."], "en-US-Chirp3-HD-Orus", "en-US"
    ... )
    >>> len(parts)
    2
"""
from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, List, Optional, Sequence, Union

from tts_batch.core.errors import (
    EmptyLanguageCodeError,
    EmptyVoiceError,
    ErrorCode,
    RemoteCallError,
    SynthesisCancelledError,
    TTSBatchError,
)
from tts_batch.core.logging import debug, error, fail, get_logger, info, success, verbose
from tts_batch.core.metrics import metrics
from tts_batch.tts.cancellation import CancellationToken
from tts_batch.tts.chunker import TextChunk
from tts_batch.tts.client import ClientFactory, SynthesisClient, SynthesisRequest, SynthesisResult
from tts_batch.utils.timeit import timeit

_LOG = get_logger("tts-batch.orchestrator")

ProgressCallback = Callable[[SynthesisResult, int, int], None]


class SynthesisOrchestrator:
    """
    Fans chunk synthesis out over one shared client.

    Args:
        client_factory: Zero-argument callable returning an unopened client.
            Called once per synthesize() call.
        max_concurrent: Upper bound on calls in flight. None or 0 means one
            concurrent call per chunk.
        on_progress: Optional callback invoked as (result, done, total)
            after each chunk completes. An exception raised by the callback
            fails the batch like a failed call.
    """

    def __init__(
        self,
        client_factory: ClientFactory,
        max_concurrent: Optional[int] = None,
        on_progress: Optional[ProgressCallback] = None,
    ):
        if max_concurrent is not None and max_concurrent < 0:
            raise ValueError(f"max_concurrent must be non-negative, got {max_concurrent}")
        self._client_factory = client_factory
        self._max_concurrent = max_concurrent or None
        self._on_progress = on_progress

    @property
    def max_concurrent(self) -> Optional[int]:
        return self._max_concurrent

    async def synthesize(
        self,
        chunks: Sequence[Union[str, TextChunk]],
        voice: str,
        language_code: str,
        cancellation: Optional[CancellationToken] = None,
    ) -> List[bytes]:
        """
        Synthesize every chunk and return the audio in chunk order.

        Args:
            chunks: Chunk texts (or TextChunks) in document order.
            voice: Voice identifier, passed through to the client.
            language_code: Language code, passed through to the client.
            cancellation: Optional token that aborts the batch when fired.

        Returns:
            One audio byte string per chunk, in chunk order. An empty chunk
            sequence returns [] without opening a client.

        Raises:
            SynthesisCancelledError: The token was cancelled before or during
                the batch.
            EmptyVoiceError: voice is empty.
            EmptyLanguageCodeError: language_code is empty.
            RemoteCallError: A chunk call failed; all other calls were
                cancelled.
            TTSBatchError: The client could not be opened.
        """
        if cancellation is not None and cancellation.cancelled:
            raise SynthesisCancelledError(details={"reason": cancellation.reason})
        if not voice:
            raise EmptyVoiceError()
        if not language_code:
            raise EmptyLanguageCodeError()

        texts = [c.content if isinstance(c, TextChunk) else c for c in chunks]
        if not texts:
            debug(_LOG, "batch_empty")
            metrics.record_batch("empty")
            return []

        info(_LOG, "batch_start", chunks=len(texts), voice=voice, language_code=language_code,
             max_concurrent=self._max_concurrent or len(texts))

        status = "error"
        t = timeit("batch")
        try:
            with t:
                parts = await self._run(texts, voice, language_code, cancellation)
            status = "success"
        except (SynthesisCancelledError, asyncio.CancelledError):
            status = "cancelled"
            fail(_LOG, "batch_cancelled", chunks=len(texts), seconds=round(t.seconds, 3))
            raise
        except Exception as e:
            fail(_LOG, "batch_failed", chunks=len(texts), error=str(e), error_type=type(e).__name__,
                 seconds=round(t.seconds, 3))
            raise
        finally:
            metrics.record_batch(status, duration=t.seconds)

        success(_LOG, "batch_done", chunks=len(parts), bytes=sum(len(p) for p in parts),
                seconds=round(t.seconds, 3))
        return parts

    # =========================================================================
    # Batch Execution
    # =========================================================================

    async def _run(
        self,
        texts: List[str],
        voice: str,
        language_code: str,
        cancellation: Optional[CancellationToken],
    ) -> List[bytes]:
        async with self._open_client() as client:
            if cancellation is None:
                return await self._dispatch(client, texts, voice, language_code)

            batch = asyncio.ensure_future(self._dispatch(client, texts, voice, language_code))
            waiter = asyncio.ensure_future(cancellation.wait())
            try:
                done, _ = await asyncio.wait({batch, waiter}, return_when=asyncio.FIRST_COMPLETED)
                if batch in done:
                    return batch.result()
                raise SynthesisCancelledError(details={"reason": cancellation.reason})
            finally:
                # The client must not close while a call is still running
                waiter.cancel()
                batch.cancel()
                await asyncio.gather(batch, waiter, return_exceptions=True)

    @asynccontextmanager
    async def _open_client(self) -> AsyncIterator[SynthesisClient]:
        client: Optional[SynthesisClient] = None
        try:
            client = self._client_factory()
            await client.open()
        except Exception as e:
            provider = client.name if client is not None else "unknown"
            fail(_LOG, "client_open_failed", provider=provider, error=str(e),
                 error_type=type(e).__name__)
            raise TTSBatchError(
                f"failed to open synthesis client: {e}",
                ErrorCode.REMOTE_CALL_FAILED,
                {"provider": provider},
            ) from e

        try:
            yield client
        finally:
            try:
                await client.close()
            except Exception as e:
                error(_LOG, "client_close_failed", provider=client.name, error=str(e),
                      error_type=type(e).__name__)

    async def _dispatch(
        self,
        client: SynthesisClient,
        texts: List[str],
        voice: str,
        language_code: str,
    ) -> List[bytes]:
        total = len(texts)
        # One slot per chunk, written only by that chunk's task
        table: List[Optional[bytes]] = [None] * total
        done = 0
        slots = asyncio.Semaphore(self._max_concurrent) if self._max_concurrent else None

        async def run_one(index: int, text: str) -> None:
            nonlocal done
            try:
                result = await self._call(client, index, text, voice, language_code)
            finally:
                if slots is not None:
                    slots.release()
            table[index] = result.audio
            done += 1
            success(_LOG, "chunk_synthesized", index=index, done=done, total=total,
                    bytes=len(result.audio), seconds=round(result.seconds, 3))
            if self._on_progress is not None:
                self._on_progress(result, done, total)

        try:
            async with asyncio.TaskGroup() as tg:
                for index, text in enumerate(texts):
                    if slots is not None:
                        await slots.acquire()
                    tg.create_task(run_one(index, text), name=f"synthesize-chunk-{index}")
        except BaseExceptionGroup as eg:
            raise eg.exceptions[0]

        return list(table)  # type: ignore[arg-type]

    async def _call(
        self,
        client: SynthesisClient,
        index: int,
        text: str,
        voice: str,
        language_code: str,
    ) -> SynthesisResult:
        request = SynthesisRequest(text=text, voice=voice, language_code=language_code)
        verbose(_LOG, "chunk_start", index=index, chars=len(text))

        metrics.call_started()
        try:
            with timeit("synth", meta={"index": index}) as t:
                audio = await client.synthesize(request)
        except asyncio.CancelledError:
            metrics.record_chunk("cancelled")
            debug(_LOG, "chunk_cancelled", index=index)
            raise
        except Exception as e:
            metrics.record_chunk("error")
            fail(_LOG, "chunk_failed", index=index, error=str(e), error_type=type(e).__name__)
            raise RemoteCallError(index, text, voice, language_code, str(e)) from e
        finally:
            metrics.call_finished()

        metrics.record_chunk("success", audio_bytes=len(audio))
        return SynthesisResult(index=index, audio=audio, seconds=t.seconds)
