"""Shared fixtures: scripted synthesis clients and service builders."""
from __future__ import annotations

import asyncio
from typing import Dict, Iterable, List, Optional

import pytest

from tts_batch.core.config import Settings
from tts_batch.core.logging import LogLevel, get_level, set_level
from tts_batch.tts.client import SynthesisClient, SynthesisRequest


class ScriptedClient(SynthesisClient):
    """
    In-memory SynthesisClient driven by chunk text.

    audio:   text -> bytes returned (default: the text, UTF-8 encoded)
    delays:  text -> seconds to sleep before answering
    fail_on: texts whose call raises RuntimeError
    """
    name = "scripted"
    media_type = "audio/mpeg"

    def __init__(
        self,
        audio: Optional[Dict[str, bytes]] = None,
        delays: Optional[Dict[str, float]] = None,
        fail_on: Iterable[str] = (),
        open_error: Optional[Exception] = None,
        close_error: Optional[Exception] = None,
    ):
        super().__init__()
        self.audio = audio or {}
        self.delays = delays or {}
        self.fail_on = set(fail_on)
        self.open_error = open_error
        self.close_error = close_error

        self.open_count = 0
        self.close_count = 0
        self.calls: List[SynthesisRequest] = []
        self.completed: List[str] = []
        self.cancelled: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed_while_in_flight = False

    async def open(self) -> None:
        self.open_count += 1
        if self.open_error is not None:
            raise self.open_error

    async def close(self) -> None:
        self.close_count += 1
        if self.in_flight:
            self.closed_while_in_flight = True
        if self.close_error is not None:
            raise self.close_error

    async def synthesize(self, request: SynthesisRequest) -> bytes:
        self.calls.append(request)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(request.text, 0))
            if request.text in self.fail_on:
                raise RuntimeError(f"service rejected {request.text!r}")
            self.completed.append(request.text)
            return self.audio.get(request.text, request.text.encode("utf-8"))
        except asyncio.CancelledError:
            self.cancelled.append(request.text)
            raise
        finally:
            self.in_flight -= 1


def factory_for(client: SynthesisClient):
    """Client factory that always hands out the same client."""
    return lambda: client


@pytest.fixture
def scripted_client():
    return ScriptedClient()


@pytest.fixture
def make_service():
    """Build a DocumentSynthesisService around a scripted client."""
    from tts_batch.services.document_service import DocumentSynthesisService

    def _make(client: SynthesisClient, raw: Optional[dict] = None):
        return DocumentSynthesisService(Settings(raw=raw or {}), client_factory=factory_for(client))

    return _make


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep configuration overrides from the outer environment out of tests."""
    for name in (
        "TTS_BATCH_VOICE",
        "TTS_BATCH_LANGUAGE_CODE",
        "TTS_BATCH_MAX_CONCURRENT",
        "TTS_BATCH_SETTINGS",
    ):
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture(autouse=True)
def normal_log_level():
    """Run every test at NORMAL verbosity, whatever the environment says."""
    previous = get_level()
    set_level(LogLevel.NORMAL)
    yield
    set_level(previous)
