"""
Tests for synthesis clients and the client factory.

The Google client is exercised against a fake texttospeech module, so no
credentials or network access are needed.
"""
from __future__ import annotations

import asyncio
from types import SimpleNamespace

import pytest

from conftest import ScriptedClient
from tts_batch.core.config import SynthesisConfig
from tts_batch.tts.client import (
    SynthesisClient,
    SynthesisRequest,
    get_client_factory,
    media_type_for,
)


class FakeTransport:
    def __init__(self):
        self.closed = False

    async def close(self):
        self.closed = True


class FakeAsyncClient:
    instances = []

    def __init__(self):
        self.transport = FakeTransport()
        self.calls = []
        FakeAsyncClient.instances.append(self)

    async def synthesize_speech(self, **kwargs):
        self.calls.append(kwargs)
        return SimpleNamespace(audio_content=b"ID3" + kwargs["input"]["text"].encode())


@pytest.fixture
def fake_texttospeech(monkeypatch):
    pytest.importorskip("google.cloud.texttospeech")
    from tts_batch.tts import google_client

    FakeAsyncClient.instances = []
    fake = SimpleNamespace(
        TextToSpeechAsyncClient=FakeAsyncClient,
        AudioEncoding={"MP3": "mp3", "LINEAR16": "linear16"},
        AudioConfig=lambda **kw: dict(kw),
        SynthesisInput=lambda **kw: dict(kw),
        VoiceSelectionParams=lambda **kw: dict(kw),
    )
    monkeypatch.setattr(google_client, "texttospeech", fake)
    return fake


class TestBaseClient:
    def test_abstract_methods(self):
        client = SynthesisClient()
        with pytest.raises(NotImplementedError):
            asyncio.run(client.open())
        with pytest.raises(NotImplementedError):
            asyncio.run(client.synthesize(SynthesisRequest("x", "v", "en-US")))

    def test_async_context_manager(self):
        client = ScriptedClient()

        async def run():
            async with client as c:
                return await c.synthesize(SynthesisRequest("hi", "v", "en-US"))

        assert asyncio.run(run()) == b"hi"
        assert client.open_count == 1
        assert client.close_count == 1

    def test_request_is_immutable(self):
        request = SynthesisRequest("hi", "v", "en-US")
        with pytest.raises(Exception):
            request.text = "bye"


class TestClientFactory:
    def test_unknown_provider_fails_immediately(self):
        with pytest.raises(ValueError, match="acme"):
            get_client_factory(SynthesisConfig(provider="acme"))

    def test_fresh_client_per_call(self, fake_texttospeech):
        factory = get_client_factory(SynthesisConfig())
        first, second = factory(), factory()

        assert first is not second
        assert first.name == "google"

    @pytest.mark.parametrize("encoding,media_type", [
        ("MP3", "audio/mpeg"),
        ("LINEAR16", "audio/wav"),
        ("OGG_OPUS", "audio/ogg"),
        ("mp3", "audio/mpeg"),
        ("SPEEX", "application/octet-stream"),
    ])
    def test_media_type_for(self, encoding, media_type):
        assert media_type_for(encoding) == media_type


class TestGoogleClient:
    def test_synthesize_passes_voice_and_language(self, fake_texttospeech):
        from tts_batch.tts.google_client import GoogleSynthesisClient

        client = GoogleSynthesisClient(SynthesisConfig())

        async def run():
            async with client:
                return await client.synthesize(
                    SynthesisRequest("Hello.", "en-US-Chirp3-HD-Orus", "en-US")
                )

        audio = asyncio.run(run())

        assert audio == b"ID3Hello."
        (fake,) = FakeAsyncClient.instances
        (call,) = fake.calls
        assert call["voice"] == {"language_code": "en-US", "name": "en-US-Chirp3-HD-Orus"}
        assert call["audio_config"] == {"audio_encoding": "mp3"}
        assert call["retry"] is None
        assert "timeout" not in call
        assert fake.transport.closed is True

    def test_timeout_forwarded(self, fake_texttospeech):
        from tts_batch.tts.google_client import GoogleSynthesisClient

        client = GoogleSynthesisClient(SynthesisConfig(timeout_s=30.0))

        async def run():
            await client.open()
            try:
                await client.synthesize(SynthesisRequest("Hi.", "v", "en-US"))
            finally:
                await client.close()

        asyncio.run(run())
        assert FakeAsyncClient.instances[0].calls[0]["timeout"] == 30.0

    def test_open_is_idempotent(self, fake_texttospeech):
        from tts_batch.tts.google_client import GoogleSynthesisClient

        client = GoogleSynthesisClient(SynthesisConfig())

        async def run():
            await client.open()
            await client.open()
            await client.close()
            await client.close()

        asyncio.run(run())
        assert len(FakeAsyncClient.instances) == 1

    def test_synthesize_requires_open(self, fake_texttospeech):
        from tts_batch.tts.google_client import GoogleSynthesisClient

        client = GoogleSynthesisClient(SynthesisConfig())
        with pytest.raises(RuntimeError, match="not open"):
            asyncio.run(client.synthesize(SynthesisRequest("Hi.", "v", "en-US")))

    def test_media_type_from_encoding(self, fake_texttospeech):
        from tts_batch.tts.google_client import GoogleSynthesisClient

        client = GoogleSynthesisClient(SynthesisConfig(audio_encoding="LINEAR16"))
        assert client.media_type == "audio/wav"
