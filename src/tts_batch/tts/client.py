"""
Synthesis Client Base Class and Factory.

This module provides:
    - SynthesisRequest: One chunk's synthesis parameters
    - SynthesisResult: Audio produced for one chunk
    - SynthesisClient: Base class for remote synthesis clients
    - get_client_factory(): Build a factory for the configured provider

Client Lifecycle:
    A client is opened once per document, shared by every chunk task of
    that document, and closed once after all tasks have finished:

        async with factory() as client:
            audio = await client.synthesize(request)

    synthesize() must therefore be safe to await concurrently from many
    tasks on one event loop.

Provider Selection:
    settings.synthesis.provider selects the implementation. Supported:
        - google: Google Cloud Text-to-Speech (google_client.py)

Implementing a New Client:
    1. Create tts/<name>_client.py
    2. Inherit from SynthesisClient
    3. Implement open(), close() and synthesize()
    4. Register in _create_client()
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from tts_batch.core.config import SynthesisConfig
from tts_batch.core.logging import get_logger


@dataclass(frozen=True)
class SynthesisRequest:
    """
    Parameters of a single synthesis call.

    Attributes:
        text: Chunk text.
        voice: Opaque voice identifier passed through to the service.
        language_code: BCP-47 language code, e.g. "en-US".
    """
    text: str
    voice: str
    language_code: str


@dataclass
class SynthesisResult:
    """
    Audio produced for one chunk.

    Attributes:
        index: Position of the chunk in the document.
        audio: Encoded audio bytes as returned by the service.
        seconds: Duration of the call.
    """
    index: int
    audio: bytes
    seconds: float = 0.0


class SynthesisClient:
    """
    Base class for synthesis clients.

    Subclasses implement:
        - open(): Acquire the connection / handle
        - close(): Release it
        - synthesize(): Turn one request into audio bytes

    Attributes:
        name: Provider identifier (e.g., "google").
        media_type: MIME type of the audio synthesize() returns.
        logger: Logger instance for this client.
    """
    name: str = "base"
    media_type: str = "application/octet-stream"

    def __init__(self, config: Optional[SynthesisConfig] = None):
        self.config = config or SynthesisConfig()
        self.logger = get_logger(f"tts-batch.client.{self.name}")

    async def open(self) -> None:
        """
        Acquire the client handle.

        Raises:
            NotImplementedError: If not overridden.
        """
        raise NotImplementedError

    async def close(self) -> None:
        """
        Release the client handle.

        Raises:
            NotImplementedError: If not overridden.
        """
        raise NotImplementedError

    async def synthesize(self, request: SynthesisRequest) -> bytes:
        """
        Synthesize one chunk.

        Args:
            request: Text, voice and language code of the chunk.

        Returns:
            Encoded audio bytes.

        Raises:
            NotImplementedError: If not overridden.
        """
        raise NotImplementedError

    async def __aenter__(self) -> "SynthesisClient":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


ClientFactory = Callable[[], SynthesisClient]


# =============================================================================
# Client Factory
# =============================================================================

PROVIDERS = ("google",)

_MEDIA_TYPES = {
    "MP3": "audio/mpeg",
    "LINEAR16": "audio/wav",
    "OGG_OPUS": "audio/ogg",
    "MULAW": "audio/basic",
    "ALAW": "audio/x-alaw-basic",
    "PCM": "audio/L16",
}


def media_type_for(audio_encoding: str) -> str:
    """MIME type for an audio encoding name (unknown -> octet-stream)."""
    return _MEDIA_TYPES.get(audio_encoding.upper(), "application/octet-stream")


def _create_client(config: SynthesisConfig) -> SynthesisClient:
    """
    Create a client for the configured provider.

    Uses lazy imports so the provider's SDK is only loaded when selected.

    Raises:
        ValueError: If the provider is unknown.
    """
    provider = config.provider.strip().lower()

    if provider == "google":
        from tts_batch.tts.google_client import GoogleSynthesisClient
        return GoogleSynthesisClient(config)

    raise ValueError(f"Unknown synthesis provider: {config.provider}")


def get_client_factory(config: SynthesisConfig) -> ClientFactory:
    """
    Build a factory producing a fresh, unopened client per document.

    The provider is resolved immediately so a misconfigured provider
    fails at startup rather than on the first request.

    Args:
        config: Validated synthesis configuration.

    Returns:
        Zero-argument callable returning a new SynthesisClient.

    Raises:
        ValueError: If the provider is unknown.
    """
    if config.provider.strip().lower() not in PROVIDERS:
        raise ValueError(f"Unknown synthesis provider: {config.provider}")

    def factory() -> SynthesisClient:
        return _create_client(config)

    return factory
