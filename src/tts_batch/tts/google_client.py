"""
Google Cloud Text-to-Speech Client.

Wraps texttospeech.TextToSpeechAsyncClient so one gRPC channel serves every
chunk of a document concurrently.

Authentication:
    Application Default Credentials, e.g.
        gcloud auth application-default login
    or GOOGLE_APPLICATION_CREDENTIALS pointing at a service account key.

Each call is a single attempt (retry=None); the orchestrator fails the
whole document on the first error instead of retrying.

Configuration (settings.yaml):
    synthesis:
      provider: google
      audio_encoding: MP3     # MP3, LINEAR16, OGG_OPUS, MULAW, ALAW, PCM
      timeout_s: 60           # per-call deadline, 0 = library default
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from google.cloud import texttospeech

from tts_batch.core.config import SynthesisConfig
from tts_batch.core.logging import debug, verbose
from tts_batch.tts.client import SynthesisClient, SynthesisRequest, media_type_for


class GoogleSynthesisClient(SynthesisClient):
    """
    SynthesisClient backed by Google Cloud Text-to-Speech.

    The voice is passed through as VoiceSelectionParams.name; the service
    resolves it together with the language code.
    """
    name = "google"

    def __init__(self, config: Optional[SynthesisConfig] = None):
        super().__init__(config)
        self.media_type = media_type_for(self.config.audio_encoding)
        self._audio_config = texttospeech.AudioConfig(
            audio_encoding=texttospeech.AudioEncoding[self.config.audio_encoding],
        )
        self._client: Optional[texttospeech.TextToSpeechAsyncClient] = None

    async def open(self) -> None:
        if self._client is not None:
            return
        self._client = texttospeech.TextToSpeechAsyncClient()
        verbose(self.logger, "client_opened", provider=self.name,
                audio_encoding=self.config.audio_encoding)

    async def close(self) -> None:
        if self._client is None:
            return
        client, self._client = self._client, None
        await client.transport.close()
        verbose(self.logger, "client_closed", provider=self.name)

    async def synthesize(self, request: SynthesisRequest) -> bytes:
        if self._client is None:
            raise RuntimeError("client is not open")

        kwargs: Dict[str, Any] = {"retry": None}
        if self.config.timeout_s:
            kwargs["timeout"] = self.config.timeout_s

        debug(self.logger, "synthesize_speech", chars=len(request.text),
              voice=request.voice, language_code=request.language_code)
        response = await self._client.synthesize_speech(
            input=texttospeech.SynthesisInput(text=request.text),
            voice=texttospeech.VoiceSelectionParams(
                language_code=request.language_code,
                name=request.voice,
            ),
            audio_config=self._audio_config,
            **kwargs,
        )
        return response.audio_content
