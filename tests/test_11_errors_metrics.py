"""Tests for error types and Prometheus metrics."""
from __future__ import annotations

import asyncio

import pytest

from conftest import ScriptedClient, factory_for
from tts_batch.core.errors import (
    EmptyLanguageCodeError,
    EmptyVoiceError,
    ErrorCode,
    InvalidArgumentError,
    IOFailureError,
    RemoteCallError,
    SynthesisCancelledError,
    TTSBatchError,
)
from tts_batch.core.metrics import BatchMetrics
from tts_batch.tts import orchestrator as orchestrator_module
from tts_batch.tts.orchestrator import SynthesisOrchestrator


class TestErrors:
    """TTSBatchError hierarchy and API payloads."""

    def test_to_dict(self):
        err = TTSBatchError("something broke")
        assert err.to_dict() == {"ok": False, "error": "INTERNAL_ERROR", "message": "something broke"}

    def test_to_dict_with_details(self):
        err = IOFailureError("cannot read", {"path": "doc.txt"})
        assert err.to_dict()["details"] == {"path": "doc.txt"}
        assert err.code == ErrorCode.IO_FAILED

    @pytest.mark.parametrize("cls,field", [
        (EmptyVoiceError, "voice"),
        (EmptyLanguageCodeError, "language_code"),
    ])
    def test_empty_argument_errors(self, cls, field):
        err = cls()
        assert isinstance(err, InvalidArgumentError)
        assert isinstance(err, TTSBatchError)
        assert err.code == ErrorCode.INVALID_ARGUMENT
        assert err.details == {"field": field}

    def test_cancelled(self):
        err = SynthesisCancelledError(details={"reason": "deadline of 1s exceeded"})
        assert err.code == ErrorCode.CANCELLED
        assert str(err) == "synthesis cancelled"

    def test_remote_call_error_identifies_chunk(self):
        err = RemoteCallError(2, "third chunk", "en-US-Chirp3-HD-Orus", "en-US", "quota exceeded")

        assert err.index == 2
        assert err.chunk == "third chunk"
        assert err.voice == "en-US-Chirp3-HD-Orus"
        assert err.language_code == "en-US"
        assert "quota exceeded" in err.message
        assert err.details == {
            "index": 2,
            "chars": len("third chunk"),
            "voice": "en-US-Chirp3-HD-Orus",
            "language_code": "en-US",
        }
        # Chunk text stays out of API payloads
        assert "third chunk" not in str(err.to_dict())


class TestBatchMetrics:
    """BatchMetrics on a private registry."""

    def test_record_chunk(self):
        m = BatchMetrics()
        m.record_chunk("success", audio_bytes=100)
        m.record_chunk("success", audio_bytes=50)
        m.record_chunk("error")

        assert m.registry.get_sample_value("tts_batch_chunks_total", {"status": "success"}) == 2
        assert m.registry.get_sample_value("tts_batch_chunks_total", {"status": "error"}) == 1
        assert m.registry.get_sample_value("tts_batch_audio_bytes_total") == 150

    def test_record_batch(self):
        m = BatchMetrics()
        m.record_batch("success", duration=0.7)
        m.record_batch("empty")

        assert m.registry.get_sample_value("tts_batch_batches_total", {"status": "success"}) == 1
        assert m.registry.get_sample_value("tts_batch_batches_total", {"status": "empty"}) == 1
        # Only the batch with a duration was observed
        assert m.registry.get_sample_value("tts_batch_batch_duration_seconds_count") == 1

    def test_inflight_gauge(self):
        m = BatchMetrics()
        m.call_started()
        m.call_started()
        m.call_finished()
        assert m.registry.get_sample_value("tts_batch_inflight_calls") == 1

    def test_instances_are_independent(self):
        a, b = BatchMetrics(), BatchMetrics()
        a.record_chunk("success")
        assert b.registry.get_sample_value("tts_batch_chunks_total", {"status": "success"}) is None

    def test_metrics_response(self):
        m = BatchMetrics()
        m.record_batch("success", duration=1.0)
        content, content_type = m.get_metrics_response()
        assert b"tts_batch_batches_total" in content
        assert content_type.startswith("text/plain")


class TestOrchestratorMetrics:
    """The orchestrator reports chunk and batch outcomes."""

    @pytest.fixture
    def m(self, monkeypatch):
        fresh = BatchMetrics()
        monkeypatch.setattr(orchestrator_module, "metrics", fresh)
        return fresh

    def test_successful_batch(self, m):
        orch = SynthesisOrchestrator(factory_for(ScriptedClient()))
        asyncio.run(orch.synthesize(["ab", "cde"], "v", "en-US"))

        assert m.registry.get_sample_value("tts_batch_chunks_total", {"status": "success"}) == 2
        assert m.registry.get_sample_value("tts_batch_audio_bytes_total") == 5
        assert m.registry.get_sample_value("tts_batch_batches_total", {"status": "success"}) == 1
        assert m.registry.get_sample_value("tts_batch_inflight_calls") == 0

    def test_failed_batch(self, m):
        client = ScriptedClient(fail_on={"bad"}, delays={"slow": 1.0})
        orch = SynthesisOrchestrator(factory_for(client))

        with pytest.raises(RemoteCallError):
            asyncio.run(orch.synthesize(["bad", "slow"], "v", "en-US"))

        assert m.registry.get_sample_value("tts_batch_chunks_total", {"status": "error"}) == 1
        assert m.registry.get_sample_value("tts_batch_chunks_total", {"status": "cancelled"}) == 1
        assert m.registry.get_sample_value("tts_batch_batches_total", {"status": "error"}) == 1
        assert m.registry.get_sample_value("tts_batch_inflight_calls") == 0

    def test_empty_batch(self, m):
        orch = SynthesisOrchestrator(factory_for(ScriptedClient()))
        asyncio.run(orch.synthesize([], "v", "en-US"))
        assert m.registry.get_sample_value("tts_batch_batches_total", {"status": "empty"}) == 1
