"""Tests for CancellationToken."""
from __future__ import annotations

import asyncio

import pytest

from tts_batch.tts.cancellation import CancellationToken


class TestCancellationToken:
    def test_starts_uncancelled(self):
        token = CancellationToken()
        assert token.cancelled is False
        assert token.reason is None

    def test_cancel_sets_reason(self):
        token = CancellationToken()
        token.cancel("user abort")
        assert token.cancelled is True
        assert token.reason == "user abort"

    def test_cancel_is_idempotent_and_keeps_first_reason(self):
        token = CancellationToken()
        token.cancel("first")
        token.cancel("second")
        assert token.reason == "first"

    def test_default_reason(self):
        token = CancellationToken()
        token.cancel()
        assert token.reason == "cancelled"

    def test_wait_returns_after_cancel(self):
        async def run():
            token = CancellationToken()
            asyncio.get_running_loop().call_later(0.01, token.cancel, "later")
            await asyncio.wait_for(token.wait(), timeout=1.0)
            return token.reason

        assert asyncio.run(run()) == "later"


class TestCancelAfter:
    def test_fires_after_delay(self):
        async def run():
            token = CancellationToken()
            token.cancel_after(0.01)
            assert token.cancelled is False
            await asyncio.wait_for(token.wait(), timeout=1.0)
            return token

        token = asyncio.run(run())
        assert token.cancelled is True
        assert token.reason == "deadline of 0.01s exceeded"

    def test_later_call_replaces_deadline(self):
        async def run():
            token = CancellationToken()
            token.cancel_after(0.01)
            token.cancel_after(10.0)
            await asyncio.sleep(0.05)
            return token.cancelled

        assert asyncio.run(run()) is False

    def test_explicit_cancel_wins_over_deadline(self):
        async def run():
            token = CancellationToken()
            token.cancel_after(0.01)
            token.cancel("user abort")
            await asyncio.sleep(0.05)
            return token.reason

        assert asyncio.run(run()) == "user abort"

    def test_clear_deadline_stops_timer(self):
        async def run():
            token = CancellationToken()
            token.cancel_after(0.01)
            token.clear_deadline()
            await asyncio.sleep(0.05)
            return token.cancelled

        assert asyncio.run(run()) is False

    def test_clear_deadline_keeps_fired_state(self):
        async def run():
            token = CancellationToken()
            token.cancel_after(0.0)
            await token.wait()
            token.clear_deadline()
            return token.cancelled

        assert asyncio.run(run()) is True

    def test_follow_copies_reason(self):
        async def run():
            source, target = CancellationToken(), CancellationToken()
            task = asyncio.ensure_future(target.follow(source))
            source.cancel("user abort")
            await asyncio.wait_for(task, timeout=1.0)
            return target.reason

        assert asyncio.run(run()) == "user abort"

    def test_negative_delay_rejected(self):
        async def run():
            CancellationToken().cancel_after(-1)

        with pytest.raises(ValueError):
            asyncio.run(run())

    def test_requires_running_loop(self):
        with pytest.raises(RuntimeError):
            CancellationToken().cancel_after(1.0)
