"""Tests for audio assembly and chunk-by-chunk output writing."""
from __future__ import annotations

import io

from tts_batch.tts.assembler import assemble, write_parts


class FlakySink(io.BytesIO):
    """BytesIO that fails on the writes listed in fail_at (0-based)."""

    def __init__(self, fail_at=()):
        super().__init__()
        self.fail_at = set(fail_at)
        self.write_calls = 0

    def write(self, data):
        n = self.write_calls
        self.write_calls += 1
        if n in self.fail_at:
            raise OSError("No space left on device")
        return super().write(data)


class TestAssemble:
    def test_concatenates_in_order(self):
        assert assemble([b"A", b"B", b"C"]) == b"ABC"

    def test_no_parts(self):
        assert assemble([]) == b""

    def test_empty_parts_contribute_nothing(self):
        assert assemble([b"A", b"", b"C"]) == b"AC"


class TestWriteParts:
    def test_one_write_per_part(self):
        sink = FlakySink()
        assert write_parts([b"A", b"B", b"C"], sink) == 0
        assert sink.getvalue() == b"ABC"
        assert sink.write_calls == 3

    def test_failed_write_does_not_stop_the_rest(self, caplog):
        sink = FlakySink(fail_at={1})

        failed = write_parts([b"A", b"B", b"C"], sink)

        assert failed == 1
        assert sink.getvalue() == b"AC"
        assert sink.write_calls == 3
        records = [r for r in caplog.records if r.getMessage() == "write_failed"]
        assert len(records) == 1
        assert records[0].extra_data["index"] == 1
        assert records[0].extra_data["code"] == "IO_FAILED"

    def test_every_write_failing(self):
        sink = FlakySink(fail_at={0, 1})
        assert write_parts([b"A", b"B"], sink) == 2
        assert sink.getvalue() == b""

    def test_closed_sink_counts_as_failure(self):
        sink = io.BytesIO()
        sink.close()
        assert write_parts([b"A"], sink) == 1

    def test_no_parts_writes_nothing(self):
        sink = FlakySink()
        assert write_parts([], sink) == 0
        assert sink.write_calls == 0
