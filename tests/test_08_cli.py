"""
Tests for the tts-batch command line.

The synthesis provider is replaced by a scripted client through
get_client_factory, so the CLI runs end to end without network access.
"""
from __future__ import annotations

import json

import pytest

from conftest import ScriptedClient, factory_for
from tts_batch import cli
from tts_batch.services import document_service

LONG_DOCUMENT = "a" * 4489 + " " + "b" * 5510


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    """Run in an empty directory so no settings file is picked up."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def use_client(monkeypatch):
    def _use(client):
        monkeypatch.setattr(document_service, "get_client_factory", lambda config: factory_for(client))
        return client
    return _use


def _write(path, text):
    path.write_text(text, encoding="utf-8")
    return str(path)


class TestDryRun:
    def test_dry_run_prints_marker(self, workdir, capsys):
        doc = _write(workdir / "doc.txt", "dry run test")

        assert cli.main(["--text", doc, "--dry-run"]) == 0
        assert "DRY_RUN_OK" in capsys.readouterr().out

    def test_dry_run_json(self, workdir, capsys):
        doc = _write(workdir / "doc.txt", LONG_DOCUMENT)

        assert cli.main(["-t", doc, "--dry-run", "--json"]) == 0

        payload = json.loads(capsys.readouterr().out)
        assert payload["ok"] is True
        assert payload["dry_run"] is True
        assert payload["chars"] == 10_000
        assert payload["chunks"] == 3
        assert payload["chunk_chars"] == [4489, 4500, 1010]
        assert payload["voice"] == "en-US-Chirp3-HD-Orus"

    def test_dry_run_max_chunk_chars(self, workdir, capsys):
        doc = _write(workdir / "doc.txt", "one two three four")

        assert cli.main(["-t", doc, "--dry-run", "--json", "--max-chunk-chars", "8"]) == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["chunk_chars"] == [7, 5, 4]
        assert payload["max_chars"] == 8


class TestSynthesis:
    def test_writes_assembled_audio(self, workdir, use_client, capsys):
        client = use_client(ScriptedClient(audio={
            "a" * 4489: b"A",
            "b" * 4500: b"B",
            "b" * 1010: b"C",
        }))
        doc = _write(workdir / "doc.txt", LONG_DOCUMENT)
        out = workdir / "out" / "doc.mp3"

        assert cli.main(["-t", doc, "-o", str(out)]) == 0

        assert out.read_bytes() == b"ABC"
        assert "CLI_OK" in capsys.readouterr().out
        assert client.close_count == 1

    def test_json_summary(self, workdir, use_client, capsys):
        use_client(ScriptedClient())
        doc = _write(workdir / "doc.txt", "Hello there.")
        out = workdir / "hello.mp3"

        assert cli.main(["-t", doc, "-o", str(out), "-v", "en-GB-Chirp3-HD-Orus", "-l", "en-GB", "--json"]) == 0

        payload = json.loads(capsys.readouterr().out)
        assert payload["ok"] is True
        assert payload["chunks"] == 1
        assert payload["bytes"] == len(b"Hello there.")
        assert payload["voice"] == "en-GB-Chirp3-HD-Orus"
        assert payload["language_code"] == "en-GB"
        assert payload["failed_writes"] == 0

    def test_failed_chunk_leaves_no_output(self, workdir, use_client):
        use_client(ScriptedClient(fail_on={"b" * 4500}))
        doc = _write(workdir / "doc.txt", LONG_DOCUMENT)
        out = workdir / "doc.mp3"

        assert cli.main(["-t", doc, "-o", str(out)]) == 1
        assert not out.exists()

    def test_empty_voice_fails(self, workdir, use_client):
        client = use_client(ScriptedClient())
        doc = _write(workdir / "doc.txt", "Hello.")

        assert cli.main(["-t", doc, "-o", str(workdir / "x.mp3"), "-v", ""]) == 1
        assert client.open_count == 0

    def test_timeout_fails(self, workdir, use_client):
        use_client(ScriptedClient(delays={"Hello.": 5.0}))
        doc = _write(workdir / "doc.txt", "Hello.")

        assert cli.main(["-t", doc, "-o", str(workdir / "x.mp3"), "--timeout", "0.02"]) == 1

    def test_client_construction_error_exits_1(self, workdir, monkeypatch):
        def broken_factory():
            raise KeyError("PCM")

        monkeypatch.setattr(document_service, "get_client_factory", lambda config: broken_factory)
        doc = _write(workdir / "doc.txt", "Hello.")
        out = workdir / "x.mp3"

        assert cli.main(["-t", doc, "-o", str(out)]) == 1
        assert not out.exists()

    def test_write_failure_exit_code(self, workdir, use_client, monkeypatch, capsys):
        use_client(ScriptedClient())
        monkeypatch.setattr(cli, "write_parts", lambda parts, sink: 1)
        doc = _write(workdir / "doc.txt", "Hello.")

        assert cli.main(["-t", doc, "-o", str(workdir / "x.mp3"), "--json"]) == 1
        payload = json.loads(capsys.readouterr().out)
        assert payload["ok"] is False
        assert payload["failed_writes"] == 1


class TestArguments:
    def test_missing_input_file(self, workdir):
        assert cli.main(["-t", str(workdir / "missing.txt"), "--dry-run"]) == 1

    def test_out_required_without_dry_run(self, workdir):
        doc = _write(workdir / "doc.txt", "Hello.")
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["-t", doc])
        assert exc_info.value.code == 2

    def test_text_required(self):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--dry-run"])
        assert exc_info.value.code == 2

    @pytest.mark.parametrize("flag,value", [
        ("--max-chunk-chars", "0"),
        ("--max-concurrent", "-1"),
        ("--timeout", "0"),
    ])
    def test_invalid_numbers_rejected(self, workdir, flag, value):
        doc = _write(workdir / "doc.txt", "Hello.")
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["-t", doc, "--dry-run", flag, value])
        assert exc_info.value.code == 2

    def test_explicit_missing_config(self, workdir):
        doc = _write(workdir / "doc.txt", "Hello.")
        assert cli.main(["-t", doc, "--dry-run", "--config", str(workdir / "nope.yaml")]) == 2

    def test_invalid_config(self, workdir):
        doc = _write(workdir / "doc.txt", "Hello.")
        config = _write(workdir / "settings.yaml", "chunking:\n  max_chars: -5\n")
        assert cli.main(["-t", doc, "--dry-run", "--config", config]) == 2

    def test_config_values_used(self, workdir, capsys):
        doc = _write(workdir / "doc.txt", "one two three four")
        config = _write(workdir / "settings.yaml", "chunking:\n  max_chars: 8\n")

        assert cli.main(["-t", doc, "--dry-run", "--json", "--config", config]) == 0
        assert json.loads(capsys.readouterr().out)["chunks"] == 3
