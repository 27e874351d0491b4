"""
Command-Line Interface for tts-batch.

Synthesizes a text document into one audio file without running the HTTP
server.

Usage Examples:
    # Synthesize a document with the default voice (en-US-Chirp3-HD-Orus)
    tts-batch -t chapter1.txt -o chapter1.mp3

    # Override voice and language
    tts-batch -t kapitel.txt -o kapitel.mp3 -v de-DE-Chirp3-HD-Orus -l de-DE

    # Dry run: show how the document would be chunked
    tts-batch -t chapter1.txt --dry-run --json

    # Limit in-flight calls and set a deadline for the whole document
    tts-batch -t book.txt -o book.mp3 --max-concurrent 4 --timeout 600

Exit Codes:
    0  success
    1  reading, synthesis or writing failed
    2  invalid arguments or configuration

Environment Variables:
    TTS_BATCH_SETTINGS: Settings file (default config/settings.yaml)
    TTS_BATCH_VOICE: Default voice
    TTS_BATCH_LANGUAGE_CODE: Default language code
    TTS_BATCH_MAX_CONCURRENT: Default in-flight call limit
    TTS_BATCH_LOG_LEVEL: Log level (1-4)
"""

from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path
from typing import Any, Dict, List, Optional
from uuid import uuid4

import yaml

from tts_batch.core.config import ConfigValidationError, Defaults, load_settings
from tts_batch.core.errors import TTSBatchError
from tts_batch.core.logging import configure_logging, fail, get_logger, info, set_request_id, success
from tts_batch.services.document_service import (
    DocumentSynthesisService,
    default_settings_path,
    read_document,
)
from tts_batch.tts.assembler import write_parts


def _positive_int(value: str) -> int:
    n = int(value)
    if n <= 0:
        raise argparse.ArgumentTypeError(f"must be positive, got {n}")
    return n


def _non_negative_int(value: str) -> int:
    n = int(value)
    if n < 0:
        raise argparse.ArgumentTypeError(f"must be non-negative, got {n}")
    return n


def _positive_float(value: str) -> float:
    n = float(value)
    if n <= 0:
        raise argparse.ArgumentTypeError(f"must be positive, got {n}")
    return n


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tts-batch",
        description="Synthesize a text document into one audio file",
    )

    parser.add_argument("-t", "--text", required=True, metavar="PATH",
                        help="Input text file (UTF-8)")
    parser.add_argument("-o", "--out", metavar="PATH",
                        help="Output audio file (required unless --dry-run)")

    parser.add_argument("-v", "--voice",
                        help=f"Voice name (default: {Defaults.SYNTHESIS_VOICE})")
    parser.add_argument("-l", "--language-code",
                        help=f"Language code (default: {Defaults.SYNTHESIS_LANGUAGE_CODE})")

    parser.add_argument("--config", metavar="PATH",
                        help="Settings file (default: $TTS_BATCH_SETTINGS or config/settings.yaml)")
    parser.add_argument("--max-chunk-chars", type=_positive_int,
                        help=f"Characters per chunk (default: {Defaults.CHUNKING_MAX_CHARS})")
    parser.add_argument("--max-concurrent", type=_non_negative_int,
                        help="Synthesis calls in flight, 0 = one per chunk "
                             f"(default: {Defaults.CONCURRENCY_MAX_CONCURRENT})")
    parser.add_argument("--timeout", type=_positive_float, metavar="SECONDS",
                        help="Deadline for the whole document")

    parser.add_argument("--dry-run", action="store_true",
                        help="Chunk the document and summarize without synthesis")
    parser.add_argument("--json", action="store_true",
                        help="Print JSON summary")

    return parser


def _print_payload(payload: Dict[str, Any], as_json: bool) -> None:
    if as_json:
        print(json.dumps(payload, ensure_ascii=False))
    else:
        print(payload)


def _dry_run(service: DocumentSynthesisService, text: str, args: argparse.Namespace, log) -> int:
    cr = service.chunk(text, max_chars=args.max_chunk_chars)
    chunk_sizes: List[int] = [len(c) for c in cr.chunks]

    payload = {
        "ok": True,
        "dry_run": True,
        "chars": len(text),
        "chunks": len(cr.chunks),
        "chunk_chars": chunk_sizes,
        "max_chars": args.max_chunk_chars or service.config.chunking.max_chars,
        "voice": args.voice if args.voice is not None else service.default_voice,
        "language_code": args.language_code if args.language_code is not None
        else service.default_language_code,
    }
    info(log, "dry_run", chunks=len(cr.chunks), chars=len(text))
    _print_payload(payload, args.json)
    if not args.json:
        print("DRY_RUN_OK")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

        1. Parse arguments, configure logging
        2. Load settings and build the service
        3. Read the document
        4. Dry run, or synthesize every chunk concurrently
        5. Open the output file only after synthesis succeeded and write
           the audio chunk by chunk

    Returns:
        Exit code (0 success, 1 runtime failure, 2 bad arguments/config).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)
    if not args.dry_run and not args.out:
        parser.error("-o/--out is required unless --dry-run is given")

    configure_logging()
    log = get_logger("tts-batch.cli")
    set_request_id(str(uuid4())[:12])

    # ─────────────────────────────────────────────────────────────────────
    # Settings
    # ─────────────────────────────────────────────────────────────────────
    settings_path = args.config or default_settings_path()
    try:
        settings = load_settings(settings_path, missing_ok=args.config is None)
        service = DocumentSynthesisService(settings)
    except (OSError, yaml.YAMLError, ConfigValidationError, ValueError) as e:
        fail(log, "config_invalid", path=settings_path, error=str(e), error_type=type(e).__name__)
        return 2

    # ─────────────────────────────────────────────────────────────────────
    # Input
    # ─────────────────────────────────────────────────────────────────────
    try:
        text = read_document(args.text)
    except TTSBatchError as e:
        fail(log, "read_failed", path=args.text, error=e.message, code=e.code)
        return 1

    if args.dry_run:
        return _dry_run(service, text, args, log)

    # ─────────────────────────────────────────────────────────────────────
    # Synthesis
    # ─────────────────────────────────────────────────────────────────────
    info(log, "synth_start", chars=len(text), out=args.out)
    try:
        result = asyncio.run(service.synthesize_text(
            text,
            voice=args.voice,
            language_code=args.language_code,
            max_chars=args.max_chunk_chars,
            max_concurrent=args.max_concurrent,
            timeout_s=args.timeout,
        ))
    except TTSBatchError as e:
        fail(log, "synthesis_failed", error=e.message, code=e.code, **e.details)
        return 1

    # ─────────────────────────────────────────────────────────────────────
    # Output
    # ─────────────────────────────────────────────────────────────────────
    out_path = Path(args.out)
    try:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        with out_path.open("wb") as sink:
            failed_writes = write_parts(result.parts, sink)
    except OSError as e:
        fail(log, "output_failed", path=str(out_path), error=str(e))
        return 1

    payload = {
        "ok": failed_writes == 0,
        "dry_run": False,
        "out": str(out_path),
        "chunks": len(result.chunks),
        "bytes": len(result.audio),
        "failed_writes": failed_writes,
        "voice": result.voice,
        "language_code": result.language_code,
        "seconds": round(result.total_seconds, 3),
    }

    if failed_writes:
        fail(log, "output_incomplete", path=str(out_path), failed_writes=failed_writes)
        _print_payload(payload, args.json)
        return 1

    success(log, "synth_done", out=str(out_path), chunks=len(result.chunks), bytes=len(result.audio),
            seconds=round(result.total_seconds, 3))
    _print_payload(payload, args.json)
    if not args.json:
        print("CLI_OK")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
