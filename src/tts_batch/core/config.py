"""
Configuration Management for tts-batch.

Configuration hierarchy (highest priority first):
    1. Environment variables (TTS_BATCH_VOICE, TTS_BATCH_MAX_CONCURRENT, ...)
    2. YAML config file (config/settings.yaml)
    3. Defaults class values

Example settings.yaml:
    chunking:
      max_chars: 4500
      max_bytes: 5000

    concurrency:
      max_concurrent: 8     # 0 = one task per chunk, no cap

    synthesis:
      provider: google
      voice: en-US-Chirp3-HD-Orus
      language_code: en-US
      audio_encoding: MP3

    logging:
      level: 2
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional
import os
import yaml


class ConfigValidationError(Exception):
    """Raised when a configuration value is out of bounds or malformed."""
    pass


class Defaults:
    """
    Centralized default configuration values.

    Sections:
        - Chunking: per-request text limits
        - Concurrency: synthesis task fan-out
        - Synthesis: remote service parameters
        - Logging: level and previews
        - API: HTTP input limits
    """

    # ─────────────────────────────────────────────────────────────────────────
    # Chunking
    # ─────────────────────────────────────────────────────────────────────────
    CHUNKING_MAX_CHARS = 4500           # Characters per synthesis request
    CHUNKING_MAX_BYTES = 5000           # Google TTS caps request input at 5000 bytes

    # ─────────────────────────────────────────────────────────────────────────
    # Concurrency
    # ─────────────────────────────────────────────────────────────────────────
    CONCURRENCY_MAX_CONCURRENT = 8      # In-flight synthesis calls (0 = unbounded)

    # ─────────────────────────────────────────────────────────────────────────
    # Synthesis
    # ─────────────────────────────────────────────────────────────────────────
    SYNTHESIS_PROVIDER = "google"
    SYNTHESIS_VOICE = "en-US-Chirp3-HD-Orus"
    SYNTHESIS_LANGUAGE_CODE = "en-US"
    SYNTHESIS_AUDIO_ENCODING = "MP3"
    SYNTHESIS_TIMEOUT_S = 0.0           # Per-call client timeout (0 = client default)
    SYNTHESIS_REQUEST_TIMEOUT_S = 0.0   # Whole-document deadline for API requests (0 = none)

    # ─────────────────────────────────────────────────────────────────────────
    # Logging
    # ─────────────────────────────────────────────────────────────────────────
    LOGGING_TEXT_PREVIEW_CHARS = 80
    LOGGING_LEVEL = 2                   # 1=MINIMAL, 2=NORMAL, 3=VERBOSE, 4=DEBUG

    # ─────────────────────────────────────────────────────────────────────────
    # API
    # ─────────────────────────────────────────────────────────────────────────
    API_MAX_TEXT_CHARS = 1_000_000


AUDIO_ENCODINGS = ("MP3", "LINEAR16", "OGG_OPUS", "MULAW", "ALAW", "PCM")


@dataclass
class ChunkingConfig:
    """
    Text chunking limits.

    max_chars bounds every chunk in characters; max_bytes, when set,
    additionally bounds its UTF-8 size so multi-byte scripts stay under
    the service's request limit.
    """
    max_chars: int = Defaults.CHUNKING_MAX_CHARS
    max_bytes: Optional[int] = Defaults.CHUNKING_MAX_BYTES


@dataclass
class ConcurrencyConfig:
    """Synthesis fan-out. None means one concurrent task per chunk."""
    max_concurrent: Optional[int] = Defaults.CONCURRENCY_MAX_CONCURRENT


@dataclass
class SynthesisConfig:
    """Remote synthesis service parameters."""
    provider: str = Defaults.SYNTHESIS_PROVIDER
    voice: str = Defaults.SYNTHESIS_VOICE
    language_code: str = Defaults.SYNTHESIS_LANGUAGE_CODE
    audio_encoding: str = Defaults.SYNTHESIS_AUDIO_ENCODING
    timeout_s: Optional[float] = None
    request_timeout_s: Optional[float] = None


@dataclass
class LoggingConfig:
    """
    Logging configuration.

    Log levels:
        1 = MINIMAL, 2 = NORMAL (default), 3 = VERBOSE, 4 = DEBUG
    """
    text_preview_chars: int = Defaults.LOGGING_TEXT_PREVIEW_CHARS
    level: int = Defaults.LOGGING_LEVEL


@dataclass
class ApiConfig:
    max_text_chars: int = Defaults.API_MAX_TEXT_CHARS


@dataclass
class ServiceConfig:
    """
    Validated configuration for DocumentSynthesisService.

    Usage:
        settings = load_settings("config/settings.yaml")
        config = ServiceConfig.from_settings(settings)
        print(config.chunking.max_chars)
    """
    chunking: ChunkingConfig = field(default_factory=ChunkingConfig)
    concurrency: ConcurrencyConfig = field(default_factory=ConcurrencyConfig)
    synthesis: SynthesisConfig = field(default_factory=SynthesisConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    api: ApiConfig = field(default_factory=ApiConfig)

    @classmethod
    def from_settings(cls, settings: "Settings") -> "ServiceConfig":
        """
        Build a ServiceConfig from raw settings, applying defaults and
        validating every value.

        Raises:
            ConfigValidationError: If any value fails validation.
        """
        raw = settings.raw

        # ─────────────────────────────────────────────────────────────────────
        # Chunking
        # ─────────────────────────────────────────────────────────────────────
        chunking_raw = raw.get("chunking", {}) or {}
        max_bytes_raw = chunking_raw.get("max_bytes", Defaults.CHUNKING_MAX_BYTES)
        chunking = ChunkingConfig(
            max_chars=cls._as_int("chunking.max_chars", chunking_raw.get("max_chars", Defaults.CHUNKING_MAX_CHARS)),
            max_bytes=None if max_bytes_raw in (None, 0) else cls._as_int("chunking.max_bytes", max_bytes_raw),
        )
        cls._validate_positive("chunking.max_chars", chunking.max_chars)
        if chunking.max_bytes is not None:
            # A window must hold at least one UTF-8 encoded character
            cls._validate_range("chunking.max_bytes", chunking.max_bytes, 4, 1_000_000)

        # ─────────────────────────────────────────────────────────────────────
        # Concurrency
        # ─────────────────────────────────────────────────────────────────────
        concurrency_raw = raw.get("concurrency", {}) or {}
        max_concurrent_raw = concurrency_raw.get("max_concurrent", Defaults.CONCURRENCY_MAX_CONCURRENT)
        env_max_concurrent = os.getenv("TTS_BATCH_MAX_CONCURRENT")
        if env_max_concurrent:
            max_concurrent_raw = env_max_concurrent
        max_concurrent = cls._as_int("concurrency.max_concurrent", max_concurrent_raw or 0)
        cls._validate_non_negative("concurrency.max_concurrent", max_concurrent)
        concurrency = ConcurrencyConfig(max_concurrent=max_concurrent or None)

        # ─────────────────────────────────────────────────────────────────────
        # Synthesis
        # ─────────────────────────────────────────────────────────────────────
        synthesis_raw = raw.get("synthesis", {}) or {}
        timeout_s = float(synthesis_raw.get("timeout_s", Defaults.SYNTHESIS_TIMEOUT_S) or 0.0)
        request_timeout_s = float(
            synthesis_raw.get("request_timeout_s", Defaults.SYNTHESIS_REQUEST_TIMEOUT_S) or 0.0
        )
        cls._validate_non_negative("synthesis.timeout_s", timeout_s)
        cls._validate_non_negative("synthesis.request_timeout_s", request_timeout_s)

        synthesis = SynthesisConfig(
            provider=str(synthesis_raw.get("provider", Defaults.SYNTHESIS_PROVIDER)).strip().lower(),
            voice=str(os.getenv("TTS_BATCH_VOICE") or synthesis_raw.get("voice", Defaults.SYNTHESIS_VOICE)),
            language_code=str(
                os.getenv("TTS_BATCH_LANGUAGE_CODE")
                or synthesis_raw.get("language_code", Defaults.SYNTHESIS_LANGUAGE_CODE)
            ),
            audio_encoding=str(
                synthesis_raw.get("audio_encoding", Defaults.SYNTHESIS_AUDIO_ENCODING)
            ).strip().upper(),
            timeout_s=timeout_s or None,
            request_timeout_s=request_timeout_s or None,
        )
        if synthesis.audio_encoding not in AUDIO_ENCODINGS:
            raise ConfigValidationError(
                f"synthesis.audio_encoding must be one of {', '.join(AUDIO_ENCODINGS)}, "
                f"got {synthesis.audio_encoding}"
            )

        # ─────────────────────────────────────────────────────────────────────
        # Logging
        # ─────────────────────────────────────────────────────────────────────
        logging_raw = raw.get("logging", {}) or {}
        log_level_raw = logging_raw.get("level", Defaults.LOGGING_LEVEL)

        if isinstance(log_level_raw, str):
            level_map = {
                "MINIMAL": 1, "1": 1,
                "NORMAL": 2, "INFO": 2, "2": 2,
                "VERBOSE": 3, "3": 3,
                "DEBUG": 4, "TRACE": 4, "4": 4,
            }
            log_level = level_map.get(log_level_raw.upper(), Defaults.LOGGING_LEVEL)
        else:
            log_level = int(log_level_raw)

        logging_cfg = LoggingConfig(
            text_preview_chars=int(logging_raw.get("text_preview_chars", Defaults.LOGGING_TEXT_PREVIEW_CHARS)),
            level=log_level,
        )
        cls._validate_non_negative("logging.text_preview_chars", logging_cfg.text_preview_chars)
        cls._validate_range("logging.level", logging_cfg.level, 1, 4)

        # ─────────────────────────────────────────────────────────────────────
        # API
        # ─────────────────────────────────────────────────────────────────────
        api_raw = raw.get("api", {}) or {}
        api = ApiConfig(
            max_text_chars=cls._as_int("api.max_text_chars", api_raw.get("max_text_chars", Defaults.API_MAX_TEXT_CHARS)),
        )
        cls._validate_positive("api.max_text_chars", api.max_text_chars)

        return cls(
            chunking=chunking,
            concurrency=concurrency,
            synthesis=synthesis,
            logging=logging_cfg,
            api=api,
        )

    @staticmethod
    def _as_int(name: str, value: Any) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ConfigValidationError(f"{name} must be an integer, got {value!r}") from None

    @staticmethod
    def _validate_positive(name: str, value: int | float) -> None:
        """Validate that a value is positive (> 0)."""
        if value <= 0:
            raise ConfigValidationError(f"{name} must be positive, got {value}")

    @staticmethod
    def _validate_non_negative(name: str, value: int | float) -> None:
        """Validate that a value is non-negative (>= 0)."""
        if value < 0:
            raise ConfigValidationError(f"{name} must be non-negative, got {value}")

    @staticmethod
    def _validate_range(name: str, value: int | float, min_val: int | float, max_val: int | float) -> None:
        """Validate that a value is within [min_val, max_val]."""
        if not (min_val <= value <= max_val):
            raise ConfigValidationError(f"{name} must be between {min_val} and {max_val}, got {value}")


@dataclass(frozen=True)
class Settings:
    """
    Immutable raw settings loaded from YAML.

    Use get_service_config() for the validated, typed view.
    """
    raw: Dict[str, Any]

    def get_service_config(self) -> ServiceConfig:
        """
        Validated ServiceConfig for these settings.

        Raises:
            ConfigValidationError: If validation fails.
        """
        return ServiceConfig.from_settings(self)


def load_settings(path: str = "config/settings.yaml", missing_ok: bool = False) -> Settings:
    """
    Load settings from a YAML configuration file.

    Args:
        path: Path to the YAML file.
        missing_ok: Return empty settings (all defaults) instead of
            raising when the file does not exist.

    Returns:
        Settings with the loaded configuration.

    Raises:
        FileNotFoundError: If the file doesn't exist and missing_ok is False.
        ConfigValidationError: If the file is not a YAML mapping.
    """
    p = Path(path)
    if not p.exists():
        if missing_ok:
            return Settings(raw={})
        raise FileNotFoundError(f"settings file not found: {p.resolve()}")

    with p.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ConfigValidationError(f"settings file must contain a mapping: {p}")

    return Settings(raw=raw)
