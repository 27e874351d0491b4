"""
Error Codes and Exceptions.

Every failure that crosses a module boundary is a TTSBatchError carrying a
stable code. The API turns the code into an HTTP status, the CLI into a
log line and exit status.

Hierarchy:
    TTSBatchError                 INTERNAL_ERROR
    ├── InvalidArgumentError      INVALID_ARGUMENT
    │   ├── EmptyVoiceError
    │   └── EmptyLanguageCodeError
    ├── SynthesisCancelledError   CANCELLED
    ├── RemoteCallError           REMOTE_CALL_FAILED
    └── IOFailureError            IO_FAILED

InvalidArgumentError and SynthesisCancelledError are raised before any
synthesis call is made. RemoteCallError aborts the whole batch; the
client's own exception is kept as __cause__.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class ErrorCode:
    """
    Standardized error codes for API responses and CLI output.
    """
    INVALID_ARGUMENT = "INVALID_ARGUMENT"       # Bad caller input
    CANCELLED = "CANCELLED"                     # Caller cancelled or deadline hit
    REMOTE_CALL_FAILED = "REMOTE_CALL_FAILED"   # Synthesis service call failed
    IO_FAILED = "IO_FAILED"                     # Reading input or writing output
    INTERNAL_ERROR = "INTERNAL_ERROR"           # Unexpected error


class TTSBatchError(Exception):
    """
    Base exception for tts-batch errors.

    Attributes:
        message: Human-readable error message.
        code: Error code from ErrorCode class.
        details: Optional dictionary with additional context.
    """
    def __init__(self, message: str, code: str = ErrorCode.INTERNAL_ERROR, details: Optional[Dict] = None):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to standardized error response dict for API."""
        result = {
            "ok": False,
            "error": self.code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


class InvalidArgumentError(TTSBatchError):
    """Raised when a caller-supplied argument is missing or malformed."""
    def __init__(self, message: str, details: Optional[Dict] = None):
        super().__init__(message, ErrorCode.INVALID_ARGUMENT, details)


class EmptyVoiceError(InvalidArgumentError):
    def __init__(self):
        super().__init__("voice must not be empty", {"field": "voice"})


class EmptyLanguageCodeError(InvalidArgumentError):
    def __init__(self):
        super().__init__("language code must not be empty", {"field": "language_code"})


class SynthesisCancelledError(TTSBatchError):
    """Raised when the caller's cancellation token fires before the batch completes."""
    def __init__(self, message: str = "synthesis cancelled", details: Optional[Dict] = None):
        super().__init__(message, ErrorCode.CANCELLED, details)


class RemoteCallError(TTSBatchError):
    """
    Raised when the synthesis service fails for one chunk.

    Attributes:
        index: Position of the failing chunk.
        chunk: Text of the failing chunk.
        voice: Voice the call was made with.
        language_code: Language code the call was made with.
    """
    def __init__(self, index: int, chunk: str, voice: str, language_code: str, reason: str):
        self.index = index
        self.chunk = chunk
        self.voice = voice
        self.language_code = language_code
        super().__init__(
            f"synthesis of chunk #{index} failed: {reason}",
            ErrorCode.REMOTE_CALL_FAILED,
            {
                "index": index,
                "chars": len(chunk),
                "voice": voice,
                "language_code": language_code,
            },
        )


class IOFailureError(TTSBatchError):
    """Raised when reading the input document or writing output fails."""
    def __init__(self, message: str, details: Optional[Dict] = None):
        super().__init__(message, ErrorCode.IO_FAILED, details)
