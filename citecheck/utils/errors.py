"""
Error definitions for citecheck.

Only InputError and RuntimeInitError leave the engine. NavigationError and
ExtractionError are raised inside a single target's processing and are
always converted into records on the report.

Error codes follow the pattern:
- INVALID_*: Input validation errors (caller-side fix needed)
- *_INIT_FAILED: Infrastructure could not be started
- *_FAILED: Per-target processing errors
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes for citecheck failures."""

    INVALID_INPUT = "INVALID_INPUT"
    """No usable target URLs were supplied.
    Action: Check the URL source; nothing was fetched."""

    RUNTIME_INIT_FAILED = "RUNTIME_INIT_FAILED"
    """The browser runtime or session pool could not be started.
    Action: Install browsers with `playwright install chromium` and retry."""

    NAVIGATION_FAILED = "NAVIGATION_FAILED"
    """A page navigation did not produce a response."""

    EXTRACTION_FAILED = "EXTRACTION_FAILED"
    """A structured extractor failed on a loaded page."""


class CitecheckError(Exception):
    """
    Base exception for citecheck errors.

    Carries a machine-readable code so the wrapper layer can map it
    to an exit status and a diagnostic message.
    """

    code: ErrorCode = ErrorCode.INVALID_INPUT

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize error.

        Args:
            message: Human-readable error message.
            code: Error code. Defaults to the class-level code.
            details: Optional additional error details.
        """
        super().__init__(message)
        if code is not None:
            self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        result: dict[str, Any] = {
            "ok": False,
            "error_code": self.code.value,
            "error": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


class InputError(CitecheckError):
    """No usable targets were supplied. Fatal to the invocation."""

    code = ErrorCode.INVALID_INPUT


class RuntimeInitError(CitecheckError):
    """Browser runtime or session pool failed to start. Fatal to the run."""

    code = ErrorCode.RUNTIME_INIT_FAILED


class NavigationError(CitecheckError):
    """A navigation attempt failed. Recorded per target, never fatal."""

    code = ErrorCode.NAVIGATION_FAILED


class ExtractionError(CitecheckError):
    """An extractor failed. Recorded per target, never fatal."""

    code = ErrorCode.EXTRACTION_FAILED
