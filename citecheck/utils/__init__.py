"""
citecheck utilities module.
"""

from citecheck.utils.config import RunConfig, Settings, get_settings
from citecheck.utils.errors import (
    CitecheckError,
    ErrorCode,
    ExtractionError,
    InputError,
    NavigationError,
    RuntimeInitError,
)
from citecheck.utils.logging import (
    LogContext,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    unbind_context,
)

__all__ = [
    # Config
    "RunConfig",
    "Settings",
    "get_settings",
    # Errors
    "CitecheckError",
    "ErrorCode",
    "InputError",
    "RuntimeInitError",
    "NavigationError",
    "ExtractionError",
    # Logging
    "get_logger",
    "configure_logging",
    "bind_context",
    "unbind_context",
    "clear_context",
    "LogContext",
]
