"""
citecheck crawler module.

Browser runtime, session pool, frontier, navigation and outcome classification.
"""

from citecheck.crawler.browser_runtime import PlaywrightRuntime
from citecheck.crawler.classifier import (
    Bucket,
    ErrorKind,
    classify,
    classify_error,
    classify_status,
    is_reachable,
    is_retryable,
)
from citecheck.crawler.fetch_result import FetchOutcome
from citecheck.crawler.frontier import Frontier, Target, normalize_url
from citecheck.crawler.navigation import navigate
from citecheck.crawler.session_pool import Session, SessionPool, SessionState

__all__ = [
    # Runtime and sessions
    "PlaywrightRuntime",
    "Session",
    "SessionPool",
    "SessionState",
    # Frontier
    "Frontier",
    "Target",
    "normalize_url",
    # Navigation
    "navigate",
    "FetchOutcome",
    # Classification
    "Bucket",
    "ErrorKind",
    "classify",
    "classify_error",
    "classify_status",
    "is_reachable",
    "is_retryable",
]
