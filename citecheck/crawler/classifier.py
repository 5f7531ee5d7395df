"""
Outcome classification for URL verification.

Maps raw navigation results to a fixed taxonomy:
- Bucket: what the report counts (ok, redirect, blocked, clientError, serverError, failed)
- ErrorKind: why a navigation produced no status (DNS, refused, timeout, ...)

Network errors are classified by matching the browser's error text rather than
platform-specific error codes. Unmatched errors degrade to ErrorKind.UNKNOWN.

All functions here are pure.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from citecheck.crawler.fetch_result import FetchOutcome


class Bucket(str, Enum):
    """Taxonomy class of a final fetch outcome."""

    OK = "ok"
    REDIRECT = "redirect"
    BLOCKED = "blocked"
    CLIENT_ERROR = "clientError"
    SERVER_ERROR = "serverError"
    FAILED = "failed"

    @property
    def summary_key(self) -> str:
        """Key used for this bucket in Report.summary."""
        return _SUMMARY_KEYS[self]


_SUMMARY_KEYS: dict[Bucket, str] = {
    Bucket.OK: "ok",
    Bucket.REDIRECT: "redirects",
    Bucket.BLOCKED: "blocked",
    Bucket.CLIENT_ERROR: "clientErrors",
    Bucket.SERVER_ERROR: "serverErrors",
    Bucket.FAILED: "failed",
}


class ErrorKind(str, Enum):
    """Kind of network failure behind a missing status."""

    DNS_FAILURE = "dnsFailure"
    CONNECTION_REFUSED = "connectionRefused"
    TIMEOUT = "timeout"
    NAVIGATION_TIMEOUT = "navigationTimeout"
    SSL_ERROR = "sslError"
    UNKNOWN = "unknown"

    @property
    def status_text(self) -> str:
        """Short diagnostic code reported as statusText."""
        return _STATUS_TEXTS[self]


_STATUS_TEXTS: dict[ErrorKind, str] = {
    ErrorKind.DNS_FAILURE: "DNS_FAILED",
    ErrorKind.CONNECTION_REFUSED: "CONNECTION_REFUSED",
    ErrorKind.TIMEOUT: "TIMEOUT",
    ErrorKind.NAVIGATION_TIMEOUT: "NAV_TIMEOUT",
    ErrorKind.SSL_ERROR: "SSL_ERROR",
    ErrorKind.UNKNOWN: "NETWORK_ERROR",
}

# Evaluated in order; first match wins
_ERROR_SIGNATURES: list[tuple[re.Pattern[str], ErrorKind]] = [
    (re.compile(r"ERR_NAME_NOT_RESOLVED|NS_ERROR_UNKNOWN_HOST"), ErrorKind.DNS_FAILURE),
    (re.compile(r"ERR_CONNECTION_REFUSED|NS_ERROR_CONNECTION_REFUSED"), ErrorKind.CONNECTION_REFUSED),
    (re.compile(r"ERR_CONNECTION_TIMED_OUT|NS_ERROR_NET_TIMEOUT"), ErrorKind.TIMEOUT),
    (
        re.compile(r"Navigation timeout|Timeout \d+ms exceeded", re.IGNORECASE),
        ErrorKind.NAVIGATION_TIMEOUT,
    ),
    (re.compile(r"ERR_CERT|ERR_SSL|SSL"), ErrorKind.SSL_ERROR),
]


def classify_error(message: str | None) -> ErrorKind:
    """Classify a network error message.

    Args:
        message: Error text raised by the browser (may be None).

    Returns:
        Matching ErrorKind, or ErrorKind.UNKNOWN.
    """
    if not message:
        return ErrorKind.UNKNOWN

    for pattern, kind in _ERROR_SIGNATURES:
        if pattern.search(message):
            return kind

    return ErrorKind.UNKNOWN


def classify_status(status: int | None) -> Bucket:
    """Map an HTTP status to a bucket.

    Args:
        status: HTTP status code, or None/0 if the navigation produced none.

    Returns:
        Bucket for the status.
    """
    if not status:
        return Bucket.FAILED
    if 200 <= status < 300:
        return Bucket.OK
    if 300 <= status < 400:
        return Bucket.REDIRECT
    if status == 403:
        return Bucket.BLOCKED
    if 400 <= status < 500:
        return Bucket.CLIENT_ERROR
    if 500 <= status < 600:
        return Bucket.SERVER_ERROR
    return Bucket.FAILED


def classify(outcome: FetchOutcome) -> Bucket:
    """Classify a fetch outcome into its bucket."""
    return classify_status(outcome.http_status)


def is_reachable(outcome: FetchOutcome) -> bool:
    """True if the page loaded with a 2xx/3xx status."""
    return classify(outcome) in (Bucket.OK, Bucket.REDIRECT)


def is_retryable(outcome: FetchOutcome) -> bool:
    """True if the outcome may succeed on another attempt.

    Only navigations that produced no status are retried (DNS failure,
    connection refused, timeouts, unknown network errors). Any HTTP
    status, including 4xx/5xx, is final.
    """
    return not outcome.http_status
