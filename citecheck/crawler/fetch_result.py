"""Fetch outcome data class for URL verification."""

from dataclasses import dataclass
from typing import Any

from citecheck.crawler.classifier import Bucket, ErrorKind, classify


@dataclass(frozen=True)
class FetchOutcome:
    """Result of one navigation attempt.

    One is produced per attempt; the worker keeps only the final one.
    """

    url: str
    http_status: int | None = None
    status_text: str | None = None
    page_title: str | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None
    elapsed_ms: int = 0
    retry_count: int = 0
    # URL after the browser followed redirects
    final_url: str | None = None
    # Set only when the final host differs from the requested host
    redirect_to: str | None = None

    @property
    def bucket(self) -> Bucket:
        """Taxonomy bucket of this outcome."""
        return classify(self)

    @classmethod
    def failure(
        cls,
        url: str,
        error: str,
        error_kind: ErrorKind,
        *,
        elapsed_ms: int = 0,
        retry_count: int = 0,
    ) -> "FetchOutcome":
        """Create an outcome for a navigation that produced no status."""
        return cls(
            url=url,
            http_status=None,
            status_text=error_kind.status_text,
            error=error,
            error_kind=error_kind,
            elapsed_ms=elapsed_ms,
            retry_count=retry_count,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        result: dict[str, Any] = {
            "url": self.url,
            "httpStatus": self.http_status,
            "statusText": self.status_text,
            "pageTitle": self.page_title,
            "bucket": self.bucket.value,
            "elapsedMs": self.elapsed_ms,
            "retryCount": self.retry_count,
        }
        # Include error details only when relevant
        if self.error:
            result["error"] = self.error
        if self.error_kind:
            result["errorKind"] = self.error_kind.value
        if self.final_url and self.final_url != self.url:
            result["finalUrl"] = self.final_url
        if self.redirect_to:
            result["redirectTo"] = self.redirect_to
        return result
