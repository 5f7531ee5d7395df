"""
Frontier: the work queue of verification targets.

Built once from caller-supplied URLs. Normalization trims only trailing
punctuation left over from prose (e.g. "see https://example.com)."), so
URLs differing in case, trailing slash or query order stay distinct.
"""

from __future__ import annotations

import threading
from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass
from urllib.parse import urlparse

from citecheck.utils.logging import get_logger

logger = get_logger(__name__)

TRAILING_PUNCTUATION = ",.);:]"


@dataclass(frozen=True)
class Target:
    """One URL queued for verification."""

    url: str


def normalize_url(raw: str) -> str:
    """Normalize a URL for deduplication.

    Args:
        raw: URL as found in the source document.

    Returns:
        URL with surrounding whitespace and trailing punctuation removed.
    """
    return raw.strip().rstrip(TRAILING_PUNCTUATION)


def is_http_url(url: str) -> bool:
    """True if url is an absolute http(s) URL."""
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


class Frontier:
    """Ordered queue of Targets with deduplication at construction.

    pop() is atomic, so the frontier can be drained concurrently by
    worker coroutines or threads. No deduplication happens after
    construction.

    Example:
        frontier = Frontier(["https://a.example/", "https://a.example/."])
        frontier.total  # 1
        target = frontier.pop()
    """

    def __init__(self, urls: Iterable[str], *, deduplicate: bool = True) -> None:
        """Build the frontier.

        Args:
            urls: Raw URLs from the caller.
            deduplicate: Drop repeated normalized URLs (first occurrence wins).
        """
        seen: set[str] = set()
        targets: list[Target] = []
        skipped = 0

        for raw in urls:
            url = normalize_url(raw)
            if not is_http_url(url):
                skipped += 1
                logger.warning("Skipping non-http target", url=raw[:100])
                continue
            if deduplicate:
                if url in seen:
                    continue
                seen.add(url)
            targets.append(Target(url=url))

        self._queue: deque[Target] = deque(targets)
        self._total = len(targets)
        self._lock = threading.Lock()

        logger.debug(
            "Frontier built",
            total=self._total,
            skipped=skipped,
            deduplicate=deduplicate,
        )

    def pop(self) -> Target | None:
        """Claim the next target.

        Returns:
            Next Target, or None if the frontier is empty.
        """
        with self._lock:
            if not self._queue:
                return None
            return self._queue.popleft()

    @property
    def total(self) -> int:
        """Number of targets at construction."""
        return self._total

    @property
    def remaining(self) -> int:
        """Number of targets not yet claimed."""
        with self._lock:
            return len(self._queue)

    def is_empty(self) -> bool:
        """True if every target has been claimed."""
        return self.remaining == 0

    def __len__(self) -> int:
        return self._total
