"""
Extractor registry for structured data extraction.

Selects an extractor by URL host and runs it on a loaded page.

Design:
- Finite ExtractorKind enum, one extract function per kind
- Priority-ordered entries; the first matching predicate wins
- The generic catch-all is always the last entry
- Extraction never raises: failures become ExtractionResult(success=False)
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from citecheck.extractor.patterns import (
    detect_access_wall,
    extract_amounts,
    extract_description,
    extract_doi,
    extract_followers,
    extract_market_amounts,
    extract_og_title,
    extract_percentages,
    extract_title,
    page_text,
)
from citecheck.utils.errors import ExtractionError
from citecheck.utils.logging import get_logger

if TYPE_CHECKING:
    from playwright.async_api import Page

logger = get_logger(__name__)


class ExtractorKind(str, Enum):
    """Site types with a dedicated extractor."""

    INSTAGRAM = "instagram"
    STATISTA = "statista"
    GENERIC = "generic"


@dataclass(frozen=True)
class ExtractionResult:
    """Structured fields derived from one loaded page."""

    url: str
    extractor_kind: ExtractorKind
    fields: dict[str, Any] = field(default_factory=dict)
    success: bool = True
    error_message: str | None = None
    extracted_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def succeeded(
        cls, url: str, kind: ExtractorKind, fields: dict[str, Any]
    ) -> ExtractionResult:
        """Create a successful result."""
        return cls(url=url, extractor_kind=kind, fields=fields)

    @classmethod
    def failed(cls, url: str, kind: ExtractorKind, error_message: str) -> ExtractionResult:
        """Create a failed result with no fields."""
        return cls(url=url, extractor_kind=kind, success=False, error_message=error_message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        result: dict[str, Any] = {
            "url": self.url,
            "extractorKind": self.extractor_kind.value,
            "fields": self.fields,
            "success": self.success,
            "extractedAt": self.extracted_at.isoformat(),
        }
        if self.error_message:
            result["errorMessage"] = self.error_message
        return result


ExtractFn = Callable[["Page", str], Awaitable[dict[str, Any]]]
MatchFn = Callable[[str], bool]


@dataclass(frozen=True)
class ExtractorEntry:
    """One row of the dispatch table."""

    kind: ExtractorKind
    matches: MatchFn
    extract: ExtractFn


def host_matches(*domains: str) -> MatchFn:
    """Build a predicate matching a domain or any of its subdomains.

    Only the URL host is inspected, so "?ref=instagram.com" does not match.

    Args:
        *domains: Registrable domains such as "instagram.com".

    Returns:
        Predicate over URLs.
    """

    def matches(url: str) -> bool:
        host = (urlparse(url).hostname or "").lower()
        return any(host == d or host.endswith("." + d) for d in domains)

    return matches


def _match_all(url: str) -> bool:
    return True


async def _load_document(page: Page) -> BeautifulSoup:
    html = await page.content()
    if not html or not html.strip():
        raise ExtractionError("Page has no content")
    return BeautifulSoup(html, "html.parser")


async def extract_instagram(page: Page, url: str) -> dict[str, Any]:
    """Extract profile name and follower count from an Instagram page."""
    soup = await _load_document(page)
    text = page_text(soup)

    segments = [s for s in urlparse(url).path.split("/") if s]
    fields: dict[str, Any] = {
        "username": segments[0] if segments else None,
        "title": extract_og_title(soup) or extract_title(soup),
    }

    followers = extract_followers(text)
    if followers is not None:
        fields["followers"], fields["followersText"] = followers
    return fields


async def extract_statista(page: Page, url: str) -> dict[str, Any]:
    """Extract chart title, market figures and percentages from a Statista page."""
    soup = await _load_document(page)
    text = page_text(soup)

    return {
        "title": extract_title(soup),
        "amounts": [a.to_dict() for a in extract_market_amounts(text)],
        "percentages": extract_percentages(text),
    }


async def extract_generic(page: Page, url: str) -> dict[str, Any]:
    """Extract title, description, figures, DOI and access state from any page."""
    soup = await _load_document(page)
    doi = extract_doi(soup)
    description = extract_description(soup)
    title = extract_title(soup)
    text = page_text(soup)

    fields: dict[str, Any] = {
        "title": title,
        "description": description,
        "amounts": [a.to_dict() for a in extract_amounts(text)],
        "percentages": extract_percentages(text),
        "access": detect_access_wall(text),
    }
    if doi:
        fields["doi"] = doi
    return fields


GENERIC_ENTRY = ExtractorEntry(ExtractorKind.GENERIC, _match_all, extract_generic)


class ExtractorRegistry:
    """Priority-ordered dispatch table of extractors.

    Example:
        registry = default_registry()
        result = await registry.extract(page, "https://www.statista.com/...")
        result.extractor_kind  # ExtractorKind.STATISTA
    """

    def __init__(self, entries: Iterable[ExtractorEntry] = ()) -> None:
        """Initialize registry.

        Args:
            entries: Entries in priority order. Generic entries are moved
                behind the specific ones; the default generic extractor is
                appended if none is given.
        """
        entries = list(entries)
        specific = [e for e in entries if e.kind is not ExtractorKind.GENERIC]
        generic = [e for e in entries if e.kind is ExtractorKind.GENERIC]
        self._entries: list[ExtractorEntry] = specific + (generic[:1] or [GENERIC_ENTRY])

    @property
    def entries(self) -> list[ExtractorEntry]:
        """Entries in dispatch order."""
        return list(self._entries)

    def select(self, url: str) -> ExtractorEntry:
        """Pick the first entry whose predicate matches url."""
        for entry in self._entries:
            if entry.matches(url):
                return entry
        # Unreachable while the catch-all is in place
        return self._entries[-1]

    async def extract(
        self, page: Page, url: str, *, timeout_ms: int | None = None
    ) -> ExtractionResult:
        """Run the selected extractor on a loaded page.

        Args:
            page: Page already navigated to url.
            url: Target URL used for dispatch.
            timeout_ms: Deadline for the whole extractor run. None waits
                without limit.

        Returns:
            ExtractionResult; success=False if the extractor raised or
            ran past the deadline.
        """
        entry = self.select(url)
        timeout = timeout_ms / 1000 if timeout_ms is not None else None

        try:
            fields = await asyncio.wait_for(entry.extract(page, url), timeout=timeout)
        except TimeoutError:
            logger.warning(
                "Extraction timed out",
                url=url[:100],
                extractor=entry.kind.value,
                timeout_ms=timeout_ms,
            )
            return ExtractionResult.failed(
                url, entry.kind, f"Extraction timeout of {timeout_ms} ms exceeded"
            )
        except Exception as e:
            logger.warning(
                "Extraction failed",
                url=url[:100],
                extractor=entry.kind.value,
                error=str(e)[:200],
            )
            return ExtractionResult.failed(url, entry.kind, str(e) or type(e).__name__)

        logger.debug("Extraction complete", url=url[:100], extractor=entry.kind.value)
        return ExtractionResult.succeeded(url, entry.kind, fields)


def default_registry() -> ExtractorRegistry:
    """Registry with the built-in site extractors."""
    return ExtractorRegistry(
        [
            ExtractorEntry(ExtractorKind.INSTAGRAM, host_matches("instagram.com"), extract_instagram),
            ExtractorEntry(ExtractorKind.STATISTA, host_matches("statista.com"), extract_statista),
        ]
    )
