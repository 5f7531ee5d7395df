"""
Field detectors for structured extraction.

Pure functions over page text or a parsed document. Extractors in
registry.py combine them per site type.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from bs4 import BeautifulSoup, Tag

DEFAULT_MATCH_LIMIT = 5

# $33 billion, $48.2M, $1,200
_DOLLAR_AMOUNT = re.compile(r"\$([0-9][0-9,.]*)(?:\s*(billion|million|B|M|K)\b)?")
# 33 billion U.S. dollars
_WORD_DOLLAR_AMOUNT = re.compile(
    r"([0-9][0-9,.]*)\s*(billion|million)\s*U\.?S\.?\s*dollars", re.IGNORECASE
)
_PERCENTAGE = re.compile(r"[0-9][0-9,.]*\s*%")
# 577K followers, 1.2M Followers
_FOLLOWERS = re.compile(r"([0-9][0-9,.]*[KMB]?)\s*followers", re.IGNORECASE)
_DOI = re.compile(r"\b10\.\d{4,9}/\S+")

_PAYWALL_PHRASES = (
    "subscribe to continue",
    "subscription required",
    "premium content",
    "paywall",
    "member-only",
    "members only",
    "unlock this article",
    "purchase to read",
)

_LOGIN_PHRASES = (
    "sign in to continue",
    "log in to continue",
    "login to continue",
    "please sign in",
    "please log in",
    "create an account to",
    "sign up to view",
)

CONTEXT_CHARS = 50


@dataclass(frozen=True)
class AmountMatch:
    """A monetary amount found in page text."""

    value: str
    unit: str | None
    raw: str
    context: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        result: dict[str, Any] = {"value": self.value, "unit": self.unit, "raw": self.raw}
        if self.context is not None:
            result["context"] = self.context
        return result


def _clean_number(value: str) -> str:
    return value.rstrip(".,")


def _context(text: str, match: re.Match[str]) -> str:
    start = max(0, match.start() - CONTEXT_CHARS)
    end = min(len(text), match.end() + CONTEXT_CHARS)
    return " ".join(text[start:end].split())


def extract_amounts(
    text: str,
    limit: int = DEFAULT_MATCH_LIMIT,
    *,
    with_context: bool = False,
) -> list[AmountMatch]:
    """Extract dollar amounts such as "$33 billion" or "$48.2M".

    Args:
        text: Page text.
        limit: Maximum number of matches.
        with_context: Include surrounding text with each match.

    Returns:
        Matches in document order.
    """
    amounts: list[AmountMatch] = []
    for match in _DOLLAR_AMOUNT.finditer(text):
        if len(amounts) >= limit:
            break
        amounts.append(
            AmountMatch(
                value=_clean_number(match.group(1)),
                unit=match.group(2),
                raw=match.group(0).strip(),
                context=_context(text, match) if with_context else None,
            )
        )
    return amounts


def extract_market_amounts(text: str, limit: int = DEFAULT_MATCH_LIMIT) -> list[AmountMatch]:
    """Extract market-size figures in both "$X billion" and "X billion U.S. dollars" form.

    Args:
        text: Page text.
        limit: Maximum number of matches.

    Returns:
        Dollar-sign matches first, then worded matches, each with context.
    """
    amounts = extract_amounts(text, limit, with_context=True)
    for match in _WORD_DOLLAR_AMOUNT.finditer(text):
        if len(amounts) >= limit:
            break
        amounts.append(
            AmountMatch(
                value=_clean_number(match.group(1)),
                unit=match.group(2).lower(),
                raw=match.group(0),
                context=_context(text, match),
            )
        )
    return amounts


def extract_percentages(text: str, limit: int = DEFAULT_MATCH_LIMIT) -> list[str]:
    """Extract percentages such as "71%".

    Args:
        text: Page text.
        limit: Maximum number of matches.

    Returns:
        Raw matched strings in document order.
    """
    return [m.group(0) for m, _ in zip(_PERCENTAGE.finditer(text), range(limit), strict=False)]


def extract_followers(text: str) -> tuple[str, str] | None:
    """Find a follower count such as "577K followers".

    Returns:
        Tuple of (count, matched text), or None.
    """
    match = _FOLLOWERS.search(text)
    if match is None:
        return None
    return match.group(1), match.group(0)


def page_text(soup: BeautifulSoup) -> str:
    """Visible text of a parsed document (scripts and styles removed)."""
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    return soup.get_text(" ", strip=True)


def _meta_content(soup: BeautifulSoup, **attrs: str) -> str | None:
    tag = soup.find("meta", attrs=attrs)
    if isinstance(tag, Tag):
        content = tag.get("content")
        if isinstance(content, str) and content.strip():
            return content.strip()
    return None


def extract_title(soup: BeautifulSoup) -> str | None:
    """Main heading, falling back to the document title."""
    for name in ("h1", "title"):
        tag = soup.find(name)
        if isinstance(tag, Tag):
            text = " ".join(tag.get_text(" ", strip=True).split())
            if text:
                return text
    return None


def extract_description(soup: BeautifulSoup) -> str | None:
    """Content of <meta name="description">."""
    return _meta_content(soup, name="description")


def extract_og_title(soup: BeautifulSoup) -> str | None:
    """Content of <meta property="og:title">."""
    return _meta_content(soup, property="og:title")


def extract_doi(soup: BeautifulSoup) -> str | None:
    """Find the DOI of a scholarly page.

    Checks citation_doi, then DC.identifier, then the first doi.org link.
    """
    doi = _meta_content(soup, name="citation_doi")
    if doi:
        return doi

    identifier = _meta_content(soup, name="DC.identifier")
    if identifier and ("doi.org" in identifier or _DOI.match(identifier)):
        return identifier

    link = soup.find("a", href=re.compile(r"doi\.org/"))
    if isinstance(link, Tag):
        href = link.get("href")
        if isinstance(href, str):
            return href
    return None


def detect_access_wall(text: str) -> str:
    """Classify a page as open or behind a paywall/login wall.

    Returns:
        "paywall", "login", or "open".
    """
    lower = text.lower()
    if any(phrase in lower for phrase in _PAYWALL_PHRASES):
        return "paywall"
    if any(phrase in lower for phrase in _LOGIN_PHRASES):
        return "login"
    return "open"
