"""
Tests for ExtractorRegistry and the built-in site extractors.

## Test Perspectives Table

| Case ID | Input / Precondition | Perspective (Equivalence / Boundary) | Expected Result | Notes |
|---------|----------------------|--------------------------------------|-----------------|-------|
| TC-S-01 | instagram.com / www. / subdomain | Equivalence – host dispatch | instagram | - |
| TC-S-02 | statista.com URL | Equivalence – host dispatch | statista | - |
| TC-S-03 | Other host, domain in query | Boundary – query mention | generic | Host only |
| TC-S-04 | Registry without generic | Equivalence – catch-all | Generic appended last | - |
| TC-S-05 | Generic listed first | Boundary – ordering | Generic moved last | - |
| TC-S-06 | Two matching entries | Equivalence – priority | First entry wins | - |
| TC-E-01 | Instagram profile HTML | Equivalence – fields | username, followers, title | - |
| TC-E-02 | Statista HTML | Equivalence – fields | title, amounts, percentages | - |
| TC-E-03 | Generic HTML | Equivalence – fields | title, description, doi, access | - |
| TC-A-01 | Extractor raises | Abnormal – failure | success=False, message | Never raises |
| TC-A-02 | Empty page content | Abnormal – empty | success=False | ExtractionError |
| TC-A-03 | Extractor hangs, timeout_ms=50 | Abnormal – deadline | success=False, timeout message | Never raises |
| TC-D-01 | ExtractionResult.to_dict | Equivalence – serialization | camelCase keys | - |
"""

from __future__ import annotations

import asyncio
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from citecheck.extractor.registry import (
    ExtractionResult,
    ExtractorEntry,
    ExtractorKind,
    ExtractorRegistry,
    default_registry,
    host_matches,
)


def _page(html: str) -> MagicMock:
    page = MagicMock()
    page.content = AsyncMock(return_value=html)
    return page


async def _fields(page: Any, url: str) -> dict[str, Any]:
    return {"source": url}


INSTAGRAM_HTML = """
<html><head>
<meta property="og:title" content="Jane Doe (@janedoe) • Instagram photos and videos">
<title>Instagram</title>
</head><body><section><span>577K followers</span> <span>312 following</span></section></body></html>
"""

STATISTA_HTML = """
<html><head><title>Statista</title></head><body>
<h1>Global market size 2023</h1>
<p>The market was worth $33 billion in 2023 and is forecast to reach
45 billion U.S. dollars by 2028. North America held 41% of revenue.</p>
</body></html>
"""

GENERIC_HTML = """
<html><head>
<title>Study | Journal</title>
<meta name="description" content="A study of things.">
<meta name="citation_doi" content="10.1000/j.study.2023">
</head><body><h1>A Study of Things</h1>
<p>Funding of $2.5M covered 80% of costs.</p>
<div class="gate">Subscribe to continue reading.</div>
</body></html>
"""


class TestDispatch:
    """Tests for extractor selection."""

    # =========================================================================
    # TC-S-01 to TC-S-03: Host dispatch
    # =========================================================================
    @pytest.mark.parametrize(
        ("url", "kind"),
        [
            ("https://instagram.com/janedoe", ExtractorKind.INSTAGRAM),
            ("https://www.instagram.com/janedoe/", ExtractorKind.INSTAGRAM),
            ("https://www.statista.com/statistics/123/market/", ExtractorKind.STATISTA),
            ("https://de.statista.com/statistik/daten/studie/1/", ExtractorKind.STATISTA),
            ("https://example.com/?ref=instagram.com", ExtractorKind.GENERIC),
            ("https://notinstagram.com/x", ExtractorKind.GENERIC),
            ("https://journals.example.org/article/1", ExtractorKind.GENERIC),
        ],
    )
    def test_default_dispatch(self, url: str, kind: ExtractorKind) -> None:
        """Test default registry dispatch.

        Given: A URL
        When: select() is called on the default registry
        Then: The entry for the URL host is chosen
        """
        # Given
        registry = default_registry()

        # When/Then
        assert registry.select(url).kind is kind

    # =========================================================================
    # TC-S-04: Catch-all appended
    # =========================================================================
    def test_generic_appended(self) -> None:
        """Test automatic catch-all.

        Given: A registry built with only an instagram entry
        When: entries are read
        Then: Generic is last and matches any URL
        """
        # Given
        registry = ExtractorRegistry(
            [ExtractorEntry(ExtractorKind.INSTAGRAM, host_matches("instagram.com"), _fields)]
        )

        # When
        kinds = [e.kind for e in registry.entries]

        # Then
        assert kinds == [ExtractorKind.INSTAGRAM, ExtractorKind.GENERIC]
        assert registry.select("https://anything.example/").kind is ExtractorKind.GENERIC

    # =========================================================================
    # TC-S-05: Generic moved last
    # =========================================================================
    def test_generic_moved_last(self) -> None:
        """Test catch-all ordering.

        Given: Custom generic entry listed before a statista entry
        When: The registry is built
        Then: Statista is checked first, the custom generic is last
        """
        # Given
        custom_generic = ExtractorEntry(ExtractorKind.GENERIC, lambda url: True, _fields)
        statista = ExtractorEntry(ExtractorKind.STATISTA, host_matches("statista.com"), _fields)

        # When
        registry = ExtractorRegistry(iter([custom_generic, statista]))

        # Then
        assert registry.entries == [statista, custom_generic]
        assert registry.select("https://www.statista.com/x").kind is ExtractorKind.STATISTA

    # =========================================================================
    # TC-S-06: Priority
    # =========================================================================
    def test_first_match_wins(self) -> None:
        """Test priority ordering.

        Given: Two entries whose predicates both match
        When: select() is called
        Then: The first entry is chosen
        """
        # Given
        first = ExtractorEntry(ExtractorKind.STATISTA, lambda url: True, _fields)
        second = ExtractorEntry(ExtractorKind.INSTAGRAM, lambda url: True, _fields)
        registry = ExtractorRegistry([first, second])

        # When/Then
        assert registry.select("https://a.example/") is first


class TestBuiltinExtractors:
    """Tests for built-in extractors run through the registry."""

    # =========================================================================
    # TC-E-01: Instagram
    # =========================================================================
    async def test_instagram(self) -> None:
        """Test Instagram profile extraction.

        Given: Instagram profile HTML
        When: extract() is called for the profile URL
        Then: username, followers, followersText and title are present
        """
        # Given
        url = "https://www.instagram.com/janedoe/"

        # When
        result = await default_registry().extract(_page(INSTAGRAM_HTML), url)

        # Then
        assert result.success
        assert result.extractor_kind is ExtractorKind.INSTAGRAM
        assert result.fields["username"] == "janedoe"
        assert result.fields["followers"] == "577K"
        assert result.fields["followersText"] == "577K followers"
        assert result.fields["title"].startswith("Jane Doe")

    # =========================================================================
    # TC-E-02: Statista
    # =========================================================================
    async def test_statista(self) -> None:
        """Test Statista extraction.

        Given: Statista HTML with both amount forms and a percentage
        When: extract() is called
        Then: title from h1, both amounts, and the percentage are present
        """
        # Given
        url = "https://www.statista.com/statistics/1/global-market/"

        # When
        result = await default_registry().extract(_page(STATISTA_HTML), url)

        # Then
        assert result.success
        assert result.extractor_kind is ExtractorKind.STATISTA
        assert result.fields["title"] == "Global market size 2023"
        raws = [a["raw"] for a in result.fields["amounts"]]
        assert raws == ["$33 billion", "45 billion U.S. dollars"]
        assert result.fields["percentages"] == ["41%"]

    # =========================================================================
    # TC-E-03: Generic
    # =========================================================================
    async def test_generic(self) -> None:
        """Test generic extraction.

        Given: Article HTML with description, DOI and a paywall notice
        When: extract() is called
        Then: All generic fields are filled
        """
        # Given
        url = "https://journals.example.org/article/1"

        # When
        result = await default_registry().extract(_page(GENERIC_HTML), url)

        # Then
        assert result.success
        assert result.extractor_kind is ExtractorKind.GENERIC
        assert result.fields["title"] == "A Study of Things"
        assert result.fields["description"] == "A study of things."
        assert result.fields["doi"] == "10.1000/j.study.2023"
        assert result.fields["access"] == "paywall"
        assert [a["value"] for a in result.fields["amounts"]] == ["2.5"]
        assert result.fields["percentages"] == ["80%"]

    # =========================================================================
    # TC-A-01: Extractor raises
    # =========================================================================
    async def test_failure_is_contained(self) -> None:
        """Test extractor exception containment.

        Given: A registry whose only specific extractor raises
        When: extract() is called for a matching URL
        Then: success=False with the error message, no exception
        """
        # Given
        async def broken(page: Any, url: str) -> dict[str, Any]:
            raise ValueError("selector exploded")

        registry = ExtractorRegistry(
            [ExtractorEntry(ExtractorKind.STATISTA, host_matches("statista.com"), broken)]
        )

        # When
        result = await registry.extract(_page("<p>x</p>"), "https://statista.com/x")

        # Then
        assert result.success is False
        assert result.extractor_kind is ExtractorKind.STATISTA
        assert result.error_message == "selector exploded"
        assert result.fields == {}

    # =========================================================================
    # TC-A-02: Empty content
    # =========================================================================
    async def test_empty_content(self) -> None:
        """Test blank page content.

        Given: page.content() returns whitespace
        When: extract() is called
        Then: success=False
        """
        # Given/When
        result = await default_registry().extract(_page("   "), "https://a.example/")

        # Then
        assert result.success is False
        assert result.error_message == "Page has no content"

    # =========================================================================
    # TC-A-03: Extractor runs past deadline
    # =========================================================================
    async def test_extraction_deadline(self) -> None:
        """Test an extractor that never finishes.

        Given: A registry whose only specific extractor hangs
        When: extract() is called with timeout_ms=50
        Then: success=False with a timeout message, no exception
        """
        # Given
        async def stuck(page: Any, url: str) -> dict[str, Any]:
            await asyncio.sleep(10)
            return {}

        registry = ExtractorRegistry(
            [ExtractorEntry(ExtractorKind.STATISTA, host_matches("statista.com"), stuck)]
        )

        # When
        result = await registry.extract(_page("<p>x</p>"), "https://statista.com/x", timeout_ms=50)

        # Then
        assert result.success is False
        assert result.extractor_kind is ExtractorKind.STATISTA
        assert result.error_message == "Extraction timeout of 50 ms exceeded"


class TestExtractionResult:
    """Tests for ExtractionResult."""

    # =========================================================================
    # TC-D-01: Serialization
    # =========================================================================
    def test_to_dict(self) -> None:
        """Test serialization.

        Given: A failed and a successful result
        When: to_dict() is called
        Then: camelCase keys, errorMessage only on failure
        """
        # Given
        ok = ExtractionResult.succeeded("https://a.example/", ExtractorKind.GENERIC, {"title": "A"})
        failed = ExtractionResult.failed("https://a.example/", ExtractorKind.GENERIC, "boom")

        # When
        ok_dict = ok.to_dict()
        failed_dict = failed.to_dict()

        # Then
        assert ok_dict["extractorKind"] == "generic"
        assert ok_dict["fields"] == {"title": "A"}
        assert ok_dict["success"] is True
        assert "errorMessage" not in ok_dict
        assert ok_dict["extractedAt"].endswith("+00:00")
        assert failed_dict["success"] is False
        assert failed_dict["errorMessage"] == "boom"
