"""
Pytest fixtures and configuration for citecheck tests.

=============================================================================
Test Classification
=============================================================================

Primary Markers:
- @pytest.mark.unit: Single class/function, no external dependencies
  - Fast (<1s per test)
  - Browser fully replaced by FakeRuntime / MagicMock
  - DEFAULT: Tests without marker are auto-classified as unit

- @pytest.mark.integration: Multiple components wired together
  - Engine + pool + workers + aggregator against FakeRuntime
  - No real browser, no network

- @pytest.mark.e2e: Real Chromium and network access
  - DEFAULT EXCLUDED: Must use `pytest -m e2e` to run

- @pytest.mark.slow: Tests taking >5 seconds

=============================================================================
Fake browser
=============================================================================

FakeWeb plays the role of the network: each URL maps to a list of
PageScript steps consumed one per navigation (the last step repeats).
FakeRuntime hands out FakePage objects that navigate against a shared
FakeWeb and record the number of navigations in flight.
"""

from __future__ import annotations

import asyncio
from collections import Counter
from collections.abc import Generator
from dataclasses import dataclass
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from playwright.async_api import Error as PlaywrightError

from citecheck.utils.config import RunConfig, get_settings
from citecheck.utils.errors import RuntimeInitError
from citecheck.utils.logging import clear_context

_STATUS_TEXTS = {
    200: "OK",
    301: "Moved Permanently",
    403: "Forbidden",
    404: "Not Found",
    500: "Internal Server Error",
}

DEFAULT_HTML = "<html><head><title>Example Domain</title></head><body><p>Hello</p></body></html>"


@dataclass
class PageScript:
    """What a FakePage does for one navigation."""

    status: int | None = 200
    error: str | None = None
    title: str = "Example Domain"
    html: str = DEFAULT_HTML
    final_url: str | None = None
    delay: float = 0.0


class FakeResponse:
    """Stand-in for playwright Response."""

    def __init__(self, status: int) -> None:
        self.status = status
        self.status_text = _STATUS_TEXTS.get(status, "")


class FakeWeb:
    """Scripted network shared by every FakePage."""

    def __init__(self) -> None:
        self.scripts: dict[str, list[PageScript]] = {}
        self.calls: Counter[str] = Counter()
        self.active = 0
        self.max_active = 0

    def add(self, url: str, *steps: PageScript) -> None:
        self.scripts[url] = list(steps) or [PageScript()]

    def next_step(self, url: str) -> PageScript:
        steps = self.scripts.get(url)
        if not steps:
            return PageScript()
        if len(steps) == 1:
            return steps[0]
        return steps.pop(0)


class FakePage:
    """Stand-in for playwright Page."""

    def __init__(self, web: FakeWeb) -> None:
        self.web = web
        self.url = "about:blank"
        self.navigation_timeout: float | None = None
        self._step: PageScript | None = None

    async def goto(self, url: str, timeout: float | None = None, wait_until: str | None = None) -> Any:
        self.web.calls[url] += 1
        self.web.active += 1
        self.web.max_active = max(self.web.max_active, self.web.active)
        try:
            step = self.web.next_step(url)
            await asyncio.sleep(step.delay)
            if step.error:
                raise PlaywrightError(step.error)
            self.url = step.final_url or url
            self._step = step
            if step.status is None:
                return None
            return FakeResponse(step.status)
        finally:
            self.web.active -= 1

    async def title(self) -> str:
        return self._step.title if self._step else ""

    async def content(self) -> str:
        return self._step.html if self._step else ""

    def set_default_navigation_timeout(self, timeout: float) -> None:
        self.navigation_timeout = timeout


class FakeRuntime:
    """BrowserRuntime backed by FakeWeb."""

    def __init__(
        self,
        web: FakeWeb,
        *,
        fail_start: bool = False,
        fail_after_pages: int | None = None,
    ) -> None:
        self.web = web
        self.fail_start = fail_start
        self.fail_after_pages = fail_after_pages
        self.started = False
        self.closed = False
        self.contexts: list[MagicMock] = []
        self.pages: list[FakePage] = []

    async def start(self) -> None:
        if self.fail_start:
            raise RuntimeInitError("Failed to launch Chromium")
        self.started = True

    async def new_page(self) -> tuple[MagicMock, FakePage]:
        if self.fail_after_pages is not None and len(self.pages) >= self.fail_after_pages:
            raise RuntimeError("Target page, context or browser has been closed")
        context = MagicMock()
        context.close = AsyncMock()
        page = FakePage(self.web)
        self.contexts.append(context)
        self.pages.append(page)
        return context, page

    async def close(self) -> None:
        self.closed = True


# =============================================================================
# Pytest Hooks for Test Classification
# =============================================================================


def pytest_configure(config):
    """Register custom markers for test classification."""
    config.addinivalue_line(
        "markers", "unit: Unit tests with no external dependencies (fast, <1s/test)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests with mocked browser runtime (<5s/test)"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests requiring real Chromium (excluded by default)"
    )
    config.addinivalue_line("markers", "slow: Tests that take more than 5 seconds")


def pytest_collection_modifyitems(config, items):
    """Tests without explicit markers are classified as unit tests."""
    for item in items:
        has_classification = any(
            marker.name in ("unit", "integration", "e2e") for marker in item.iter_markers()
        )
        if not has_classification:
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_log_context() -> Generator[None, None, None]:
    """Clear structlog context variables between tests."""
    clear_context()
    yield
    clear_context()


@pytest.fixture
def clear_settings_cache() -> Generator[None, None, None]:
    """Clear the cached settings before and after a test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fake_web() -> FakeWeb:
    """Empty scripted network."""
    return FakeWeb()


@pytest.fixture
def fake_runtime(fake_web: FakeWeb) -> FakeRuntime:
    """Runtime creating FakePages over fake_web."""
    return FakeRuntime(fake_web)


@pytest.fixture
def fast_config() -> RunConfig:
    """RunConfig with no sleeps, for tests."""
    return RunConfig(
        concurrency=2,
        timeout_ms=2000,
        retries=0,
        retry_backoff_seconds=0.0,
        request_delay_seconds=0.0,
    )
