"""Single navigation attempt for URL verification."""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Any
from urllib.parse import urlparse

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from citecheck.crawler.classifier import ErrorKind, classify_error
from citecheck.crawler.fetch_result import FetchOutcome
from citecheck.utils.errors import NavigationError
from citecheck.utils.logging import get_logger

if TYPE_CHECKING:
    from playwright.async_api import Page

    from citecheck.utils.config import WaitUntil

logger = get_logger(__name__)

# Extra time given to Playwright's own timeout before the asyncio deadline fires
DEADLINE_GRACE_SECONDS = 1.0


def _host(url: str | None) -> str | None:
    if not url:
        return None
    host = urlparse(url).hostname
    if host is None:
        return None
    return host.removeprefix("www.")


def detect_cross_host_redirect(url: str, final_url: str | None) -> str | None:
    """Return final_url if the browser ended up on a different host.

    A leading "www." is ignored on both sides.

    Args:
        url: Requested URL.
        final_url: Page URL after redirects.

    Returns:
        final_url when hosts differ, otherwise None.
    """
    orig, final = _host(url), _host(final_url)
    if orig and final and orig != final:
        return final_url
    return None


async def _goto(page: Page, url: str, timeout_ms: int, wait_until: WaitUntil) -> Any:
    response = await page.goto(url, timeout=timeout_ms, wait_until=wait_until)
    if response is None:
        raise NavigationError("Navigation produced no response", details={"url": url})
    return response


async def _page_title(page: Page, timeout_ms: int) -> str | None:
    try:
        title = await asyncio.wait_for(page.title(), timeout=timeout_ms / 1000)
    except Exception as e:
        logger.debug("Failed to read page title", error=str(e) or type(e).__name__)
        return None
    return title or None


async def navigate(
    page: Page,
    url: str,
    *,
    timeout_ms: int,
    wait_until: WaitUntil = "domcontentloaded",
    retry_count: int = 0,
) -> FetchOutcome:
    """Navigate a page to url and record what happened.

    Never raises for per-target failures: every error is converted into
    a FetchOutcome with error text and ErrorKind.

    Args:
        page: Page owned by the caller for the duration of the attempt.
        url: Target URL.
        timeout_ms: Hard deadline for this attempt.
        wait_until: Load state that completes the navigation.
        retry_count: Number of attempts made before this one.

    Returns:
        FetchOutcome for this attempt.
    """
    start_time = time.monotonic()

    def elapsed() -> int:
        return int((time.monotonic() - start_time) * 1000)

    try:
        response = await asyncio.wait_for(
            _goto(page, url, timeout_ms, wait_until),
            timeout=timeout_ms / 1000 + DEADLINE_GRACE_SECONDS,
        )
    except (PlaywrightTimeoutError, TimeoutError) as e:
        logger.info("Navigation timeout", url=url[:100], timeout_ms=timeout_ms)
        return FetchOutcome.failure(
            url,
            str(e) or f"Navigation timeout of {timeout_ms} ms exceeded",
            ErrorKind.NAVIGATION_TIMEOUT,
            elapsed_ms=elapsed(),
            retry_count=retry_count,
        )
    except (PlaywrightError, NavigationError) as e:
        kind = classify_error(str(e))
        logger.info("Navigation failed", url=url[:100], error_kind=kind.value, error=str(e)[:200])
        return FetchOutcome.failure(
            url, str(e), kind, elapsed_ms=elapsed(), retry_count=retry_count
        )
    except Exception as e:
        kind = classify_error(str(e))
        logger.warning(
            "Unexpected navigation error",
            url=url[:100],
            error_kind=kind.value,
            error=str(e)[:200],
        )
        return FetchOutcome.failure(
            url, str(e) or type(e).__name__, kind, elapsed_ms=elapsed(), retry_count=retry_count
        )

    status = response.status
    status_text = response.status_text or None
    title = await _page_title(page, timeout_ms)
    final_url = page.url or url

    outcome = FetchOutcome(
        url=url,
        http_status=status,
        status_text=status_text,
        page_title=title,
        elapsed_ms=elapsed(),
        retry_count=retry_count,
        final_url=final_url,
        redirect_to=detect_cross_host_redirect(url, final_url),
    )

    logger.info(
        "Navigation complete",
        url=url[:100],
        status=status,
        elapsed_ms=outcome.elapsed_ms,
    )
    return outcome
