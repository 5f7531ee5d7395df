"""
Playwright-based browser runtime for citecheck.

Owns the single Chromium process shared by all sessions of a run and
creates isolated browser contexts for the session pool.

Features:
- Headless Chromium launch with sandbox/GPU flags suitable for containers
- Per-context spoofed user agent and fixed viewport
- Resource blocking by request type (images, fonts, stylesheets, media)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from citecheck.utils.errors import RuntimeInitError
from citecheck.utils.logging import get_logger

if TYPE_CHECKING:
    from playwright.async_api import Browser, BrowserContext, Page, Playwright, Route

    from citecheck.utils.config import RunConfig

logger = get_logger(__name__)


class PlaywrightRuntime:
    """
    Browser runtime backed by Playwright Chromium.

    Example:
        runtime = PlaywrightRuntime(config)
        await runtime.start()
        context, page = await runtime.new_page()
        ...
        await runtime.close()
    """

    def __init__(self, config: RunConfig) -> None:
        """Initialize runtime.

        Args:
            config: Run configuration (identity, viewport, blocking policy).
        """
        self._config = config
        self._blocked_types = frozenset(config.blocked_resource_types)
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._contexts: list[BrowserContext] = []

    async def start(self) -> None:
        """Start Playwright and launch the browser.

        Raises:
            RuntimeInitError: If Playwright is missing or the browser fails to launch.
        """
        if self._browser is not None:
            return

        try:
            from playwright.async_api import async_playwright
        except ImportError as e:
            raise RuntimeInitError("Playwright not installed") from e

        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(
                headless=self._config.headless,
                args=list(self._config.launch_args),
            )
        except Exception as e:
            logger.error("Browser launch failed", error=str(e))
            await self.close()
            raise RuntimeInitError(
                f"Failed to launch Chromium: {e}. Is it installed? Run: playwright install chromium",
                details={"headless": self._config.headless},
            ) from e

        logger.info(
            "Browser runtime started",
            headless=self._config.headless,
            version=self._browser.version,
        )

    async def _block_route(self, route: Route) -> None:
        """Abort heavy resources, let everything else through."""
        if route.request.resource_type in self._blocked_types:
            await route.abort()
        else:
            await route.continue_()

    async def new_page(self) -> tuple[Any, Any]:
        """Create an isolated context and its page.

        Returns:
            Tuple of (context, page).

        Raises:
            RuntimeError: If the runtime has not been started.
        """
        if self._browser is None:
            raise RuntimeError("Browser runtime is not started")

        context: BrowserContext = await self._browser.new_context(
            user_agent=self._config.user_agent,
            viewport={
                "width": self._config.viewport_width,
                "height": self._config.viewport_height,
            },
        )
        if self._blocked_types:
            await context.route("**/*", self._block_route)

        page: Page = await context.new_page()
        page.set_default_navigation_timeout(self._config.timeout_ms)
        self._contexts.append(context)

        logger.debug("Browser context created", contexts=len(self._contexts))
        return context, page

    async def close(self) -> None:
        """Close all contexts, the browser and Playwright."""
        for context in self._contexts:
            try:
                await context.close()
            except Exception as e:
                logger.debug("Error closing context", error=str(e))
        self._contexts.clear()

        if self._browser is not None:
            try:
                await self._browser.close()
            except Exception as e:
                logger.debug("Error closing browser", error=str(e))
            self._browser = None

        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as e:
                logger.debug("Error stopping Playwright", error=str(e))
            self._playwright = None

        logger.debug("Browser runtime closed")

    @property
    def is_started(self) -> bool:
        """True once the browser has been launched."""
        return self._browser is not None
