"""
Verification engine.

Runs one verification pass over a list of URLs:

1. Build the Frontier (normalize, skip non-http, deduplicate)
2. Start a SessionPool of P = min(concurrency, targets) sessions
3. Spawn P worker tasks and wait for all of them
4. Finalize the Report, then tear the pool down

Only InputError and RuntimeInitError leave the engine; every per-target
failure ends up as a record in the Report.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Iterable
from typing import TYPE_CHECKING

from citecheck.crawler.browser_runtime import PlaywrightRuntime
from citecheck.crawler.frontier import Frontier
from citecheck.crawler.session_pool import SessionPool
from citecheck.extractor.registry import default_registry
from citecheck.report.aggregator import Aggregator
from citecheck.scheduler.worker import verification_worker
from citecheck.utils.config import RunConfig
from citecheck.utils.errors import InputError, RuntimeInitError
from citecheck.utils.logging import get_logger

if TYPE_CHECKING:
    from citecheck.crawler.session_pool import BrowserRuntime
    from citecheck.extractor.registry import ExtractorRegistry
    from citecheck.report.aggregator import Report

logger = get_logger(__name__)


class VerificationEngine:
    """Concurrent URL verification over a browser session pool.

    Example:
        engine = VerificationEngine(RunConfig(concurrency=4, retries=1))
        report = await engine.run(["https://example.com/", "https://example.org/"])
        report.summary["ok"]
    """

    def __init__(
        self,
        config: RunConfig | None = None,
        runtime: BrowserRuntime | None = None,
        registry: ExtractorRegistry | None = None,
    ) -> None:
        """Initialize engine.

        Args:
            config: Run configuration. Defaults to RunConfig().
            runtime: Browser runtime; a PlaywrightRuntime is created per run if None.
            registry: Extractor registry; default_registry() if None.
        """
        self._config = config or RunConfig()
        self._runtime = runtime
        self._registry = registry

    @property
    def config(self) -> RunConfig:
        """Run configuration."""
        return self._config

    async def run(self, urls: Iterable[str]) -> Report:
        """Verify every URL and build the Report.

        Args:
            urls: Candidate URLs.

        Returns:
            Report with one record per target.

        Raises:
            InputError: If no usable http(s) URL remains.
            RuntimeInitError: If the browser runtime or session pool cannot start.
        """
        config = self._config
        urls = list(urls)
        frontier = Frontier(urls, deduplicate=config.deduplicate)

        if frontier.total == 0:
            logger.error("No verifiable targets", received=len(urls))
            raise InputError(
                "No valid http(s) URLs to verify",
                details={"received": len(urls)},
            )

        num_workers = min(config.concurrency, frontier.total)
        runtime = self._runtime or PlaywrightRuntime(config)
        registry = (self._registry or default_registry()) if config.extract else None

        pool = SessionPool(runtime, size=num_workers)
        try:
            await pool.start()
        except RuntimeInitError as e:
            logger.error("Session pool failed to start", error=e.message)
            raise

        logger.info(
            "Verification started",
            targets=frontier.total,
            workers=num_workers,
            retries=config.retries,
            extract=config.extract,
        )
        start_time = time.monotonic()
        aggregator = Aggregator()

        try:
            tasks = [
                asyncio.create_task(
                    verification_worker(i, frontier, pool, registry, config, aggregator),
                    name=f"verification_worker_{i}",
                )
                for i in range(num_workers)
            ]
            await asyncio.gather(*tasks)
            report = aggregator.finalize(expected=frontier.total)
        finally:
            await pool.close()

        logger.info(
            "Verification complete",
            total=report.total,
            elapsed_ms=int((time.monotonic() - start_time) * 1000),
        )
        return report


async def verify_urls(
    urls: Iterable[str],
    config: RunConfig | None = None,
    *,
    runtime: BrowserRuntime | None = None,
    registry: ExtractorRegistry | None = None,
) -> Report:
    """Verify URLs and return the Report.

    Convenience wrapper around VerificationEngine.run().

    Args:
        urls: Candidate URLs.
        config: Run configuration. Defaults to RunConfig().
        runtime: Browser runtime override (tests, custom backends).
        registry: Extractor registry override.

    Returns:
        Report with one record per target.
    """
    engine = VerificationEngine(config, runtime=runtime, registry=registry)
    return await engine.run(urls)
