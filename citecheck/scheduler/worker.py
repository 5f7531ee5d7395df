"""
Verification worker.

Each worker drains the shared Frontier until it is empty. For every
target it borrows a session per attempt, navigates, classifies, retries
retryable failures with a fixed backoff, runs extraction on the final
reachable attempt, and hands exactly one record to the Aggregator.

Retry policy:
- Only outcomes without an HTTP status are retried
- Attempt budget is 1 + retries
- The session is released before the backoff sleep
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from citecheck.crawler.classifier import ErrorKind, is_reachable, is_retryable
from citecheck.crawler.fetch_result import FetchOutcome
from citecheck.crawler.navigation import navigate
from citecheck.utils.logging import LogContext, get_logger

if TYPE_CHECKING:
    from citecheck.crawler.frontier import Frontier, Target
    from citecheck.crawler.session_pool import SessionPool
    from citecheck.extractor.registry import ExtractionResult, ExtractorRegistry
    from citecheck.report.aggregator import Aggregator
    from citecheck.utils.config import RunConfig

logger = get_logger(__name__)


async def process_target(
    target: Target,
    pool: SessionPool,
    registry: ExtractorRegistry | None,
    config: RunConfig,
) -> tuple[FetchOutcome, ExtractionResult | None]:
    """Verify one target, retrying as allowed.

    Args:
        target: Target to verify.
        pool: Started session pool.
        registry: Extractor registry; None disables extraction.
        config: Run configuration.

    Returns:
        Tuple of (final FetchOutcome, ExtractionResult or None). An
        unexpected error during an attempt ends the target as
        failed/unknown with retryCount set to the attempts already made.
    """
    attempt = 0

    while True:
        extraction: ExtractionResult | None = None
        try:
            session = await pool.acquire()
            try:
                outcome = await navigate(
                    session.page,
                    target.url,
                    timeout_ms=config.timeout_ms,
                    wait_until=config.wait_until,
                    retry_count=attempt,
                )
                retry = is_retryable(outcome) and attempt + 1 < config.max_attempts

                if not retry and registry is not None and config.extract and is_reachable(outcome):
                    extraction = await registry.extract(
                        session.page, target.url, timeout_ms=config.timeout_ms
                    )
            finally:
                pool.release(session)
        except Exception as e:
            # Attempts already made still count toward retryCount
            logger.error("Attempt failed", attempt=attempt + 1, error=str(e), exc_info=True)
            outcome = FetchOutcome.failure(
                target.url, str(e) or type(e).__name__, ErrorKind.UNKNOWN, retry_count=attempt
            )
            return outcome, None

        if not retry:
            return outcome, extraction

        attempt += 1
        logger.info(
            "Retrying target",
            attempt=attempt + 1,
            max_attempts=config.max_attempts,
            error_kind=outcome.error_kind.value if outcome.error_kind else None,
            backoff_seconds=config.retry_backoff_seconds,
        )
        if config.retry_backoff_seconds > 0:
            await asyncio.sleep(config.retry_backoff_seconds)


async def verification_worker(
    worker_id: int,
    frontier: Frontier,
    pool: SessionPool,
    registry: ExtractorRegistry | None,
    config: RunConfig,
    aggregator: Aggregator,
) -> int:
    """Worker coroutine draining the frontier.

    Per-target exceptions are contained: the target is recorded as a
    failed outcome and the worker moves on.

    Args:
        worker_id: Identifier for this worker (0 to P-1).
        frontier: Shared target queue.
        pool: Started session pool.
        registry: Extractor registry; None disables extraction.
        config: Run configuration.
        aggregator: Record sink.

    Returns:
        Number of targets this worker processed.
    """
    processed = 0
    logger.debug("Verification worker started", worker_id=worker_id)

    while True:
        target = frontier.pop()
        if target is None:
            break

        # Politeness delay between consecutive targets of this worker
        if processed and config.request_delay_seconds > 0:
            await asyncio.sleep(config.request_delay_seconds)

        with LogContext(worker_id=worker_id, url=target.url[:100]):
            extraction: ExtractionResult | None = None
            try:
                outcome, extraction = await process_target(target, pool, registry, config)
            except Exception as e:
                logger.error("Target processing failed", error=str(e), exc_info=True)
                outcome = FetchOutcome.failure(
                    target.url, str(e) or type(e).__name__, ErrorKind.UNKNOWN
                )

            aggregator.add(outcome, extraction)
            logger.info(
                "Target verified",
                bucket=outcome.bucket.value,
                status=outcome.http_status,
                retry_count=outcome.retry_count,
                extracted=extraction is not None and extraction.success,
            )

        processed += 1

    logger.debug("Verification worker finished", worker_id=worker_id, processed=processed)
    return processed
