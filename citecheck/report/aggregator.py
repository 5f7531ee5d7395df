"""
Aggregation of per-target records into the final Report.

Records arrive in completion order from concurrent workers. finalize()
produces the summary counts, the status histogram and the sorted result
list, and stamps the report once.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from citecheck.crawler.classifier import Bucket
from citecheck.utils.logging import get_logger

if TYPE_CHECKING:
    from citecheck.crawler.fetch_result import FetchOutcome
    from citecheck.extractor.registry import ExtractionResult

logger = get_logger(__name__)

SUMMARY_KEYS = tuple(bucket.summary_key for bucket in Bucket)
NO_STATUS_KEY = "0"


@dataclass(frozen=True)
class VerificationRecord:
    """Final outcome of one target, with its extraction if one ran."""

    outcome: FetchOutcome
    extraction: ExtractionResult | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        result = self.outcome.to_dict()
        if self.extraction is not None:
            result["extraction"] = self.extraction.to_dict()
        return result


def _sort_key(record: VerificationRecord) -> tuple[int, int]:
    status = record.outcome.http_status
    # Absent status sorts after every real status
    return (1, 0) if not status else (0, status)


@dataclass(frozen=True)
class Report:
    """Result of one verification run."""

    summary: dict[str, int]
    by_status: dict[str, int]
    results: list[VerificationRecord]
    total: int
    generated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def timestamp(self) -> str:
        """ISO-8601 UTC time the report was finalized."""
        return self.generated_at.isoformat()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "summary": dict(self.summary),
            "byStatus": dict(self.by_status),
            "results": [r.to_dict() for r in self.results],
            "total": self.total,
            "timestamp": self.timestamp,
        }


class Aggregator:
    """Collects records and builds the Report.

    add() is called from worker coroutines on a single event loop, so
    appends never interleave.
    """

    def __init__(self) -> None:
        self._records: list[VerificationRecord] = []

    def add(self, outcome: FetchOutcome, extraction: ExtractionResult | None = None) -> None:
        """Record the final outcome of a target.

        Args:
            outcome: Final FetchOutcome.
            extraction: ExtractionResult, if extraction ran.
        """
        self._records.append(VerificationRecord(outcome=outcome, extraction=extraction))

    def __len__(self) -> int:
        return len(self._records)

    def finalize(self, expected: int | None = None) -> Report:
        """Build the Report.

        Args:
            expected: Number of targets in the run. Checked against the
                number of records when given.

        Returns:
            Report with summary, histogram and sorted results.

        Raises:
            RuntimeError: If expected is given and does not match.
        """
        if expected is not None and expected != len(self._records):
            logger.error(
                "Record count mismatch",
                expected=expected,
                recorded=len(self._records),
            )
            raise RuntimeError(
                f"Expected {expected} records, got {len(self._records)}"
            )

        summary = dict.fromkeys(SUMMARY_KEYS, 0)
        by_status: Counter[str] = Counter()
        for record in self._records:
            summary[record.outcome.bucket.summary_key] += 1
            by_status[str(record.outcome.http_status or NO_STATUS_KEY)] += 1

        report = Report(
            summary=summary,
            by_status=dict(by_status),
            results=sorted(self._records, key=_sort_key),
            total=len(self._records),
        )

        logger.info("Report finalized", total=report.total, **summary)
        return report
