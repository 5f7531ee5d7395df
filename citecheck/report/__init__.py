"""
Run reporting.

Provides:
- Aggregator: collects per-target records from workers
- Report: summary, status histogram and sorted results of a run
"""

from citecheck.report.aggregator import (
    NO_STATUS_KEY,
    SUMMARY_KEYS,
    Aggregator,
    Report,
    VerificationRecord,
)

__all__ = [
    "Aggregator",
    "Report",
    "VerificationRecord",
    "SUMMARY_KEYS",
    "NO_STATUS_KEY",
]
