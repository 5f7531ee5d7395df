"""
Run scheduling for citecheck.

Provides:
- VerificationEngine / verify_urls: one verification pass over a URL list
- verification_worker / process_target: per-worker loop and retry policy
"""

from citecheck.scheduler.engine import VerificationEngine, verify_urls
from citecheck.scheduler.worker import process_target, verification_worker

__all__ = [
    "VerificationEngine",
    "verify_urls",
    "process_target",
    "verification_worker",
]
