"""
citecheck: browser-driven URL verification and structured extraction.

Entry point for callers is verify_urls().
"""

from citecheck.scheduler.engine import VerificationEngine, verify_urls
from citecheck.utils.config import RunConfig

__version__ = "0.1.0"

__all__ = [
    "RunConfig",
    "VerificationEngine",
    "verify_urls",
]
