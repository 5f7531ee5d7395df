"""
Structured data extraction from loaded pages.

Provides:
- ExtractorRegistry: host-based dispatch to site extractors
- Pattern detectors for amounts, percentages, followers, DOI and access walls
"""

from citecheck.extractor.patterns import (
    AmountMatch,
    detect_access_wall,
    extract_amounts,
    extract_description,
    extract_doi,
    extract_followers,
    extract_market_amounts,
    extract_og_title,
    extract_percentages,
    extract_title,
    page_text,
)
from citecheck.extractor.registry import (
    ExtractionResult,
    ExtractorEntry,
    ExtractorKind,
    ExtractorRegistry,
    default_registry,
    host_matches,
)

__all__ = [
    # Registry
    "ExtractorKind",
    "ExtractionResult",
    "ExtractorEntry",
    "ExtractorRegistry",
    "default_registry",
    "host_matches",
    # Patterns
    "AmountMatch",
    "detect_access_wall",
    "extract_amounts",
    "extract_description",
    "extract_doi",
    "extract_followers",
    "extract_market_amounts",
    "extract_og_title",
    "extract_percentages",
    "extract_title",
    "page_text",
]
