"""
Domain layer for the Directory Service.
"""

from .normalizer import UniversityRecord, extract_distinct_countries, transform
from .query_service import COUNTRIES_CACHE_KEY, DirectoryQueryService, LookupResult

__all__ = [
    "COUNTRIES_CACHE_KEY",
    "DirectoryQueryService",
    "LookupResult",
    "UniversityRecord",
    "extract_distinct_countries",
    "transform",
]
