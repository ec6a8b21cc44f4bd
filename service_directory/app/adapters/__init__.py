"""
Adapters package for the Directory Service.

Contains the HTTP client wrapper for the upstream university directory.
The adapter encapsulates:

- Base URL, headers, and request shapes
- The request deadline
- Error classification that maps to shared errors

Adapters never retry; retry policy belongs to callers.
"""

from .universities_client import UniversitiesClient

__all__ = ["UniversitiesClient"]
