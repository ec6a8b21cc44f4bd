"""
University Directory Gateway service package.

The gateway fronts the public university directory, providing:
- Query validation and cache-key derivation
- An in-process, time-bounded cache of normalized results
- Translation of upstream failures into stable HTTP error responses

Structure:
- app.main: FastAPI app, routes, and service wiring.
- app.adapters: HTTP client for the upstream directory.
- app.caching: In-memory cache store.
- app.domain: Record normalization and the query service.
"""
