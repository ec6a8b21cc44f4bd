"""
Shared utilities for the University Directory Gateway.

This package aggregates common building blocks consumed by services:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request and trace correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- base_service: FastAPI scaffolding (middleware, health, error rendering)

Do not import from service packages into shared/.
"""
