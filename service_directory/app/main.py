"""
University directory gateway service.
"""

from typing import Any, Callable, Dict, Optional

import httpx
from fastapi import Request

from shared.base_service import BaseService
from shared.config import ServiceConfig

from service_directory.app.adapters.universities_client import UniversitiesClient
from service_directory.app.caching.cache_store import CacheStore
from service_directory.app.domain.query_service import (
    DirectoryQueryService,
    LookupResult,
    validate_country,
)


class DirectoryService(BaseService):
    """Directory gateway service implementation."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        *,
        clock: Optional[Callable[[], float]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__("directory", config)

        self.universities_client = UniversitiesClient(
            self.config.upstream_base_url,
            timeout=self.config.upstream_timeout_seconds,
            user_agent=self.config.upstream_user_agent,
            metrics=self.metrics,
            transport=transport,
        )
        self.cache_store = CacheStore(clock=clock)
        self.query_service = DirectoryQueryService(
            self.universities_client,
            self.cache_store,
            ttl_seconds=self.config.cache_ttl_seconds,
            metrics=self.metrics,
        )

        self._setup_directory_routes()

        # Expose service instance via app state for introspection/testing
        self.app.state.directory_service = self

    def _setup_directory_routes(self):
        """Set up directory-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": self.service_name,
                "message": "University Directory Gateway",
                "version": "1.0.0",
            }

        @self.app.get("/api/universities")
        async def search_universities(request: Request):
            """Search universities by country and optional name."""
            # Repeated ?country= values arrive as a list and fail validation
            countries = request.query_params.getlist("country")
            country: Any = countries if len(countries) > 1 else request.query_params.get("country")
            name = request.query_params.get("name")

            validate_country(country)
            result = await self.query_service.lookup_universities(country, name or None)
            return self._success(request, result, [record.to_dict() for record in result.data])

        @self.app.get("/api/countries")
        async def list_countries(request: Request):
            """List the distinct countries present in the directory."""
            result = await self.query_service.lookup_countries()
            return self._success(request, result, list(result.data))

    async def _on_shutdown(self) -> None:
        await self.universities_client.close()

    def _success(self, request: Request, result: LookupResult, data: Any) -> Dict[str, Any]:
        return {
            "status": "success",
            "data": data,
            "fromCache": result.from_cache,
            "requestId": self._request_id(request),
        }


def create_app(config: Optional[ServiceConfig] = None, **kwargs):
    """Create FastAPI application."""
    service = DirectoryService(config, **kwargs)
    return service.app


if __name__ == "__main__":
    service = DirectoryService()
    service.run()
