"""
Base service class for University Directory Gateway services.
"""

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional
import time

from shared.config import ServiceConfig, get_config
from shared.logging import configure_logging, get_logger, get_request_id, set_request_id
from shared.metrics import get_metrics_collector
from shared.errors import DirectoryError, ErrorResponse, status_label


REQUEST_ID_HEADER = "X-Request-ID"


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and a Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class BaseService:
    """Base service class with common functionality."""

    def __init__(self, service_name: str, config: Optional[ServiceConfig] = None):
        self.service_name = service_name
        self.config = config or get_config(service_name)
        self.port = self.config.port

        configure_logging(service_name, self.config.log_level)
        self.logger = get_logger(f"{service_name}.service")
        self.metrics = get_metrics_collector(service_name)

        self.app = self._create_app()
        self._setup_middleware()
        self._setup_routes()
        self._setup_exception_handlers()

    def _create_app(self) -> FastAPI:
        """Create FastAPI application."""

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            self.logger.info("Service starting", port=self.port, env=self.config.env)
            yield
            await self._on_shutdown()
            self.logger.info("Service stopped")

        return FastAPI(
            title=f"{self.service_name.title()} Service",
            description=f"University Directory Gateway - {self.service_name.title()} Service",
            version="1.0.0",
            docs_url="/docs" if self.config.env == "local" else None,
            redoc_url="/redoc" if self.config.env == "local" else None,
            lifespan=lifespan,
        )

    async def _on_shutdown(self) -> None:
        """Release service resources. Override in subclasses."""

    def _setup_middleware(self):
        """Set up middleware."""

        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=self.config.cors_allowed_origins,
            allow_methods=["GET"],
            allow_headers=["*"],
            expose_headers=[REQUEST_ID_HEADER],
        )

        @self.app.middleware("http")
        async def request_context(request: Request, call_next):
            # A fresh id per inbound call, never derived from cache state
            request_id = set_request_id()
            request.state.request_id = request_id
            start_time = time.perf_counter()

            try:
                response = await call_next(request)
            except Exception:
                # Unhandled errors are rendered as 500 further out
                self._record_request(request, 500, time.perf_counter() - start_time)
                raise

            response.headers[REQUEST_ID_HEADER] = request_id
            self._record_request(request, response.status_code, time.perf_counter() - start_time)
            return response

    def _record_request(self, request: Request, status_code: int, duration: float) -> None:
        """Record request metrics and write the access-log line."""
        self.metrics.record_http_request(
            method=request.method,
            endpoint=request.url.path,
            status_code=status_code,
            duration=duration
        )

        self.logger.info(
            "HTTP request",
            method=request.method,
            path=request.url.path,
            query=str(request.url.query),
            status_code=status_code,
            duration_ms=round(duration * 1000, 2)
        )

    def _setup_routes(self):
        """Set up common routes."""

        @self.app.get("/health")
        async def health_check(request: Request):
            """Health check endpoint."""
            return {
                "status": "success",
                "message": "Server is running",
                "timestamp": utc_timestamp(),
                "requestId": self._request_id(request),
            }

        @self.app.get("/metrics")
        async def metrics_endpoint():
            """Prometheus metrics endpoint."""
            return Response(
                content=generate_latest(self.metrics.registry),
                media_type=CONTENT_TYPE_LATEST
            )

    def _setup_exception_handlers(self):
        """Render every failure as {status, message, requestId}."""

        @self.app.exception_handler(DirectoryError)
        async def directory_error_handler(request: Request, exc: DirectoryError):
            log = self.logger.warning if exc.status_code < 500 else self.logger.error
            log(
                "Request failed",
                code=exc.code,
                message=exc.message,
                status_code=exc.status_code,
                details=exc.details
            )
            self.metrics.record_error(exc.code)
            return self._error_response(exc.status_code, exc.to_response(self._request_id(request)))

        @self.app.exception_handler(StarletteHTTPException)
        async def http_exception_handler(request: Request, exc: StarletteHTTPException):
            body = ErrorResponse(
                status=status_label(exc.status_code),
                message=str(exc.detail),
                request_id=self._request_id(request),
            )
            return self._error_response(exc.status_code, body)

        @self.app.exception_handler(RequestValidationError)
        async def validation_exception_handler(request: Request, exc: RequestValidationError):
            self.logger.warning("Request validation failed", errors=exc.errors())
            self.metrics.record_error("INVALID_ARGUMENT")
            body = ErrorResponse(
                status="fail",
                message="Invalid request parameters",
                request_id=self._request_id(request),
            )
            return self._error_response(400, body)

        @self.app.exception_handler(Exception)
        async def general_exception_handler(request: Request, exc: Exception):
            self.logger.error("Unhandled exception", error=str(exc), exc_info=exc)
            self.metrics.record_error("INTERNAL_ERROR")
            body = ErrorResponse(
                status="error",
                message="Internal server error",
                request_id=self._request_id(request),
            )
            return self._error_response(500, body)

    @staticmethod
    def _request_id(request: Request) -> Optional[str]:
        return getattr(request.state, "request_id", None) or get_request_id()

    @staticmethod
    def _error_response(status_code: int, body: ErrorResponse) -> JSONResponse:
        headers = {REQUEST_ID_HEADER: body.request_id} if body.request_id else None
        return JSONResponse(
            status_code=status_code,
            content=body.model_dump(by_alias=True),
            headers=headers,
        )

    def run(self):
        """Run the service."""
        import uvicorn
        uvicorn.run(
            self.app,
            host=self.config.host,
            port=self.config.port,
            log_level=self.config.log_level.lower()
        )
