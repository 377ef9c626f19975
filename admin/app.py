"""
FastAPI application factory for the store backoffice.

Usage:
    python main.py                                   # http://localhost:8080
    STORE_API_URL=http://store:9090/api python main.py

The app holds one StoreClient and one QueryCache for the lifetime of the
process (on ``app.state``); both are released when the app shuts down.
HTML pages render list and detail views from cached reads; the JSON
``/actions`` endpoints run form submissions and deletes, which invalidate
the cache before they respond.

Logging: one stream handler, text by default or newline-delimited JSON with
APP_LOG_FORMAT=json. Every request is logged with a short request id that is
also returned in the X-Request-ID header.
"""

import json
import logging
import time
import uuid
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.templating import Jinja2Templates

from admin.models import ErrorResponse
from admin.routes import actions, pages
from backoffice.queries import StoreService
from client.resources import StoreClient
from store.errors import (
    FormValidationError,
    OperationFailed,
    ReferenceNotFound,
    UnknownResource,
)
from utils.cache import FetchTimeoutError, QueryCache
from utils.config import AppConfig
from utils.formatting import format_order_date, format_price

# ── Configuration ─────────────────────────────────────────────────────────────
_cfg = AppConfig.from_env()

_TEMPLATES_DIR = Path(__file__).parent.parent / "templates"

# ── Structured JSON logging ───────────────────────────────────────────────────


class _JsonFormatter(logging.Formatter):
    """Emit log records as newline-delimited JSON."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        # Merge extra fields added via logger.info("...", extra={...})
        for key in ("method", "path", "status", "duration_ms", "request_id"):
            if hasattr(record, key):
                data[key] = getattr(record, key)
        if record.exc_info:
            data["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(data)


def configure_logging(cfg: AppConfig) -> None:
    handler = logging.StreamHandler()
    if cfg.log_format == "json":
        handler.setFormatter(_JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        )
    level = getattr(logging, str(cfg.log_level).upper(), logging.INFO)
    logging.basicConfig(handlers=[handler], level=level, force=True)


_logger = logging.getLogger("store_backoffice")


def _error(status_code: int, error: str, detail: str | None = None,
           issues: list | None = None) -> JSONResponse:
    body = ErrorResponse(error=error, detail=detail, issues=issues, status_code=status_code)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


# ── Lifecycle ─────────────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log the backend in use on startup; drop the cache and session on shutdown."""
    service: StoreService = app.state.service
    _logger.info("backoffice started against %s", service.client.base_url)
    yield
    service.cache.clear()
    if app.state.owns_client:
        service.client.close()
    _logger.info("backoffice stopped")


def create_app(config: AppConfig | None = None,
               client: StoreClient | None = None,
               cache: QueryCache | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Settings (default: read from the environment).
        client: Backend client to use instead of building one from
            ``config`` (tests pass a client over a fake session). A client
            passed in is not closed on shutdown.
        cache: Query cache to use (default: a new empty cache).

    Returns:
        Configured FastAPI application instance.
    """
    cfg = config or _cfg
    configure_logging(cfg)
    _logger.debug("settings: %s", cfg.to_dict())

    app = FastAPI(
        title="Store Backoffice",
        summary="Administrative UI for the store's products, accounts and orders.",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url=None,
        openapi_tags=[
            {"name": "pages", "description": "HTML list pages and detail partials."},
            {"name": "actions", "description": "Form submissions, deletes and cache control."},
            {"name": "meta", "description": "Health check."},
        ],
    )

    app.state.config = cfg
    app.state.owns_client = client is None
    if client is None:
        client = StoreClient.from_config(cfg)
    if cache is None:
        cache = QueryCache(fetch_timeout=cfg.cache_fetch_timeout)
    app.state.service = StoreService(client, cache)

    # ── Request logging middleware ────────────────────────────────────────────

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log each request and tag the response with a request id."""
        request_id = str(uuid.uuid4())[:8]
        start = time.monotonic()
        path = request.url.path

        response = await call_next(request)
        duration_ms = (time.monotonic() - start) * 1000
        response.headers["X-Request-ID"] = request_id

        if cfg.log_format == "json":
            _logger.info(
                "request",
                extra={
                    "method": request.method,
                    "path": path,
                    "status": response.status_code,
                    "duration_ms": round(duration_ms, 1),
                    "request_id": request_id,
                },
            )
        else:
            _logger.info(
                "method=%s path=%s status=%d duration_ms=%.1f rid=%s",
                request.method, path, response.status_code, duration_ms, request_id,
            )
        return response

    # ── Error handling ────────────────────────────────────────────────────────

    @app.exception_handler(FormValidationError)
    async def validation_error_handler(request: Request, exc: FormValidationError):
        _logger.info("validation failed on %s: fields=%s", request.url.path,
                     ",".join(exc.result.fields_with_errors()))
        return _error(422, "Validation failed", detail=exc.result.summary_text(),
                      issues=[i.to_dict() for i in exc.result.issues])

    @app.exception_handler(ReferenceNotFound)
    async def reference_error_handler(request: Request, exc: ReferenceNotFound):
        return _error(409, "Reference not found", detail=str(exc))

    @app.exception_handler(OperationFailed)
    async def operation_failed_handler(request: Request, exc: OperationFailed):
        _logger.warning("operation failed: %s (status=%s reason=%s)",
                        exc, exc.status_code, exc.reason)
        return _error(502, "Operation failed", detail=str(exc))

    @app.exception_handler(FetchTimeoutError)
    async def fetch_timeout_handler(request: Request, exc: FetchTimeoutError):
        return _error(504, "Backend read timed out", detail=str(exc))

    @app.exception_handler(UnknownResource)
    async def unknown_resource_handler(request: Request, exc: UnknownResource):
        return _error(400, "Unknown resource", detail=str(exc))

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """Catch unhandled exceptions and return JSON instead of HTML traceback."""
        _logger.exception("unhandled error on %s", request.url.path)
        return _error(500, "Internal server error", detail=str(exc))

    # ── Health check ──────────────────────────────────────────────────────────

    @app.get("/health", tags=["meta"], summary="Health check")
    def health(request: Request):
        """Liveness plus query cache statistics. Makes no backend call."""
        service: StoreService = request.app.state.service
        return {
            "status": "ok",
            "backend": service.client.base_url,
            "cache": service.cache.stats(),
        }

    # ── Routers + Jinja2 templates ────────────────────────────────────────────

    templates = Jinja2Templates(directory=str(_TEMPLATES_DIR))
    templates.env.filters["fmt_price"] = format_price
    templates.env.filters["fmt_date"] = format_order_date
    pages.set_templates(templates)

    app.include_router(pages.router)
    app.include_router(actions.router)

    return app


# Singleton instance for uvicorn
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "admin.app:app",
        host=_cfg.api_host,
        port=_cfg.api_port,
        reload=True,
        log_level="info",
    )
