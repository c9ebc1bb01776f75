"""ASGI applications: the static site listener and the metrics/health listener"""

import logging
import time
from email.utils import parsedate_to_datetime
from pathlib import Path
from typing import Awaitable, Callable, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.gzip import GZipMiddleware
from starlette.responses import Response
from starlette.staticfiles import StaticFiles
from starlette.types import ASGIApp

from sitepub.config import Settings
from sitepub.logs import access_logger, client_ip, format_access_line
from sitepub.server import metrics
from sitepub.server.store import FileEntry, MemoryStore, sanitize_path
from sitepub.version import get_version_info


logger = logging.getLogger(__name__)

GZIP_MIN_SIZE = 500
NOT_FOUND_TEXT = "404 page not found"

CallNext = Callable[[Request], Awaitable[Response]]


class MetricsMiddleware(BaseHTTPMiddleware):
    """Records request count and duration per sanitised path; every 404 shares one label."""

    async def dispatch(self, request: Request, call_next: CallNext) -> Response:
        path = sanitize_path(request.url.path)
        logger.debug("Processing request for: %s", path)
        start = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start
        logger.debug("Request for %s processed in %f seconds", path, duration)
        metrics.record_request(metrics.NOT_FOUND_LABEL if response.status_code == 404 else path, duration)
        return response


class AccessLogMiddleware(BaseHTTPMiddleware):
    """Appends one nginx-style line per request to the access log."""

    def __init__(self, app: ASGIApp, log_path: str):
        super().__init__(app)
        self.access_log = access_logger(log_path)

    async def dispatch(self, request: Request, call_next: CallNext) -> Response:
        response = await call_next(request)
        peer = request.client.host if request.client else None
        uri = request.url.path + (f"?{request.url.query}" if request.url.query else "")
        size = 0 if request.method == "HEAD" else int(response.headers.get("content-length", 0))
        self.access_log.info(format_access_line(
            vhost=request.headers.get("host", "-"),
            ip=client_ip(request.headers, peer),
            method=request.method,
            uri=uri,
            proto=f"HTTP/{request.scope.get('http_version', '1.1')}",
            status=response.status_code,
            size=size,
            referer=request.headers.get("referer", ""),
            user_agent=request.headers.get("user-agent", ""),
        ))
        return response


def not_modified(request: Request, entry: FileEntry) -> bool:
    """Conditional GET: If-None-Match wins; otherwise If-Modified-Since at or after load time."""
    if_none_match = request.headers.get("if-none-match")
    if if_none_match is not None:
        tags = [t.strip() for t in if_none_match.split(",")]
        return "*" in tags or entry.etag in tags
    if_modified_since = request.headers.get("if-modified-since")
    if if_modified_since:
        try:
            since = parsedate_to_datetime(if_modified_since)
        except (TypeError, ValueError):
            return False
        if since.tzinfo is None:
            return False
        return entry.mod_time <= since
    return False


def memory_handler(store: MemoryStore) -> Callable[[Request], Awaitable[Response]]:
    async def serve_from_memory(request: Request) -> Response:
        entry = store.lookup(request.url.path)
        if entry is None:
            logger.debug("Returning 404 for path: %s", sanitize_path(request.url.path))
            return PlainTextResponse(NOT_FOUND_TEXT, status_code=404)
        headers = entry.headers()
        if not_modified(request, entry):
            del headers["Content-Length"]
            return Response(status_code=304, headers=headers)
        if request.method == "HEAD":
            return Response(status_code=200, headers=headers)
        return Response(entry.content, headers=headers)
    return serve_from_memory


def _bare_app(title: str) -> FastAPI:
    return FastAPI(title=title, docs_url=None, redoc_url=None, openapi_url=None)


def create_site_app(settings: Settings, store: Optional[MemoryStore] = None) -> FastAPI:
    """Serve settings.web_root from memory (default) or straight from disk.

    Raises FileNotFoundError when the web root does not exist.
    """
    web_root = Path(settings.web_root)
    if not web_root.is_dir():
        raise FileNotFoundError(f"Web root not found: {web_root}")

    app = _bare_app(settings.app_name)
    if settings.use_memory:
        store = store if store is not None else MemoryStore.load(web_root)
        logger.info("Serving %s from memory", web_root)
        app.add_api_route("/{path:path}", memory_handler(store), methods=["GET", "HEAD"], include_in_schema=False)
    else:
        logger.info("Serving %s from the filesystem", web_root)
        app.mount("/", StaticFiles(directory=web_root, html=True), name="site")

    # add_middleware wraps outward: the last added runs first
    app.add_middleware(AccessLogMiddleware, log_path=settings.access_log)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(GZipMiddleware, minimum_size=GZIP_MIN_SIZE)
    return app


def create_metrics_app() -> FastAPI:
    app = _bare_app("sitepub metrics")

    @app.get("/metrics")
    def prometheus_metrics() -> Response:
        body, content_type = metrics.exposition()
        return Response(body, media_type=content_type)

    @app.get("/healthz")
    def healthz() -> PlainTextResponse:
        return PlainTextResponse("ok")

    @app.get("/version")
    def version() -> JSONResponse:
        logger.info("Version requested")
        return JSONResponse(get_version_info().model_dump(by_alias=True))

    return app
