import logging
import uuid
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from .config import Settings, get_settings
from .db import close_db, init_db
from .errors import ApiError, api_error_handler
from .otel import configure_otel
from .ratelimit import SlidingWindowLimiter, rate_limit_middleware
from .routes import get_book_store, router as books_router

__all__ = ["app", "create_app", "get_book_store"]

request_logger = logging.getLogger("books_api.requests")

SECURITY_HEADERS = {
    "Strict-Transport-Security": "max-age=63072000; includeSubDomains; preload",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Permissions-Policy": "geolocation=(), microphone=(), camera=()",
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'; base-uri 'none'",
    "Cross-Origin-Resource-Policy": "same-origin",
}
# Swagger UI and ReDoc load their assets from a CDN.
DOCS_PATHS = ("/docs", "/redoc")

TAGS_METADATA = [
    {"name": "Books", "description": "Book management"},
    {"name": "health", "description": "Liveness probe"},
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        await init_db()
    except PyMongoError as exc:
        raise RuntimeError("Failed to connect to the configured MongoDB") from exc
    try:
        yield
    finally:
        close_db()


health_router = APIRouter(tags=["health"])


@health_router.get("/health")
async def health() -> dict:
    return {"status": "ok"}


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.version,
        description="A simple Books API with MongoDB persistence.",
        openapi_tags=TAGS_METADATA,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.add_exception_handler(ApiError, api_error_handler)
    app.include_router(health_router)
    app.include_router(books_router)

    if settings.allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.allowed_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            allow_headers=["Content-Type", "X-Request-ID"],
        )

    @app.middleware("http")
    async def security_headers(request, call_next):
        if settings.require_https:
            forwarded_proto = request.headers.get("x-forwarded-proto", "")
            scheme = forwarded_proto.lower() or request.url.scheme
            if scheme != "https":
                return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"message": "HTTPS required"})

        response = await call_next(request)
        for header, value in SECURITY_HEADERS.items():
            if header == "Content-Security-Policy" and request.url.path.startswith(DOCS_PATHS):
                continue
            response.headers.setdefault(header, value)
        return response

    limiter = SlidingWindowLimiter(
        max_requests=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
    app.middleware("http")(rate_limit_middleware(limiter))

    @app.middleware("http")
    async def request_logging_middleware(request, call_next):
        request_logger.info("request.start", extra={"path": request.url.path, "method": request.method})
        response = await call_next(request)
        request_logger.info(
            "request.end",
            extra={"path": request.url.path, "method": request.method, "status": response.status_code},
        )
        return response

    @app.middleware("http")
    async def request_id_middleware(request, call_next):
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    if settings.otel_enabled:
        configure_otel(app, service_name=settings.app_name.lower().replace(" ", "-"))
    return app


app = create_app()
