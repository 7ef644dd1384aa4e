"""FastAPI application entry point."""

import traceback
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager
from typing import AsyncGenerator
from uuid import uuid4

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from reelgen import __version__
from reelgen.api.routes import generation, health, metadata
from reelgen.config import get_settings, settings
from reelgen.errors import ReelgenError
from reelgen.logging import bound_context, get_logger, setup_logging

# Setup logging
setup_logging()
logger = get_logger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Credentials": "true",
    "Access-Control-Allow-Methods": "GET,OPTIONS,POST",
    "Access-Control-Allow-Headers": (
        "Authorization, Content-Type, X-User-Id, X-Request-Id, X-Requested-With, Accept"
    ),
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    logger.info("application_starting", version=__version__, environment=settings.environment)

    # Startup: verify database connection
    try:
        from reelgen.db.session import check_connection

        check_connection()
        logger.info("database_connected")
    except Exception as e:
        logger.error("database_connection_failed", error=str(e))
        # Don't raise - let health checks report the issue

    yield

    logger.info("application_shutting_down")


app = FastAPI(
    title="Reelgen",
    description="Short-form AI video generation and asset processing API",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=[
        "Authorization",
        "Content-Type",
        "X-User-Id",
        "X-Request-Id",
        "X-Requested-With",
        "Accept",
    ],
)


@app.middleware("http")
async def answer_options(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
    """Answer every OPTIONS request with 200 and permissive CORS headers."""
    if request.method == "OPTIONS":
        return Response(status_code=status.HTTP_200_OK, headers=CORS_HEADERS)
    return await call_next(request)


@app.middleware("http")
async def bind_request_id(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Tag the request's log lines with an ``X-Request-Id`` (taken from the caller or generated)."""
    request_id = request.headers.get("X-Request-Id") or uuid4().hex
    with bound_context(request_id=request_id, path=request.url.path):
        response = await call_next(request)
    response.headers["X-Request-Id"] = request_id
    return response


def error_response(
    status_code: int,
    message: str,
    exc: BaseException | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """The ``{success: false, error}`` envelope, with a stack in development."""
    body: dict[str, object] = {"success": False, "error": message}
    if exc is not None and get_settings().is_development:
        body["stack"] = "".join(traceback.format_exception(exc))
    return JSONResponse(status_code=status_code, content=body, headers=headers)


@app.exception_handler(ReelgenError)
async def reelgen_error_handler(request: Request, exc: ReelgenError) -> JSONResponse:
    log = logger.error if exc.status_code >= 500 else logger.info
    log(
        "request_failed",
        path=request.url.path,
        status_code=exc.status_code,
        error_type=type(exc).__name__,
        error=exc.message,
    )
    headers = None
    retry_after = getattr(exc, "retry_after", None)
    if retry_after is not None:
        headers = {"Retry-After": str(int(retry_after))}
    return error_response(exc.status_code, exc.message, exc, headers=headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request"
    return error_response(status.HTTP_400_BAD_REQUEST, message)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_response(exc.status_code, str(exc.detail), headers=exc.headers)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", path=request.url.path, error=str(exc))
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc), exc)


app.include_router(health.router)
app.include_router(generation.router)
app.include_router(metadata.router)


@app.get("/", include_in_schema=False)
async def root() -> dict[str, str]:
    return {
        "status": "ok",
        "name": "reelgen",
        "version": __version__,
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "reelgen.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
