import time
import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from postgrest.exceptions import APIError
from pydantic import ValidationError
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.cors import CORSMiddleware

from workeasy import __version__
from workeasy.api.main import api_router
from workeasy.core.config import settings
from workeasy.core.exceptions import (
    NotFoundError,
    UpstreamError,
    WorkeasyError,
    from_api_error,
)
from workeasy.core.i18n import resolve_request_locale, split_page_path, t
from workeasy.core.observability import (
    get_logger,
    initialize_observability,
    set_correlation_id,
)
from workeasy.core.rate_limiter import auth_limiter, rate_limit_exceeded_handler
from workeasy.middleware.locale import LocaleRedirectMiddleware

# Initialize structured logger
logger = get_logger(__name__)


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """Request logging with correlation ids."""

    async def dispatch(self, request: Request, call_next):
        correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
        set_correlation_id(correlation_id)

        start_time = time.time()
        method = request.method
        path = request.url.path

        logger.info(
            "Request started",
            method=method,
            path=path,
            client_ip=request.client.host if request.client else None,
            user_agent=request.headers.get("User-Agent", ""),
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "Request failed",
                method=method,
                path=path,
                duration_seconds=time.time() - start_time,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            raise

        response.headers["X-Correlation-ID"] = correlation_id
        logger.info(
            "Request completed",
            method=method,
            path=path,
            status_code=response.status_code,
            duration_seconds=time.time() - start_time,
        )
        return response


def custom_generate_unique_id(route: APIRoute) -> str:
    return f"{route.tags[0]}-{route.name}" if route.tags else route.name


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    initialize_observability()
    logger.info(
        "Application started",
        project_name=settings.PROJECT_NAME,
        environment=settings.ENVIRONMENT,
        version=__version__,
    )
    yield
    logger.info("Shutting down application")


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="""
    Workeasy - Multi-tenant shift scheduling API

    Store owners and managers configure business hours, work items and staffing
    targets, invite staff, and assign shifts. Authentication and persistence
    are provided by Supabase.
    """,
    version=__version__,
    openapi_url="/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
    generate_unique_id_function=custom_generate_unique_id,
    lifespan=lifespan,
)

app.state.limiter = auth_limiter


def validation_details(errors: list[dict[str, Any]], locale: str) -> list[dict[str, Any]]:
    """Field errors with catalog keys raised by validators translated."""
    details = []
    for error in errors:
        message = error.get("msg", "")
        if error.get("type") == "value_error" and error.get("ctx", {}).get("error"):
            message = t(str(error["ctx"]["error"]), locale)
        details.append(
            {
                "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
                "message": message,
                "type": error.get("type"),
            }
        )
    return details


@app.exception_handler(WorkeasyError)
async def workeasy_error_handler(request: Request, exc: WorkeasyError) -> JSONResponse:
    locale = resolve_request_locale(request)
    message = t(exc.message, locale, **exc.params)
    log = logger.error if isinstance(exc, UpstreamError) else logger.warning
    log(
        "Request rejected",
        path=request.url.path,
        status_code=exc.status_code,
        error_type=exc.error_type.value,
        error=exc.message,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(message))


async def _validation_response(
    request: Request, errors: list[dict[str, Any]]
) -> JSONResponse:
    locale = resolve_request_locale(request)
    details = validation_details(errors, locale)
    first = details[0]["message"] if details else None
    logger.warning("Validation failed", path=request.url.path, fields=[d["field"] for d in details])
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "error": first or t("errors.invalidData", locale),
            "details": details,
        },
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return await _validation_response(request, list(exc.errors()))


@app.exception_handler(ValidationError)
async def model_validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return await _validation_response(request, list(exc.errors()))


@app.exception_handler(APIError)
async def upstream_error_handler(request: Request, exc: APIError) -> JSONResponse:
    logger.error(
        "Database request failed",
        path=request.url.path,
        code=exc.code,
        error=str(exc),
    )
    return await workeasy_error_handler(request, from_api_error(exc))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled error",
        path=request.url.path,
        error=str(exc),
        error_type=type(exc).__name__,
        exc_info=True,
    )
    locale = resolve_request_locale(request)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": t("errors.internal", locale)},
    )


app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

app.add_middleware(LocaleRedirectMiddleware)
app.add_middleware(ObservabilityMiddleware)

# Set all CORS enabled origins
if settings.all_cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.all_cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Correlation-ID"],
    )

app.include_router(api_router, prefix=settings.API_PREFIX)


@app.get("/{page_path:path}", include_in_schema=False)
def page(page_path: str) -> dict[str, Any]:
    """Placeholder for the locale-prefixed pages served by the web frontend."""
    locale, path = split_page_path(f"/{page_path}")
    if locale is None:
        raise NotFoundError("errors.notFound")
    return {"locale": locale, "path": path}
