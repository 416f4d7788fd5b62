import time
from contextlib import asynccontextmanager
from typing import Dict, List, Optional

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from classroom_api.api.v1.assignments.router import router as assignments_router
from classroom_api.api.v1.auth.router import router as auth_router
from classroom_api.api.v1.auth.router import session_router
from classroom_api.api.v1.classes.classes_router import router as classes_router
from classroom_api.api.v1.enrollments.router import router as enrollments_router
from classroom_api.api.v1.materials.router import router as materials_router
from classroom_api.api.v1.rooms.router import router as rooms_router
from classroom_api.api.v1.submissions.router import router as submissions_router
from classroom_api.core.config import settings
from classroom_api.core.logging import configure_logging
from classroom_api.core.schemas import ErrorResponse
from classroom_api.db.session import init_models

logger = structlog.get_logger(__name__)


def _error_response(
    status_code: int,
    message: str,
    errors: Optional[Dict[str, List[str]]] = None,
    headers=None,
) -> JSONResponse:
    body = ErrorResponse(message=message, errors=errors).model_dump(exclude_none=True)
    return JSONResponse(status_code=status_code, content=body, headers=headers)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # Service validation errors arrive with a {"message", "errors"} detail.
    if isinstance(exc.detail, dict):
        return _error_response(
            exc.status_code,
            exc.detail.get("message", "Error"),
            exc.detail.get("errors"),
            getattr(exc, "headers", None),
        )
    return _error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors: Dict[str, List[str]] = {}
    for err in exc.errors():
        loc = err.get("loc") or ("body",)
        errors.setdefault(str(loc[-1]), []).append(err.get("msg", "Invalid value"))
    return _error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, "Validation error", errors)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("unhandled_exception", path=request.url.path, method=request.method, exc_info=exc)
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.auto_create_tables:
        await init_models()
        logger.info("database_tables_ready")
    yield


def create_app() -> FastAPI:
    configure_logging(settings.log_level)
    app = FastAPI(title="Classroom API", lifespan=lifespan)

    # CORS: allow frontend to call this API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        logger.info(
            "http_request",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round((time.time() - start_time) * 1000, 2),
        )
        return response

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # Uploaded documents, read-only
    app.mount(
        settings.storage_url_prefix,
        StaticFiles(directory=settings.upload_dir, check_dir=False),
        name="storage",
    )

    # Routers
    app.include_router(auth_router)
    app.include_router(session_router)
    app.include_router(classes_router)
    app.include_router(enrollments_router)
    app.include_router(rooms_router)
    app.include_router(materials_router)
    app.include_router(assignments_router)
    app.include_router(submissions_router)

    return app


app = create_app()
