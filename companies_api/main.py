"""
Companies API entrypoint.

Builds the FastAPI application: logging, CORS, MongoDB lifecycle, the
companies router under ``/api`` and the mapping from core errors to the
``{success, message, error}`` response envelope. Run with::

    uvicorn companies_api.main:app --reload
"""
import logging
from contextlib import asynccontextmanager
from dataclasses import replace
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings, settings as default_settings
from .database import connect, ensure_indexes
from .errors import NotFound, StoreFailure, ValidationFailure
from .logging_config import setup_logging
from .routers import companies
from .services.filter_builder import SEARCH_MODE_SUBSTRING, SEARCH_MODE_TEXT

logger = logging.getLogger(__name__)


def _envelope(status_code: int, message: str, error: Optional[str] = None) -> JSONResponse:
    content = {"success": False, "message": message}
    if error is not None:
        content["error"] = error
    return JSONResponse(status_code=status_code, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationFailure)
    async def validation_failure_handler(request: Request, exc: ValidationFailure):
        return _envelope(status.HTTP_400_BAD_REQUEST, "Validation Error", str(exc))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = [
            f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg')}"
            for error in exc.errors()
        ]
        return _envelope(status.HTTP_400_BAD_REQUEST, "Validation Error", "; ".join(errors))

    @app.exception_handler(NotFound)
    async def not_found_handler(request: Request, exc: NotFound):
        return _envelope(status.HTTP_404_NOT_FOUND, "Company not found")

    @app.exception_handler(StoreFailure)
    async def store_failure_handler(request: Request, exc: StoreFailure):
        logger.error(f"Store failure on {request.method} {request.url.path}: {exc.message}")
        return _envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, "Server Error", exc.message)

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unexpected error on {request.method} {request.url.path}")
        return _envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, "Server Error", str(exc))


def create_app(settings: Settings = default_settings) -> FastAPI:
    """Create and configure the FastAPI application."""
    setup_logging(settings.log_level)

    if settings.search_mode not in (SEARCH_MODE_SUBSTRING, SEARCH_MODE_TEXT):
        logger.warning(
            f"Unknown SEARCH_MODE '{settings.search_mode}', using '{SEARCH_MODE_SUBSTRING}'"
        )
        settings = replace(settings, search_mode=SEARCH_MODE_SUBSTRING)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client = connect(settings)
        app.state.db = client[settings.db_name]
        await ensure_indexes(app.state.db, settings)
        try:
            yield
        finally:
            client.close()
            logger.info("MongoDB connection closed")

    app = FastAPI(title=settings.project_name, version=settings.api_version, lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(companies.router, prefix="/api", tags=["companies"])

    @app.get("/api/health")
    async def health() -> dict:
        """Simple liveness check."""
        return {"message": "Companies API is running!"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("companies_api.main:app", host="0.0.0.0", port=default_settings.port)
