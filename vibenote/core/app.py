"""
FastAPI application factory.
"""
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError
import logging

from .lifespan import lifespan
from .logging_config import setup_logging
from .logging_middleware import RequestLoggingMiddleware
from vibenote.config.settings import get_settings
from vibenote.utils.exceptions import VibeNoteException

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()
    setup_logging(
        log_level=settings.log_level,
        log_dir=settings.log_dir,
        log_json=settings.log_json,
    )

    app = FastAPI(
        title="VibeNote API",
        description="""
        Learning assistant backend

        Features:
        - Streaming multimodal chat with persisted history and auto titles
        - Whiteboard images and library image retrieval as chat context
        - PDF library uploads
        - Quiz and flashcard generation with calendar reminders
        - Explainer video generation
        """,
        version=API_VERSION,
        lifespan=lifespan,
    )

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    _register_exception_handlers(app)
    _include_routers(app)
    _register_root_endpoints(app)

    return app


def _error_body(message: str, details=None) -> dict:
    body = {"error": message}
    if details is not None:
        body["details"] = details
    return body


def _register_exception_handlers(app: FastAPI) -> None:
    """Errors render as {"error", "details"}; VibeNoteException carries its own status."""

    @app.exception_handler(VibeNoteException)
    async def vibenote_exception_handler(request: Request, exc: VibeNoteException):
        log_fn = logger.error if exc.status_code >= 500 else logger.warning
        log_fn(
            f"{type(exc).__name__} ({exc.status_code}): {exc.message}"
            f"{f' [{exc.details}]' if exc.details else ''} at {request.method} {request.url.path}"
        )
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message, exc.details))

    @app.exception_handler(PyMongoError)
    async def database_exception_handler(request: Request, exc: PyMongoError):
        logger.error(f"Database error at {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content=_error_body("Database operation failed", str(exc)))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"Request validation failed at {request.method} {request.url.path}: {exc.errors()}")
        return JSONResponse(
            status_code=400,
            content=_error_body("Invalid request body", str(exc.errors())),
        )


def _include_routers(app: FastAPI) -> None:
    from vibenote.routers import (
        chat_router,
        chats_router,
        library_router,
        study_router,
        video_router,
        storage_router,
    )

    app.include_router(chat_router.router)
    app.include_router(chats_router.router)
    app.include_router(library_router.router)
    app.include_router(study_router.router)
    app.include_router(video_router.router)
    app.include_router(storage_router.router)


def _register_root_endpoints(app: FastAPI) -> None:
    from .dependencies import container

    @app.get("/")
    async def root():
        """Root endpoint with API information."""
        return {
            "name": "VibeNote API",
            "version": API_VERSION,
            "endpoints": {
                "chat": "/api/chat",
                "chats": "/api/chats",
                "library": "/api/library",
                "study": "/api/study",
                "videos": "/api/videos",
                "storage": "/api/storage",
                "docs": "/docs",
            },
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "services": {
                "mongodb": "connected" if container.base_repo.is_connected else "disconnected",
                "llm": "configured" if container.settings.groq_api_key else "not configured",
                "library": container.settings.library_api_url,
            },
        }
