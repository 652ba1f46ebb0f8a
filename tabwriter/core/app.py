"""
FastAPI application factory and configuration
"""

import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from tabwriter import __version__
from tabwriter.core import config
from tabwriter.core.error_handlers import (
    general_exception_handler,
    tabwriter_exception_handler,
    validation_exception_handler,
)
from tabwriter.core.exceptions import TabWriterError
from tabwriter.logging_config import bind_request_context, configure_logging
from tabwriter.routes import register_all_routers
from tabwriter.services.llm_client import llm_client

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle"""
    logger.info(
        "Starting TabWriter API",
        version=__version__,
        environment=config.get_environment(),
    )
    app.state.llm_initialized = llm_client.is_initialized()
    if not app.state.llm_initialized:
        logger.warning(
            "Completion client not configured; set AZURE_OPENAI_* or OPENAI_API_KEY"
        )

    yield

    app.state.autocomplete_service = None
    logger.info("Shutdown complete")


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    configure_logging()
    app = FastAPI(
        title="TabWriter API",
        version=__version__,
        description="Evidence, research and writing assistance for drafts",
        lifespan=lifespan,
    )

    setup_middleware(app)
    register_all_routers(app, prefix="/api")
    setup_exception_handlers(app)

    return app


def setup_middleware(app: FastAPI):
    """Configure middleware"""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Accept", "Origin", "X-Request-ID"],
        max_age=600,
    )

    # Request ID middleware
    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        request.state.request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        structlog.contextvars.clear_contextvars()
        bind_request_context(request_id=request.state.request_id, operation=request.url.path)
        response = await call_next(request)
        response.headers["X-Request-ID"] = request.state.request_id
        return response

    app.add_middleware(GZipMiddleware, minimum_size=1000)


def setup_exception_handlers(app: FastAPI):
    """Configure exception handlers"""
    app.add_exception_handler(TabWriterError, tabwriter_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
