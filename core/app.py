"""
FastAPI application factory and configuration
"""

import uuid
from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Request, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

import logging_config  # noqa: F401  (configures structlog on import)
from logging_config import bind_request_context, clear_request_context
from core.config import TRUSTED_ORIGINS, get_environment
from core.error_handlers import (
    export_exception_handler,
    general_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from core.exceptions import ExportError
from routes import register_all_routers
from services.export_service import DocumentExportService, create_export_router

logger = structlog.get_logger(__name__)

APP_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle"""
    logger.info(
        "Starting CareDraft export API",
        environment=get_environment(),
        formats=app.state.export_service.get_supported_formats(),
    )
    app.state.system_initialized = True

    yield

    app.state.system_initialized = False
    stats = app.state.export_service.get_export_stats()
    logger.info(
        "Shutting down CareDraft export API",
        total_exports=stats["total_exports"],
        failed_exports=stats["failed_exports"],
    )


def create_app(export_service: Optional[DocumentExportService] = None) -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="CareDraft Export API",
        version=APP_VERSION,
        description="Proposal and research session export to PDF and DOCX",
        lifespan=lifespan,
    )
    app.state.export_service = export_service or DocumentExportService()
    app.state.system_initialized = False

    setup_middleware(app)
    setup_exception_handlers(app)
    setup_routes(app)

    return app


def setup_middleware(app: FastAPI):
    """Configure middleware"""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=TRUSTED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept", "Origin"],
        expose_headers=[
            "Content-Disposition",
            "X-Export-Format",
            "X-Export-Size",
            "X-Processing-Time",
            "X-Request-ID",
        ],
        max_age=600,
    )

    # Request ID middleware
    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        bind_request_context(request_id=request_id)
        try:
            response = await call_next(request)
        finally:
            clear_request_context()
        response.headers["X-Request-ID"] = request_id
        return response

    # Gzip middleware
    app.add_middleware(GZipMiddleware, minimum_size=1000)


def setup_exception_handlers(app: FastAPI):
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(ExportError, export_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)


def setup_routes(app: FastAPI):
    """Configure routes"""
    # Mount all business routes under /v1
    app.include_router(create_export_router(app.state.export_service), prefix="/v1")
    register_all_routers(app, version_prefix="/v1")

    @app.get("/")
    async def root():
        """API root endpoint"""
        return {
            "message": "CareDraft Export API",
            "version": APP_VERSION,
            "formats": app.state.export_service.get_supported_formats(),
            "documentation": {
                "swagger": "/docs",
                "redoc": "/redoc",
                "openapi": "/openapi.json",
            },
        }
