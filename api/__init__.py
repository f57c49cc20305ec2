"""REST API module for the tipjar backend.

This module provides HTTP endpoints for:
- Registering users and managing profiles
- Creating campaigns and recording settlement memos
- Reconciling ledger campaign ids
- Messaging between users
- Improving campaign copy
- System health monitoring
"""

import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from common.errors import AppError, InternalError
from database import init_db, close as db_close
from .deps import Services, build_services, get_services

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle startup and shutdown events."""
    # Services injected by the caller own their resources
    if getattr(app.state, 'services', None) is not None:
        yield
        return

    from config import get_settings

    logger.info("Initializing API...")
    settings = get_settings()
    pool = await init_db(settings['db_url'])
    app.state.services = build_services(pool, settings)

    yield

    logger.info("Shutting down API...")
    await db_close()


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Translate manager errors into JSON responses."""
    if isinstance(exc, InternalError):
        logger.error(f"{request.method} {request.url.path} failed: {exc.message} (cause: {exc.cause!r})")
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.error_code, "message": "Internal server error"}
        )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report schema failures as 400 with the field errors."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "validation_error",
            "message": "Invalid request",
            "details": jsonable_encoder(exc.errors())
        }
    )


def create_app(services: Optional[Services] = None, allow_origins: Optional[List[str]] = None) -> FastAPI:
    """Create the FastAPI application.

    Args:
        services: Pre-built services. When omitted they are built on startup
            from settings and a fresh database pool.
        allow_origins: CORS origins, defaults to all

    Returns:
        The configured application
    """
    app = FastAPI(
        title="Tipjar API",
        description="REST API for campaigns, settlement memos and messaging on Aptos",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    from .users import router as users_router
    from .campaigns import router as campaigns_router
    from .messages import router as messages_router
    from .assistant import router as assistant_router
    from .system import router as system_router

    app.include_router(users_router, prefix=API_PREFIX)
    app.include_router(campaigns_router, prefix=API_PREFIX)
    app.include_router(messages_router, prefix=API_PREFIX)
    app.include_router(assistant_router, prefix=API_PREFIX)
    app.include_router(system_router, prefix=API_PREFIX)

    return app


app = create_app()

__all__ = ['app', 'create_app', 'Services', 'build_services', 'get_services']
