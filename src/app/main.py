"""
EF Session Bridge - Application Entry Point

Run locally:
    python -m src.app.main

or through the installed console script:
    ef-session-bridge
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api import health_router
from .api import router as api_router
from .api.dependencies import close_login_pipeline
from .api.errors import LOGIN_FIELDS_MESSAGE, SESSION_FIELDS_MESSAGE, error_response
from .core.config import Settings, settings
from .core.logger import setup_logging
from .services.efsession import ValidationError

logger = logging.getLogger(__name__)

# Body-shape errors reuse the route's "missing fields" message
_VALIDATION_MESSAGES = {
    "/api/login": LOGIN_FIELDS_MESSAGE,
    "/api/change-level": SESSION_FIELDS_MESSAGE,
    "/api/tasks": SESSION_FIELDS_MESSAGE,
}


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Only locations and types; error inputs may contain credentials
    problems = [(error.get("loc"), error.get("type")) for error in exc.errors()]
    logger.warning(f"[API] Invalid body on {request.url.path}: {problems}")
    message = _VALIDATION_MESSAGES.get(request.url.path, "Requisição inválida.")
    return error_response(400, message)


async def missing_fields_handler(request: Request, exc: ValidationError) -> JSONResponse:
    logger.info(f"[API] Missing fields on {request.url.path}: {exc.missing}")
    return error_response(exc.status_code, exc.message)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    yield
    await close_login_pipeline()


def create_application(config: Settings = settings) -> FastAPI:
    application = FastAPI(
        title=config.APP_NAME,
        description=config.APP_DESCRIPTION,
        version=config.APP_VERSION or "0.0.0",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_methods=config.CORS_METHODS,
        allow_headers=config.CORS_HEADERS,
    )

    application.add_exception_handler(RequestValidationError, request_validation_handler)
    application.add_exception_handler(ValidationError, missing_fields_handler)

    application.include_router(health_router)
    application.include_router(api_router)

    return application


app = create_application()


def run() -> None:
    setup_logging(settings)
    logger.info(f"Servidor rodando na porta {settings.HTTP_PORT}")
    uvicorn.run(app, host=settings.SERVER_HOST, port=settings.HTTP_PORT, log_config=None)


if __name__ == "__main__":
    run()
