"""FastAPI application: JSON API for secret issuance and code verification."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from gauth import __version__
from gauth.config import Settings
from gauth.db import CredentialStore, PostgresCredentialStore
from gauth.errors import GauthError, MalformedRequestError
from gauth.models import ErrorResponse
from gauth.service import Orchestrator

logger = logging.getLogger(__name__)


def _error_response(exc: GauthError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(message=exc.message).model_dump(),
    )


async def gauth_error_handler(request: Request, exc: GauthError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail or exc.message)
    else:
        logger.debug("%s %s rejected: %s", request.method, request.url.path, exc.detail or exc.message)
    return _error_response(exc)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Unable to parse request body for %s: %s", request.url.path, [e.get("type") for e in exc.errors()])
    return _error_response(MalformedRequestError("Invalid JSON request body"))


def create_app(settings: Settings, store: CredentialStore | None = None) -> FastAPI:
    """Build the app around ``store`` (a Postgres store from settings if omitted)."""
    owned = store is None
    if store is None:
        store = PostgresCredentialStore.from_settings(settings.db)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if owned:
            store.open()
        yield
        if owned:
            store.close()

    app = FastAPI(
        title="Gauth Server",
        description="TOTP secret issuance and verification",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.orchestrator = Orchestrator(store, settings.auth)

    app.add_exception_handler(GauthError, gauth_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    from gauth.web.routes import router

    app.include_router(router)
    return app
