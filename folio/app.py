"""FastAPI entry point: wires services, error mapping and routers."""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from folio.core.config import Settings, get_settings
from folio.core.errors import (
    DuplicateValue,
    FolioError,
    Forbidden,
    InvalidCredentials,
    NotDeleted,
    NotFound,
    ParentNotFound,
    StorageFailure,
    ValidationFailed,
)
from folio.core.observability import setup_logging
from folio.routers import accounts as accounts_router
from folio.routers import documents as documents_router
from folio.services import Services, build_services

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: dict[type[FolioError], int] = {
    ValidationFailed: 400,
    DuplicateValue: 409,
    NotFound: 404,
    NotDeleted: 409,
    ParentNotFound: 404,
    Forbidden: 403,
    InvalidCredentials: 401,
    StorageFailure: 503,
}


def status_for(exc: FolioError) -> int:
    for cls in type(exc).__mro__:
        if cls in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[cls]
    return 500


async def _folio_error_handler(request: Request, exc: FolioError) -> JSONResponse:
    status = status_for(exc)
    if status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=status,
        content={"success": False, "code": exc.code, "message": exc.message},
    )


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": ".".join(str(p) for p in err.get("loc", ())[1:]), "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "code": ValidationFailed.code,
            "message": "Invalid request parameters",
            "errors": errors,
        },
    )


def create_app(settings: Optional[Settings] = None, services: Optional[Services] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.log_format)

    app = FastAPI(title="Folio API")
    app.state.settings = settings
    app.state.services = services or build_services(settings)
    app.add_exception_handler(FolioError, _folio_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.include_router(accounts_router.router)
    app.include_router(documents_router.router)
    return app


app = create_app()
