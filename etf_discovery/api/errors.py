import logging
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from etf_discovery.api.observability import current_request_id
from etf_discovery.core.errors import (
    CatalogUnavailableError,
    DiscoveryError,
    DiscoveryTimeoutError,
    MalformedQueryError,
    RuleSetNotFoundError,
)
from etf_discovery.core.models import ErrorResponse

logger = logging.getLogger(__name__)

_STATUS_CODES = {
    status.HTTP_400_BAD_REQUEST: "MALFORMED_QUERY",
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_503_SERVICE_UNAVAILABLE: "CATALOG_UNAVAILABLE",
    status.HTTP_504_GATEWAY_TIMEOUT: "DISCOVERY_TIMEOUT",
}


def error_response(
    status_code: int,
    *,
    code: str,
    message: str,
    details: Optional[dict[str, Any]] = None,
) -> JSONResponse:
    body = ErrorResponse(
        code=code,
        message=message,
        request_id=current_request_id(),
        details=details,
    )
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(body.model_dump(by_alias=True, exclude_none=True)),
    )


def discovery_error_status(exc: DiscoveryError) -> tuple[int, str]:
    if isinstance(exc, MalformedQueryError):
        return status.HTTP_400_BAD_REQUEST, "MALFORMED_QUERY"
    if isinstance(exc, RuleSetNotFoundError):
        return status.HTTP_404_NOT_FOUND, "NOT_FOUND"
    if isinstance(exc, CatalogUnavailableError):
        return status.HTTP_503_SERVICE_UNAVAILABLE, "CATALOG_UNAVAILABLE"
    if isinstance(exc, DiscoveryTimeoutError):
        return status.HTTP_504_GATEWAY_TIMEOUT, "DISCOVERY_TIMEOUT"
    return status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR"


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def _validation_error(_request: Request, exc: RequestValidationError) -> JSONResponse:
        return error_response(
            status.HTTP_400_BAD_REQUEST,
            code="VALIDATION_ERROR",
            message="Request validation failed",
            details={"errors": exc.errors()},
        )

    @app.exception_handler(DiscoveryError)
    async def _discovery_error(request: Request, exc: DiscoveryError) -> JSONResponse:
        status_code, code = discovery_error_status(exc)
        logger.warning(
            "request.failed",
            extra={
                "extra_fields": {
                    "endpoint": request.url.path,
                    "error_code": code,
                    "error": str(exc),
                }
            },
        )
        return error_response(status_code, code=code, message=str(exc))

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        code = _STATUS_CODES.get(exc.status_code, f"HTTP_{exc.status_code}")
        return error_response(exc.status_code, code=code, message=str(exc.detail))

    @app.exception_handler(Exception)
    async def _unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled exception while serving request", exc_info=exc)
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            code="INTERNAL_ERROR",
            message="An unexpected error occurred.",
            details={"path": str(request.url.path)},
        )
