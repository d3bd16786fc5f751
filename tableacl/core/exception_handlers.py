"""HTTP error responses for the admin API.

Every error body has the shape {"error", "message"[, "details"]}. Store
outages surface as 503 so callers retry; bad input and reserved paths as 400.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from tableacl.core.config import get_settings
from tableacl.domain.exceptions import TableACLException

logger = logging.getLogger(__name__)

# error_code ==> HTTP status; unlisted codes are client errors
_ERROR_CODE_STATUS: dict[str, int] = {
    "VALIDATION_ERROR": 400,
    "RESOURCE_PERMISSION_ERROR": 400,
    "RESOURCE_READ_ERROR": 503,
    "RESOURCE_WRITE_ERROR": 503,
    "RECORD_DESERIALIZATION_ERROR": 500,
    "MANAGER_INITIALIZATION_ERROR": 503,
}


def status_for(exc: TableACLException) -> int:
    """Return the HTTP status for a table ACL error."""
    return _ERROR_CODE_STATUS.get(exc.error_code, 400)


def _table_acl_error(request: Request, exc: TableACLException) -> JSONResponse:
    status = status_for(exc)
    if status >= 500:
        logger.error(
            "%s %s failed with %s: %s",
            request.method,
            request.url.path,
            exc.error_code,
            exc.message,
        )
    return JSONResponse(status_code=status, content=exc.to_dict())


def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": "HTTP_ERROR", "message": exc.detail},
    )


def _unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    """500 for anything else; the exception text is only exposed in debug mode."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    message = str(exc) if get_settings().debug else "Internal server error"
    return JSONResponse(
        status_code=500,
        content={"error": "INTERNAL_ERROR", "message": message},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the table ACL, HTTP and catch-all handlers on app."""
    app.add_exception_handler(TableACLException, _table_acl_error)
    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(Exception, _unhandled_error)
