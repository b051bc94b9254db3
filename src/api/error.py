"""Error responses

Use cases return `Error`; routes raise `ClientError` with it. Every error
body carries `success: false`, a human-readable message and the error code.
"""

import logging
from typing import Optional
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from libs.result import Error

logger = logging.getLogger(__name__)

STATUS_BY_CODE = {
    "VALIDATION_ERROR": status.HTTP_400_BAD_REQUEST,
    "GATEWAY_REJECTED": status.HTTP_400_BAD_REQUEST,
    "INSUFFICIENT_FUNDS": status.HTTP_400_BAD_REQUEST,
    "PAYMENT_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "USER_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "USER_ALREADY_EXISTS": status.HTTP_409_CONFLICT,
    "RECEIPT_UNAVAILABLE": status.HTTP_409_CONFLICT,
    "GATEWAY_UNAVAILABLE": status.HTTP_502_BAD_GATEWAY,
    "STORAGE_ERROR": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class ClientError(Exception):

    def __init__(self, error: Error, status_code: Optional[int] = None):
        super().__init__(error.message)
        self.error = error
        self.status_code = status_code or STATUS_BY_CODE.get(error.code, status.HTTP_400_BAD_REQUEST)


def error_body(error: Error) -> dict:
    return {
        "success": False,
        "message": error.message,
        "error": error.model_dump(exclude_none=True),
    }


def register_error_handlers(app: FastAPI) -> None:

    @app.exception_handler(ClientError)
    async def handle_client_error(request: Request, exc: ClientError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.error.code} {exc.error.reason}")
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.error))

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        fields = [".".join(str(part) for part in err.get("loc", ())) for err in exc.errors()]
        error = Error(
            code="VALIDATION_ERROR",
            message="Invalid request parameters",
            reason=", ".join(fields) or None,
        )
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=error_body(error))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "message": "Internal server error"},
        )
