"""
Error responses of the remote store service.
Every error leaves the service as {"error": {"code", "message", "timestamp", "request_id", "details"?}}.
"""

from typing import Dict, Any, Optional, List, Sequence
from datetime import datetime, timezone
from fastapi import Request, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError, IntegrityError
from silver_estates.utils.exceptions import APIException, ValidationError
import logging
import uuid

logger = logging.getLogger(__name__)

# Driver message fragment -> client-facing reason
CONSTRAINT_REASONS = (
    ("unique", "Duplicate value for unique field"),
    ("foreign key", "Referenced record does not exist"),
    ("not null", "Required field cannot be empty"),
)


class ErrorHandlerService:
    """
    Builds error envelopes and logs them.
    The request id set by the request logging middleware is reused so log lines and responses correlate.
    """

    @staticmethod
    def format_error_response(
        error_code: str,
        message: str,
        details: Optional[List[Dict[str, Any]]] = None,
        request_id: Optional[str] = None
    ) -> Dict[str, Any]:
        error = {
            "code": error_code,
            "message": message,
            "timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
        }
        if details:
            error["details"] = details
        if request_id:
            error["request_id"] = request_id
        return {"error": error}

    @staticmethod
    def _respond(
        request: Optional[Request],
        status_code: int,
        error_code: str,
        message: str,
        details: Optional[List[Dict[str, Any]]] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> JSONResponse:
        request_id = ErrorHandlerService._request_id(request)
        content = ErrorHandlerService.format_error_response(error_code, message, details, request_id)
        return JSONResponse(status_code=status_code, content=content, headers=headers)

    @staticmethod
    def handle_api_exception(exception: APIException, request: Optional[Request] = None) -> JSONResponse:
        path = request.url.path if request else None
        logger.warning(f"{exception.error_code} on {path}: {exception.detail}")

        details = exception.field_errors if isinstance(exception, ValidationError) else None
        return ErrorHandlerService._respond(
            request,
            exception.status_code,
            exception.error_code or "API_ERROR",
            exception.detail,
            details=details,
            headers=exception.headers
        )

    @staticmethod
    def handle_validation_error(
        errors: Sequence[Dict[str, Any]],
        request: Optional[Request] = None
    ) -> JSONResponse:
        """
        Report every invalid field of a request.

        Args:
            errors: The `errors()` list of a pydantic or FastAPI validation error
            request: The failing request, when there is one
        """
        details = [
            {
                "field": " -> ".join(str(loc) for loc in error["loc"]),
                "message": error["msg"],
                "type": error["type"],
            }
            for error in errors
        ]
        logger.warning(f"Request validation failed with {len(details)} field errors")

        return ErrorHandlerService._respond(
            request, 422, "VALIDATION_ERROR", "Request validation failed", details=jsonable_encoder(details)
        )

    @staticmethod
    def handle_database_error(exception: SQLAlchemyError, request: Optional[Request] = None) -> JSONResponse:
        """Driver messages are logged, never returned."""
        logger.error(f"Database error ({type(exception).__name__}): {exception}", exc_info=True)

        if not isinstance(exception, IntegrityError):
            return ErrorHandlerService._respond(request, 500, "DATABASE_ERROR", "Database operation failed")

        driver_message = str(exception.orig).lower()
        reason = next((text for fragment, text in CONSTRAINT_REASONS if fragment in driver_message), None)
        message = f"Constraint violation: {reason}" if reason else "Data integrity constraint violation"
        return ErrorHandlerService._respond(request, 409, "INTEGRITY_ERROR", message)

    @staticmethod
    def handle_http_exception(exception: HTTPException, request: Optional[Request] = None) -> JSONResponse:
        """Plain HTTP errors, e.g. unknown routes or methods."""
        logger.info(f"HTTP {exception.status_code}: {exception.detail}")
        return ErrorHandlerService._respond(
            request,
            exception.status_code,
            f"HTTP_{exception.status_code}",
            str(exception.detail),
            headers=getattr(exception, "headers", None)
        )

    @staticmethod
    def handle_unexpected_error(exception: Exception, request: Optional[Request] = None) -> JSONResponse:
        logger.error(f"Unexpected {type(exception).__name__}: {exception}", exc_info=True)
        return ErrorHandlerService._respond(
            request, 500, "INTERNAL_SERVER_ERROR", "An unexpected error occurred. Please try again later."
        )

    @staticmethod
    def _request_id(request: Optional[Request]) -> str:
        request_id = getattr(request.state, "request_id", None) if request is not None else None
        return request_id or str(uuid.uuid4())[:8]
