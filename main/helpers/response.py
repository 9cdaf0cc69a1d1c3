"""
JSON envelope shared by every endpoint.

Success: {"success": true, "message": ..., "data": ...}
Failure: {"success": false, "message": ..., "error": {"code": ..., "details": ...}}
"""

import logging

from django.conf import settings
from django.db import DatabaseError
from django.http import JsonResponse
from rest_framework.views import exception_handler

from stock.services.base_service import (
    ServiceError, ValidationError, NotFoundError, BusinessRuleError, ConflictError,
    InsufficientStockError, DuplicateIdentifierError, OrderAlreadyCompletedError,
    DanglingReferenceError, PersistenceError,
)

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "An unexpected error occurred"

STATUS_BY_ERROR = [
    (ValidationError, 400),
    (NotFoundError, 404),
    (InsufficientStockError, 409),
    (OrderAlreadyCompletedError, 409),
    (DuplicateIdentifierError, 409),
    (DanglingReferenceError, 409),
    (ConflictError, 409),
    (BusinessRuleError, 409),
    (PersistenceError, 500),
]


def status_for(error: ServiceError) -> int:
    return next((status for cls, status in STATUS_BY_ERROR if isinstance(error, cls)), 500)


class APIResponse:

    @staticmethod
    def success(data=None, message="Success", status_code=200):
        body = {"success": True, "message": message}
        if data is not None:
            body["data"] = data
        return JsonResponse(body, status=status_code)

    @staticmethod
    def created(data=None, message="Created"):
        return APIResponse.success(data=data, message=message, status_code=201)

    @staticmethod
    def error(message="Error", code="ERROR", status_code=400, details=None):
        body = {"success": False, "message": message, "error": {"code": code}}
        if details:
            body["error"]["details"] = details
        return JsonResponse(body, status=status_code)

    @staticmethod
    def not_found(message="Not found", details=None):
        return APIResponse.error(message=message, code="NOT_FOUND", status_code=404, details=details)

    @staticmethod
    def validation_error(errors=None, message="Validation failed"):
        return APIResponse.error(message=message, code="VALIDATION_ERROR", status_code=400, details=errors)

    @staticmethod
    def server_error(e: Exception, code="INTERNAL_ERROR"):
        message = str(e) if settings.DEBUG else GENERIC_ERROR_MESSAGE
        return APIResponse.error(message=message, code=code, status_code=500)

    @staticmethod
    def from_exception(e: Exception, status_code: int = None):
        """Envelope for any exception raised by a service call."""
        if isinstance(e, ServiceError):
            status_code = status_code or status_for(e)
            if status_code >= 500:
                logger.error("%s: %s", e.code, e.message)
                message = e.message if settings.DEBUG else GENERIC_ERROR_MESSAGE
            else:
                logger.warning("%s: %s", e.code, e.message)
                message = e.message
            return APIResponse.error(message=message, code=e.code, status_code=status_code, details=e.details)

        if isinstance(e, DatabaseError):
            logger.exception("Database error: %s", e)
            return APIResponse.server_error(e, code="PERSISTENCE_FAILURE")

        logger.exception("Unhandled error: %s", e)
        return APIResponse.server_error(e)


def api_exception_handler(exc, context):
    """DRF exception handler producing the same envelope as the services."""
    response = exception_handler(exc, context)
    if response is None:
        return None

    detail = response.data.get("detail") if isinstance(response.data, dict) else None
    code = getattr(exc, "default_code", "error").upper()
    if response.status_code == 400:
        code = "VALIDATION_ERROR"

    response.data = {
        "success": False,
        "message": str(detail) if detail else "Request failed",
        "error": {"code": code},
    }
    return response
