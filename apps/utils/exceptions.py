from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework import status
import logging

logger = logging.getLogger(__name__)

class BusinessLogicException(Exception):
    """
    Raised when a domain rule is violated (e.g. 'Stock not available').
    Subclasses pick the HTTP status the API layer answers with.
    """
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "business_error"

    def __init__(self, message, code=None):
        self.message = message
        self.code = code or self.default_code
        super().__init__(message)


class ValidationFailed(BusinessLogicException):
    """Empty required field or malformed input."""
    default_code = "validation_error"


class NotFound(BusinessLogicException):
    status_code = status.HTTP_404_NOT_FOUND
    default_code = "not_found"


class Conflict(BusinessLogicException):
    status_code = status.HTTP_409_CONFLICT
    default_code = "conflict"


class IntegrityFault(BusinessLogicException):
    """
    Stored data no longer lines up (e.g. a referenced row vanished).
    Answered as 404 but logged as unexpected.
    """
    status_code = status.HTTP_404_NOT_FOUND
    default_code = "integrity_fault"


def custom_exception_handler(exc, context):
    # Call REST framework's default exception handler first
    response = exception_handler(exc, context)

    if isinstance(exc, BusinessLogicException):
        if isinstance(exc, IntegrityFault):
            logger.error("Integrity fault: %s", exc.message, extra={"code": exc.code})
        return Response(
            {"error": exc.message, "code": exc.code},
            status=exc.status_code
        )

    # If response is None, it's an unhandled server error (500)
    if response is None:
        logger.error(f"Unhandled Exception: {exc}", exc_info=True)
        return Response(
            {"error": "Internal Server Error", "code": "server_error"},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    return response
