"""
Error handling for the plain HTTP endpoints.
"""
import logging

from django.http import JsonResponse

from cafe.domain.errors import ErrorCategory
from cafe.domain.results import Result

logger = logging.getLogger(__name__)


class ErrorHandler:
    """Error handler for API responses."""

    ERROR_CODES = {
        "ORDER_NOT_FOUND": 404,
        "DUPLICATE_REQUEST": 409,
        "GATEWAY_NOT_CONFIGURED": 500,
        "INTERNAL_ERROR": 500,
    }

    CATEGORY_CODES = {
        ErrorCategory.VALIDATION: 400,
        ErrorCategory.SECURITY: 400,
        ErrorCategory.AUTHORIZATION: 403,
        ErrorCategory.STATE_CONFLICT: 409,
        ErrorCategory.RESOURCE: 409,
        ErrorCategory.INTERNAL: 500,
    }

    @classmethod
    def status_for(cls, result: Result) -> int:
        if result.error_code in cls.ERROR_CODES:
            return cls.ERROR_CODES[result.error_code]
        return cls.CATEGORY_CODES.get(result.error_category, 500)

    @classmethod
    def result_response(cls, result: Result) -> JsonResponse:
        """JSON error response for a failed Result."""
        return JsonResponse(
            {
                "error": {
                    "code": result.error_code,
                    "message": result.message,
                }
            },
            status=cls.status_for(result),
        )

    @classmethod
    def handle_error(cls, error: Exception) -> JsonResponse:
        """Response for an exception that escaped a view."""
        logger.error(
            "unexpected_error",
            extra={"error": type(error).__name__},
            exc_info=True,
        )

        return JsonResponse(
            {
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": "An internal error occurred",
                }
            },
            status=500,
        )
