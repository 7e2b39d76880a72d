"""
Discriminated results returned by service operations.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import wraps
from typing import Any, Callable

from cafe.domain.errors import CafeError, ErrorCategory

logger = logging.getLogger(__name__)


@dataclass
class Result:
    """Outcome of a core operation: success with data, or failure with a kind."""
    success: bool
    data: dict = field(default_factory=dict)
    error_code: str | None = None
    error_category: str | None = None
    message: str | None = None
    details: dict = field(default_factory=dict)

    @classmethod
    def ok(cls, **data: Any) -> "Result":
        return cls(success=True, data=data)

    @classmethod
    def failure(cls, error: CafeError) -> "Result":
        return cls(
            success=False,
            error_code=error.code,
            error_category=error.category,
            message=error.message,
            details=dict(error.details),
        )

    @classmethod
    def internal_error(cls) -> "Result":
        return cls(
            success=False,
            error_code="INTERNAL_ERROR",
            error_category=ErrorCategory.INTERNAL,
            message="An internal error occurred",
        )

    def as_payload(self) -> dict:
        """Shape used by the GraphQL payload types."""
        payload = {"success": self.success, **self.data}
        if not self.success:
            payload["error"] = {
                "code": self.error_code,
                "message": self.message,
                "details": self.details,
            }
        else:
            payload["error"] = None
        return payload


def returns_result(func: Callable[..., Result | dict]) -> Callable[..., Result]:
    """
    Convert a service method into one that always returns a Result.

    Must wrap ``transaction.atomic`` (not the other way round) so the
    transaction is rolled back before the failure is converted.
    """
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Result:
        try:
            value = func(*args, **kwargs)
        except CafeError as e:
            logger.info(
                "operation_failed",
                extra={
                    "operation": func.__name__,
                    "error": e.code,
                },
            )
            return Result.failure(e)
        except Exception:
            logger.error(
                "unexpected_error",
                extra={"operation": func.__name__},
                exc_info=True,
            )
            return Result.internal_error()
        if isinstance(value, Result):
            return value
        return Result.ok(**(value or {}))

    return wrapper
