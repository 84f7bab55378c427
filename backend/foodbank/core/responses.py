"""Standardized response helpers.

Service operations return a uniform envelope:
    {"success": bool, "data": ..., "error": str, "error_details": ...}

Callers must check ``success`` before reading ``data``. Business outcomes such
as partial fulfillment are ``success=True`` with a warning inside ``data``;
only data-access failures and unexpected exceptions produce ``success=False``.

List endpoints return:
    {"items": [...], "total": <int>}
"""

from typing import Any, Optional

from foodbank.schemas.common import ServiceResult


def ok(data: Any = None) -> ServiceResult:
    """Successful envelope."""
    return ServiceResult(success=True, data=data)


def fail(error: str, error_details: Optional[Any] = None) -> ServiceResult:
    """Failed envelope with a user-facing message and diagnostic details."""
    return ServiceResult(success=False, error=error, error_details=error_details)


def unexpected(error: str, exc: BaseException) -> ServiceResult:
    """Failed envelope for an unexpected exception.

    Only the exception type is exposed; the message and traceback stay in the logs.
    """
    return ServiceResult(
        success=False,
        error=error,
        error_details={"type": type(exc).__name__},
    )


def list_response(
    items: list,
    total: Optional[int] = None,
) -> dict:
    """Wrap a list in the standard envelope.

    Args:
        items: The list of serialized items.
        total: Total count (defaults to len(items) when the full list is returned).

    Returns:
        {"items": items, "total": total}
    """
    return {
        "items": items,
        "total": total if total is not None else len(items),
    }
