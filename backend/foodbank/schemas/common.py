"""Shared response envelope."""

from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ServiceResult(BaseModel, Generic[T]):
    """Uniform result of a service operation. Check ``success`` before ``data``."""

    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    error_details: Optional[Any] = None
