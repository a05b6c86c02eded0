"""Response envelopes shared by every endpoint."""

from __future__ import annotations

from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel

from .pagination import ResultMeta

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Envelope for successful responses."""

    success: bool = True
    message: str = "OK"
    data: Optional[T] = None
    meta: Optional[ResultMeta] = None


class ApiErrorResponse(BaseModel):
    """Envelope for failed requests."""

    success: bool = False
    message: str = "Something went wrong"
    errors: Optional[Any] = None


def success_response(
    data: Optional[T] = None,
    meta: Optional[ResultMeta] = None,
    message: str = "OK",
) -> ApiResponse[T]:
    return ApiResponse(data=data, meta=meta, message=message)
