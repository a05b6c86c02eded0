"""Pydantic models shared across the API."""

from .pagination import DEFAULT_POLICY, PaginationDirective, PaginationPolicy, ResultMeta
from .responses import ApiErrorResponse, ApiResponse, success_response

__all__ = [
    "DEFAULT_POLICY",
    "PaginationDirective",
    "PaginationPolicy",
    "ResultMeta",
    "ApiErrorResponse",
    "ApiResponse",
    "success_response",
]
