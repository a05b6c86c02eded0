"""
Pagination helpers.

Turns loosely typed ``page`` / ``limit`` query values into a bounded
``PaginationDirective`` and builds the ``meta`` block of list responses.
Malformed input is corrected to defaults, never rejected.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, TypeVar

import structlog

from ..domain.pagination import (
    DEFAULT_POLICY,
    PaginationDirective,
    PaginationPolicy,
    ResultMeta,
)

logger = structlog.get_logger(__name__)

T = TypeVar("T")

# Numbers with this many integer digits are not materialized as ints.
_MAX_DIGITS = 4300


def coerce_positive_int(value: Any, ceiling: Optional[int] = None) -> Optional[int]:
    """
    Parse a raw query value into a positive integer.

    Accepts ints, floats, Decimals and numeric strings (surrounding
    whitespace and exponent notation allowed). Strings are parsed exactly,
    so integer strings of any length keep every digit. Fractions are
    truncated toward zero.

    Args:
        value: Raw value from the query string or a caller.
        ceiling: Upper bound the caller will clamp to. Numbers too large to
            materialize as an int are reported as ``ceiling``.

    Returns:
        The parsed integer, or None when the value is missing, not numeric,
        not finite, or smaller than 1.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, int):
        return value if value >= 1 else None

    if isinstance(value, bytes):
        value = value.decode("utf-8", "ignore")
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    elif not isinstance(value, (float, Decimal)):
        return None

    try:
        parsed = Decimal(value)
    except (InvalidOperation, ValueError):
        return None

    if not parsed.is_finite() or parsed < 1:
        return None
    if parsed.adjusted() >= _MAX_DIGITS:
        return ceiling
    return int(parsed)


def build_pagination(
    page: Any = None,
    limit: Any = None,
    policy: PaginationPolicy = DEFAULT_POLICY,
) -> PaginationDirective:
    """Normalize raw ``page``/``limit`` values into a safe page window."""

    safe_page = coerce_positive_int(page) or 1
    safe_limit = coerce_positive_int(limit, ceiling=policy.max_limit) or policy.default_limit
    if safe_limit > policy.max_limit:
        logger.debug(
            "pagination.limit_clamped",
            requested=safe_limit,
            max_limit=policy.max_limit,
        )
        safe_limit = policy.max_limit

    return PaginationDirective(
        page=safe_page,
        limit=safe_limit,
        skip=(safe_page - 1) * safe_limit,
    )


def build_meta(total: int, page: int, limit: int) -> ResultMeta:
    """Build response metadata for a page of ``total`` results."""

    divisor = limit if limit >= 1 else 1
    total_pages = max(1, -(-total // divisor))
    return ResultMeta(total=total, page=page, limit=limit, total_pages=total_pages)


def paginate(
    items: Sequence[T],
    directive: PaginationDirective,
) -> tuple[list[T], ResultMeta]:
    """Slice an in-memory sequence according to the directive."""

    start = directive.skip
    end = start + directive.limit
    page_items = list(items[start:end])
    meta = build_meta(len(items), directive.page, directive.limit)
    return page_items, meta
