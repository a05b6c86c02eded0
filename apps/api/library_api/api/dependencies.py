from __future__ import annotations

from functools import lru_cache
from typing import Any, Optional

from fastapi import Depends, Query, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..core.config import Settings, get_settings
from ..core.security import PasswordHasher, TokenIssuer, TokenVerificationError
from ..domain.pagination import PaginationDirective, PaginationPolicy
from ..services.pagination import build_pagination
from .errors import ApiError

_http_bearer = HTTPBearer(auto_error=False)


@lru_cache
def _policy_for(settings: Settings) -> PaginationPolicy:
    return PaginationPolicy(
        default_limit=settings.pagination_default_limit,
        max_limit=settings.pagination_max_limit,
    )


def get_app_settings(request: Request) -> Settings:
    settings = getattr(request.app.state, "settings", None)
    return settings if settings is not None else get_settings()


def get_token_issuer(
    request: Request,
    settings: Settings = Depends(get_app_settings),
) -> TokenIssuer:
    issuer = getattr(request.app.state, "token_issuer", None)
    if issuer is None:
        issuer = TokenIssuer.from_settings(settings)
        request.app.state.token_issuer = issuer
    return issuer


def get_password_hasher(
    request: Request,
    settings: Settings = Depends(get_app_settings),
) -> PasswordHasher:
    hasher = getattr(request.app.state, "password_hasher", None)
    if hasher is None:
        hasher = PasswordHasher.from_settings(settings)
        request.app.state.password_hasher = hasher
    return hasher


def get_pagination_policy(settings: Settings = Depends(get_app_settings)) -> PaginationPolicy:
    return _policy_for(settings)


def get_pagination(
    page: Optional[str] = Query(default=None, description="1-based page number"),
    limit: Optional[str] = Query(default=None, description="Page size, capped by the server"),
    policy: PaginationPolicy = Depends(get_pagination_policy),
) -> PaginationDirective:
    # Raw strings so malformed values are corrected instead of rejected with 422.
    return build_pagination(page, limit, policy)


def get_token_claims(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_http_bearer),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> dict[str, Any]:
    if credentials is None or not credentials.credentials:
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "Authentication token missing")
    try:
        return issuer.verify(credentials.credentials)
    except TokenVerificationError as exc:
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "Invalid or expired token") from exc
