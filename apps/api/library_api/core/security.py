"""Security utilities for JWT issuance, verification and password hashing."""

from __future__ import annotations

import time
from collections.abc import Mapping
from datetime import timedelta
from functools import lru_cache
from typing import Any, Dict, List, Optional, Union

import structlog
from jose import ExpiredSignatureError, JWTError, jwt
from jose.constants import ALGORITHMS
from passlib.context import CryptContext
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .config import ConfigurationError, Settings
from .durations import parse_expires_in

logger = structlog.get_logger(__name__)

ALGORITHM = "HS256"
DEFAULT_EXPIRES_IN = "1d"
DEFAULT_BCRYPT_ROUNDS = 10

# Claim each option writes; the claims passed to issue() may not set it too.
_OPTION_CLAIMS = {
    "expires_in": "exp",
    "not_before": "nbf",
    "audience": "aud",
    "issuer": "iss",
    "subject": "sub",
    "jwt_id": "jti",
}


class TokenIssueError(ValueError):
    """Raised when issuance options are invalid or clash with the claims."""


class TokenVerificationError(Exception):
    """Raised when a token fails signature or claim validation."""


class TokenExpiredError(TokenVerificationError):
    """Raised when a token is past its ``exp`` claim."""


class TokenOptions(BaseModel):
    """Signing options; defaults come from settings, callers may override."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    expires_in: Optional[timedelta] = parse_expires_in(DEFAULT_EXPIRES_IN)
    not_before: Optional[timedelta] = None
    algorithm: str = ALGORITHM
    audience: Optional[Union[str, List[str]]] = None
    issuer: Optional[str] = None
    subject: Optional[str] = None
    jwt_id: Optional[str] = None
    headers: Optional[Dict[str, Any]] = None

    @field_validator("expires_in", "not_before", mode="before")
    @classmethod
    def _parse_duration(cls, value: Any) -> Optional[timedelta]:
        if value is None:
            return None
        return parse_expires_in(value)

    @field_validator("algorithm")
    @classmethod
    def _supported_algorithm(cls, value: str) -> str:
        if value not in ALGORITHMS.SUPPORTED:
            raise ValueError(f"unsupported signing algorithm {value!r}")
        return value

    def merge(self, overrides: Optional[Mapping[str, Any]] = None) -> "TokenOptions":
        """Return a copy with ``overrides`` replacing same-named options."""

        if not overrides:
            return self
        # Verification only accepts the default algorithm.
        if "algorithm" in overrides and overrides["algorithm"] != self.algorithm:
            raise TokenIssueError(
                f'Signing algorithm is fixed to "{self.algorithm}" and cannot be overridden'
            )
        merged = {name: getattr(self, name) for name in type(self).model_fields}
        merged.update(overrides)
        try:
            return TokenOptions.model_validate(merged)
        except ValidationError as exc:
            raise TokenIssueError(f"Invalid token options: {exc}") from exc


class TokenIssuer:
    """
    Signs claims into expiring JWT bearer tokens.

    The issuer keeps no record of what it signed; a token's lifetime is
    governed by its ``exp`` claim alone.
    """

    def __init__(
        self,
        secret: str,
        defaults: Optional[TokenOptions] = None,
        verification_key: Optional[str] = None,
    ):
        if not secret or not secret.strip():
            raise ConfigurationError("JWT secret is required to issue tokens")
        self._secret = secret
        self._verification_key = verification_key or secret
        self.defaults = defaults or TokenOptions()

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenIssuer":
        try:
            defaults = TokenOptions(
                expires_in=settings.jwt_expires_in,
                algorithm=settings.jwt_algorithm,
                audience=settings.jwt_audience,
                issuer=settings.jwt_issuer,
            )
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid JWT settings: {exc}") from exc
        return cls(settings.jwt_secret, defaults)

    def issue(
        self,
        claims: Mapping[str, Any],
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> str:
        """
        Sign ``claims`` and return the encoded token.

        Adds ``iat`` and, when the options set them, ``exp``, ``nbf``,
        ``aud``, ``iss``, ``sub`` and ``jti``. Errors raised while encoding
        the claims (for example values that are not JSON serializable)
        propagate unchanged.
        """
        if not isinstance(claims, Mapping):
            raise TypeError("claims must be a mapping")

        options = self.defaults.merge(overrides)
        payload = dict(claims)

        for option_name, claim in _OPTION_CLAIMS.items():
            if getattr(options, option_name) is not None and claim in payload:
                raise TokenIssueError(
                    f'Option "{option_name}" conflicts with the "{claim}" claim already in the payload'
                )

        issued_at = payload.get("iat")
        if issued_at is None:
            issued_at = int(time.time())
        elif isinstance(issued_at, bool) or not isinstance(issued_at, (int, float)):
            raise TokenIssueError('"iat" claim must be a number of seconds since the epoch')
        payload["iat"] = issued_at

        if options.expires_in is not None:
            payload["exp"] = int(issued_at + options.expires_in.total_seconds())
        if options.not_before is not None:
            payload["nbf"] = int(issued_at + options.not_before.total_seconds())
        if options.audience is not None:
            payload["aud"] = options.audience
        if options.issuer is not None:
            payload["iss"] = options.issuer
        if options.subject is not None:
            payload["sub"] = options.subject
        if options.jwt_id is not None:
            payload["jti"] = options.jwt_id

        token = jwt.encode(
            payload,
            self._secret,
            algorithm=options.algorithm,
            headers=options.headers,
        )
        logger.debug(
            "token.issued",
            algorithm=options.algorithm,
            expires_at=payload.get("exp"),
        )
        return token

    def verify(
        self,
        token: str,
        *,
        audience: Optional[str] = None,
        issuer: Optional[str] = None,
    ) -> dict[str, Any]:
        """Decode a token, checking its signature and timing claims."""

        if audience is None:
            default_audience = self.defaults.audience
            audience = default_audience[0] if isinstance(default_audience, list) else default_audience
        if issuer is None:
            issuer = self.defaults.issuer

        try:
            return jwt.decode(
                token,
                self._verification_key,
                algorithms=[self.defaults.algorithm],
                audience=audience,
                issuer=issuer,
            )
        except ExpiredSignatureError as exc:
            raise TokenExpiredError("Token has expired") from exc
        except JWTError as exc:
            raise TokenVerificationError(str(exc)) from exc


@lru_cache
def _password_context(rounds: int) -> CryptContext:
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


def hash_password(password: str, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> str:
    """Hash a plaintext password using bcrypt."""

    if not password:
        raise ValueError("password must not be empty")
    return _password_context(rounds).hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plaintext password against a stored hash."""

    if not plain_password or not hashed_password:
        return False
    try:
        return _password_context(DEFAULT_BCRYPT_ROUNDS).verify(plain_password, hashed_password)
    except ValueError:
        return False


class PasswordHasher:
    """Hashes passwords at the bcrypt cost configured for the application."""

    def __init__(self, rounds: int = DEFAULT_BCRYPT_ROUNDS):
        self.rounds = rounds

    @classmethod
    def from_settings(cls, settings: Settings) -> "PasswordHasher":
        return cls(settings.bcrypt_salt_rounds)

    def hash(self, password: str) -> str:
        return hash_password(password, self.rounds)

    def verify(self, plain_password: str, hashed_password: str) -> bool:
        return verify_password(plain_password, hashed_password)
