from __future__ import annotations

from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.errors import register_exception_handlers
from .api.routes import health
from .core.config import Settings, get_settings, validate_settings
from .core.logging import configure_logging
from .core.security import PasswordHasher, TokenIssuer

logger = structlog.get_logger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the API application; invalid settings abort startup."""

    if settings is None:
        settings = get_settings()
    else:
        validate_settings(settings)

    configure_logging(settings.log_level, settings.log_json)

    # Built eagerly so signing misconfiguration surfaces before serving traffic.
    issuer = TokenIssuer.from_settings(settings)

    app = FastAPI(title=settings.app_name)
    app.state.settings = settings
    app.state.token_issuer = issuer
    app.state.password_hasher = PasswordHasher.from_settings(settings)

    allow_origins = settings.backend_cors_origins or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials="*" not in allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(health.router, prefix=settings.api_prefix)

    logger.info("app.created", app_env=settings.app_env, api_prefix=settings.api_prefix)
    return app
