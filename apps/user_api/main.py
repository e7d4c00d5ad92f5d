"""user-api entrypoint and HTTP route wiring."""

from __future__ import annotations

import logging

import uvicorn
from fastapi import FastAPI

from store_users.application.services.credential_service import UserCredentialService
from store_users.application.services.user_lifecycle_service import UserLifecycleService
from store_users.config.settings import load_settings
from store_users.infrastructure.db.session import create_session_factory
from store_users.infrastructure.db.user_repository import SqlAlchemyUserRepository
from store_users.infrastructure.http.credential_router import build_credential_router
from store_users.infrastructure.http.user_router import build_user_router
from store_users.infrastructure.logging import configure_logging
from store_users.infrastructure.security.password_hasher import BcryptPasswordHasher

logger = logging.getLogger(__name__)


def build_user_service(
    database_url: str,
    *,
    allow_deleted_email_reuse: bool = True,
) -> UserLifecycleService:
    """Build user lifecycle service with SQLAlchemy-backed dependencies."""

    session_factory = create_session_factory(database_url)
    return UserLifecycleService(
        users=SqlAlchemyUserRepository(session_factory),
        password_hasher=BcryptPasswordHasher(),
        allow_deleted_email_reuse=allow_deleted_email_reuse,
    )


def build_credential_service(database_url: str) -> UserCredentialService:
    """Build credential verification service with SQLAlchemy-backed dependencies."""

    session_factory = create_session_factory(database_url)
    return UserCredentialService(
        users=SqlAlchemyUserRepository(session_factory),
        password_hasher=BcryptPasswordHasher(),
    )


def create_app(
    *,
    user_service: UserLifecycleService | None = None,
    credential_service: UserCredentialService | None = None,
) -> FastAPI:
    """Create FastAPI app serving user record and credential endpoints."""

    if user_service is None or credential_service is None:
        settings = load_settings()
        configure_logging(level=settings.log_level)
        if user_service is None:
            user_service = build_user_service(
                settings.database_url,
                allow_deleted_email_reuse=settings.allow_deleted_email_reuse,
            )
        if credential_service is None:
            credential_service = build_credential_service(settings.database_url)
        logger.info(
            "user_api_configured allow_deleted_email_reuse=%s",
            settings.allow_deleted_email_reuse,
        )

    app = FastAPI()
    app.include_router(build_user_router(user_service=user_service))
    app.include_router(build_credential_router(credential_service=credential_service))
    return app


def run_asgi_server(*, host: str, port: int) -> None:
    """Run user-api as a long-lived ASGI process using application factory mode."""

    uvicorn.run(
        "apps.user_api.main:create_app",
        host=host,
        port=port,
        factory=True,
    )


def main() -> None:
    """Run user-api runtime process."""

    settings = load_settings()
    run_asgi_server(host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    main()
