"""FastAPI router for trusted credential verification."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from store_users.application.dto.user_models import CredentialVerifyBody, UserResponse
from store_users.application.services.credential_service import UserCredentialService


def build_credential_router(*, credential_service: UserCredentialService) -> APIRouter:
    """Build router exposing the credential check used by internal auth flows."""

    router = APIRouter(tags=["credentials"])

    @router.post("/users/credentials/verify", response_model=UserResponse)
    async def verify_credentials(body: CredentialVerifyBody) -> UserResponse:
        view = await credential_service.verify_credentials(
            email=body.email,
            password=body.password,
        )
        if view is None:
            raise HTTPException(status_code=401, detail="invalid credentials")
        return UserResponse.model_validate(view)

    return router
