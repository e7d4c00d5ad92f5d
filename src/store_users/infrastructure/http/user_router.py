"""FastAPI router exposing user record lifecycle endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from store_users.application.dto.user_models import (
    UserCreateBody,
    UserListResponse,
    UserPatchBody,
    UserResponse,
)
from store_users.application.services.user_lifecycle_service import (
    UserCreateRequest,
    UserLifecycleService,
)
from store_users.domain.users.errors import (
    AlreadyDeletedError,
    EmailConflictError,
    UserIdConflictError,
    UserLifecycleError,
    UserNotFoundError,
    UserValidationError,
)
from store_users.domain.users.lifecycle import project_for_read
from store_users.domain.users.record import UserRecord


def build_user_router(*, user_service: UserLifecycleService) -> APIRouter:
    """Build router exposing user create/read/update/soft-delete endpoints."""

    router = APIRouter(tags=["users"])

    @router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
    async def create_user(body: UserCreateBody) -> UserResponse:
        try:
            created = await user_service.create_user(
                payload=UserCreateRequest(
                    email=body.email,
                    password=body.password,
                    last_name=body.last_name,
                    api_token=body.api_token,
                    metadata=body.metadata,
                    user_id=body.id,
                )
            )
        except UserLifecycleError as exc:
            raise _to_http_error(exc) from exc
        return _to_response(created)

    @router.get("/users", response_model=UserListResponse)
    async def list_users() -> UserListResponse:
        users = await user_service.list_active_users()
        return UserListResponse(items=[_to_response(user) for user in users], total=len(users))

    @router.get("/users/{user_id}", response_model=UserResponse)
    async def get_user(user_id: str) -> UserResponse:
        try:
            user = await user_service.get_user(user_id=user_id)
        except UserLifecycleError as exc:
            raise _to_http_error(exc) from exc
        return _to_response(user)

    @router.patch("/users/{user_id}", response_model=UserResponse)
    async def update_user(user_id: str, body: UserPatchBody) -> UserResponse:
        try:
            updated = await user_service.update_user(
                user_id=user_id,
                patch=body.model_dump(exclude_unset=True),
            )
        except UserLifecycleError as exc:
            raise _to_http_error(exc) from exc
        return _to_response(updated)

    @router.delete("/users/{user_id}", response_model=UserResponse)
    async def delete_user(user_id: str) -> UserResponse:
        try:
            deleted = await user_service.soft_delete_user(user_id=user_id)
        except UserLifecycleError as exc:
            raise _to_http_error(exc) from exc
        return _to_response(deleted)

    return router


def _to_response(user: UserRecord) -> UserResponse:
    return UserResponse.model_validate(project_for_read(user))


def _to_http_error(exc: UserLifecycleError) -> HTTPException:
    if isinstance(exc, UserNotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, EmailConflictError | UserIdConflictError | AlreadyDeletedError):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, UserValidationError):
        return HTTPException(status_code=422, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))
