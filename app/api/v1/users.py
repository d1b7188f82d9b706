"""
User management endpoints
"""
from typing import Dict, Optional

from fastapi import APIRouter, Depends, Query
from app.core.dependencies import (
    get_current_admin,
    get_current_user,
    get_user_service,
    require_self_or_admin,
)
from app.models.user import User
from app.schemas.social import MessageEnvelope
from app.schemas.user import (
    UserAdminUpdate,
    UserSelfUpdate,
    UserEnvelope,
    UsersEnvelope,
    PermissionActions,
    MetadataUpdate,
    MetadataDelete,
)
from app.services.user_service import UserService, user_to_json

router = APIRouter()


@router.get("", response_model=UsersEnvelope)
async def list_users(
    scope: Optional[str] = Query(None, description="active, inactive, admins or non_admins"),
    current_admin: User = Depends(get_current_admin),
    user_service: UserService = Depends(get_user_service)
):
    """List users (admin only)"""
    users = user_service.list_users(scope)
    return UsersEnvelope(message="Found users", users=[user_to_json(u) for u in users])


@router.get("/{user_id}", response_model=UserEnvelope)
async def get_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service)
):
    require_self_or_admin(current_user, user_id)
    user = user_service.get_user_or_404(user_id)
    return UserEnvelope(message="Found user", user=user_to_json(user))


@router.put("/{user_id}", response_model=UserEnvelope)
async def update_user(
    user_id: int,
    update_data: Dict,
    current_user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service)
):
    """
    Update a user

    Admins may change ``is_active`` and ``is_admin``; for everyone else those
    fields are ignored. A blank password keeps the current one.
    """
    require_self_or_admin(current_user, user_id)
    user = user_service.get_user_or_404(user_id)

    if current_user.is_admin:
        changes = UserAdminUpdate.model_validate(update_data)
    else:
        changes = UserSelfUpdate.model_validate(update_data)

    user = user_service.update_user(user, changes)
    return UserEnvelope(message="User updated", user=user_to_json(user))


@router.put("/{user_id}/permissions", response_model=UserEnvelope)
async def update_permissions(
    user_id: int,
    permissions: Dict[str, PermissionActions],
    current_admin: User = Depends(get_current_admin),
    user_service: UserService = Depends(get_user_service)
):
    """Set the actions granted per resource name (admin only)"""
    user = user_service.get_user_or_404(user_id)
    user = user_service.update_permissions(
        user,
        {name: entry.model_dump() for name, entry in permissions.items()}
    )
    return UserEnvelope(message="User permissions updated", user=user_to_json(user))


@router.delete("/{user_id}/permissions/{resource_name}", response_model=MessageEnvelope)
async def delete_permission(
    user_id: int,
    resource_name: str,
    current_admin: User = Depends(get_current_admin),
    user_service: UserService = Depends(get_user_service)
):
    user = user_service.get_user_or_404(user_id)
    user_service.delete_permission(user, resource_name)
    return MessageEnvelope(message=f"Permission for '{resource_name}' deleted")


@router.put("/{user_id}/metadata", response_model=UserEnvelope)
async def update_metadata(
    user_id: int,
    request: MetadataUpdate,
    current_user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service)
):
    require_self_or_admin(current_user, user_id)
    user = user_service.get_user_or_404(user_id)
    user_service.update_metadata(user, request.metadata)
    return UserEnvelope(message="User metadata updated", user=user_to_json(user))


@router.delete("/{user_id}/metadata", response_model=MessageEnvelope)
async def delete_metadata(
    user_id: int,
    request: MetadataDelete,
    current_user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service)
):
    require_self_or_admin(current_user, user_id)
    user = user_service.get_user_or_404(user_id)
    deleted = user_service.delete_metadata(user, request.names)
    return MessageEnvelope(message=f"Deleted {deleted} metadata entr{'y' if deleted == 1 else 'ies'}")
