"""
Resource endpoints - the things permissions are granted on
"""
from fastapi import APIRouter, Depends

from app.core.dependencies import get_current_admin, get_current_user, get_user_service
from app.models.user import User
from app.schemas.user import ResourceCreate, ResourceEnvelope, ResourceResponse, ResourcesEnvelope
from app.services.user_service import UserService

router = APIRouter()


@router.get("", response_model=ResourcesEnvelope)
async def list_resources(
    current_user: User = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service)
):
    resources = user_service.list_resources()
    return ResourcesEnvelope(
        message="Found resources",
        resources=[ResourceResponse.model_validate(r) for r in resources]
    )


@router.post("", response_model=ResourceEnvelope)
async def create_resource(
    request: ResourceCreate,
    current_admin: User = Depends(get_current_admin),
    user_service: UserService = Depends(get_user_service)
):
    """Create a resource and the actions it accepts (admin only)"""
    resource = user_service.create_resource(request.name, request.actions)
    return ResourceEnvelope(
        message="Resource created",
        resource=ResourceResponse.model_validate(resource)
    )
