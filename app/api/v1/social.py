"""
Friendship API endpoints
"""
from fastapi import APIRouter, Depends

from app.models.user import User
from app.models.social import FriendshipStatus
from app.core.dependencies import get_current_user, get_social_service, require_self_or_admin
from app.schemas.social import (
    FriendshipCreate,
    FriendshipBulkReject,
    FriendshipResponse,
    FriendshipWithFriend,
    FriendshipListEnvelope,
    FriendshipsEnvelope,
    FriendshipEnvelope,
    MessageEnvelope,
)
from app.services.social_service import SocialService

router = APIRouter()


@router.get("/users/{user_id}/friendships", response_model=FriendshipListEnvelope)
async def get_friendships(
    user_id: int,
    current_user: User = Depends(get_current_user),
    social_service: SocialService = Depends(get_social_service)
):
    """List a user's friendships with a summary of each friend"""
    require_self_or_admin(current_user, user_id)
    friendships = social_service.get_friendships(user_id)
    return FriendshipListEnvelope(
        message="Found user friendships",
        friendships=[FriendshipWithFriend.model_validate(f) for f in friendships]
    )


@router.post("/users/{user_id}/friendships", response_model=FriendshipsEnvelope)
async def post_friendships(
    user_id: int,
    request: FriendshipCreate,
    current_user: User = Depends(get_current_user),
    social_service: SocialService = Depends(get_social_service)
):
    """Request friendships with users given by id, email or username"""
    require_self_or_admin(current_user, user_id)
    friendships = social_service.create_mutual_friendships(
        user_id,
        user_ids=request.user_ids,
        emails=request.emails,
        usernames=request.usernames
    )
    return FriendshipsEnvelope(
        message="User friendships created",
        friendships=[FriendshipResponse.model_validate(f) for f in friendships]
    )


@router.get("/friendships/{friendship_id}", response_model=FriendshipEnvelope)
async def get_friendship(
    friendship_id: int,
    current_user: User = Depends(get_current_user),
    social_service: SocialService = Depends(get_social_service)
):
    """Fetch one friendship edge; either side of it may read it"""
    friendship = social_service.get_friendship(friendship_id)
    if current_user.id != friendship.friend_id:
        require_self_or_admin(current_user, friendship.user_id)
    return FriendshipEnvelope(
        message="Friendship found",
        friendship=FriendshipResponse.model_validate(friendship)
    )


@router.delete("/users/{user_id}/friendships/{friend_id}", response_model=MessageEnvelope)
async def delete_friendship(
    user_id: int,
    friend_id: int,
    current_user: User = Depends(get_current_user),
    social_service: SocialService = Depends(get_social_service)
):
    """Reject a friendship (the row is kept)"""
    require_self_or_admin(current_user, user_id)
    social_service.reject_friendship(user_id, friend_id)
    return MessageEnvelope(message="Friendship rejected")


@router.delete("/users/{user_id}/friendships", response_model=FriendshipsEnvelope)
async def delete_friendships(
    user_id: int,
    request: FriendshipBulkReject,
    current_user: User = Depends(get_current_user),
    social_service: SocialService = Depends(get_social_service)
):
    """Reject the user's friendships with every listed user"""
    require_self_or_admin(current_user, user_id)
    friendships = social_service.reject_friendships(user_id, request.user_ids)
    return FriendshipsEnvelope(
        message="Friendships rejected.",
        friendships=[FriendshipResponse.model_validate(f) for f in friendships]
    )


def update_friendship_status(new_status: FriendshipStatus):
    """Build the endpoint that moves the user's edge to ``new_status``"""

    async def endpoint(
        user_id: int,
        friend_id: int,
        current_user: User = Depends(get_current_user),
        social_service: SocialService = Depends(get_social_service)
    ):
        require_self_or_admin(current_user, user_id)
        friendship = social_service.change_friendship_status(user_id, friend_id, new_status)
        return FriendshipEnvelope(
            message=f"Friendship status updated to '{new_status.value}'",
            friendship=FriendshipResponse.model_validate(friendship)
        )

    endpoint.__name__ = f"update_friendship_status_{new_status.value}"
    return endpoint


STATUS_ACTIONS = {
    "accept": FriendshipStatus.ACCEPTED,
    "decline": FriendshipStatus.DECLINED,
    "reject": FriendshipStatus.REJECTED,
    "ban": FriendshipStatus.BANNED,
}

for action, new_status in STATUS_ACTIONS.items():
    router.add_api_route(
        f"/users/{{user_id}}/friendships/{{friend_id}}/{action}",
        update_friendship_status(new_status),
        methods=["PUT"],
        response_model=FriendshipEnvelope,
        name=f"{action}_friendship",
    )
