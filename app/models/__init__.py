"""
Database models for Cred Auth API

All models should be imported here for Alembic to detect them.
"""
from app.models.user import User, Resource, Permission, Metadata
from app.models.social import Friendship, FriendshipStatus

__all__ = [
    # User
    "User",
    "Resource",
    "Permission",
    "Metadata",
    # Social
    "Friendship",
    "FriendshipStatus",
]
