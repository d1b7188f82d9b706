"""
Friendship schemas
"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field, field_serializer

from app.utils.time_utils import to_utc_isoformat


class FriendSummary(BaseModel):
    """Friend basic info embedded in friendship listings"""
    id: int
    username: str

    class Config:
        from_attributes = True


class FriendshipResponse(BaseModel):
    """One directed friendship edge"""
    id: int
    user_id: int
    friend_id: int
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_serializer('created_at', 'updated_at')
    def serialize_datetime(self, value: Optional[datetime]) -> Optional[str]:
        return to_utc_isoformat(value)

    class Config:
        from_attributes = True


class FriendshipWithFriend(FriendshipResponse):
    """Friendship edge with the other user's summary"""
    friend: Optional[FriendSummary] = None


class FriendshipCreate(BaseModel):
    """Targets of a mutual friendship request; any combination may be given"""
    user_ids: List[int] = Field(default_factory=list)
    emails: List[str] = Field(default_factory=list)
    usernames: List[str] = Field(default_factory=list)


class FriendshipBulkReject(BaseModel):
    """Friend ids whose edges should be rejected"""
    model_config = ConfigDict(populate_by_name=True)

    user_ids: List[int] = Field(..., alias="userIds")


class FriendshipListEnvelope(BaseModel):
    ok: bool = True
    message: str
    friendships: List[FriendshipWithFriend]


class FriendshipsEnvelope(BaseModel):
    ok: bool = True
    message: str
    friendships: List[FriendshipResponse]


class FriendshipEnvelope(BaseModel):
    ok: bool = True
    message: str
    friendship: FriendshipResponse


class MessageEnvelope(BaseModel):
    """Response carrying only the outcome"""
    ok: bool = True
    message: str
