"""
Social features models - directed friendship edges
"""
import enum
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from app.database import Base
from app.utils.time_utils import utc_now


class FriendshipStatus(str, enum.Enum):
    """Lifecycle states of one side of a friendship"""
    REQUESTED = "requested"
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    REJECTED = "rejected"
    BANNED = "banned"


# States a user can move their own edge into
TERMINAL_STATUSES = (
    FriendshipStatus.ACCEPTED,
    FriendshipStatus.DECLINED,
    FriendshipStatus.REJECTED,
    FriendshipStatus.BANNED,
)

# Any of these on either side overrides the pair
BLOCKING_STATUSES = (
    FriendshipStatus.DECLINED,
    FriendshipStatus.REJECTED,
    FriendshipStatus.BANNED,
)


class Friendship(Base):
    """One direction of a friendship: user_id -> friend_id"""
    __tablename__ = "friendships"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    friend_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)

    # One of FriendshipStatus values
    status = Column(String(50), default=FriendshipStatus.REQUESTED.value, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    # Unique constraint to prevent duplicate edges
    __table_args__ = (
        UniqueConstraint('user_id', 'friend_id', name='unique_friendship'),
    )

    # Relationships
    user = relationship("User", foreign_keys=[user_id], back_populates="friendships")
    friend = relationship("User", foreign_keys=[friend_id])


def effective_status(edge: Friendship, reciprocal: Friendship = None) -> FriendshipStatus:
    """
    Status of the pair as seen from ``edge``.

    A declined/rejected/banned side wins regardless of the other side; the pair
    is accepted only when both sides are accepted.
    """
    own = FriendshipStatus(edge.status)
    other = FriendshipStatus(reciprocal.status) if reciprocal is not None else None

    if own in BLOCKING_STATUSES:
        return own
    if other in BLOCKING_STATUSES:
        return other
    if own == FriendshipStatus.ACCEPTED and other != FriendshipStatus.ACCEPTED:
        return FriendshipStatus.PENDING
    return own
