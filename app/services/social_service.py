"""
Social service - mutual friendships and their status transitions
"""
import logging
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from app.core.errors import BadRequestError, ConflictError, NotFoundError
from app.models.social import (
    Friendship,
    FriendshipStatus,
    TERMINAL_STATUSES,
    effective_status,
)
from app.models.user import User
from app.services.user_service import normalize_email, normalize_username

logger = logging.getLogger(__name__)


class SocialService:
    """Service for friendship operations"""

    def __init__(self, db: Session):
        self.db = db

    # Lookups

    def get_friendships(self, user_id: int) -> List[Friendship]:
        """All edges leaving ``user_id``, with the friend loaded"""
        self._require_user(user_id)
        return self.db.query(Friendship).options(
            joinedload(Friendship.friend)
        ).filter(
            Friendship.user_id == user_id
        ).order_by(Friendship.id).all()

    def get_friendship(self, friendship_id: int) -> Friendship:
        friendship = self.db.query(Friendship).filter(Friendship.id == friendship_id).first()
        if not friendship:
            raise NotFoundError(f"Friendship '{friendship_id}' not found")
        return friendship

    def get_edge(self, user_id: int, friend_id: int) -> Optional[Friendship]:
        return self.db.query(Friendship).filter(
            Friendship.user_id == user_id,
            Friendship.friend_id == friend_id
        ).first()

    def get_pair(self, user_id: int, friend_id: int) -> Tuple[Optional[Friendship], Optional[Friendship]]:
        """(user -> friend, friend -> user) edges"""
        return self.get_edge(user_id, friend_id), self.get_edge(friend_id, user_id)

    def are_friends(self, user_id: int, other_user_id: int) -> bool:
        """Check if two users are friends (both sides accepted)"""
        edge, reciprocal = self.get_pair(user_id, other_user_id)
        if edge is None:
            return False
        return effective_status(edge, reciprocal) == FriendshipStatus.ACCEPTED

    # Creation

    def resolve_users(
        self,
        user_ids: Iterable[int] = (),
        emails: Iterable[str] = (),
        usernames: Iterable[str] = ()
    ) -> List[User]:
        """Users matching any of the identifiers; unmatched identifiers are skipped"""
        filters = []
        user_ids = list(user_ids or [])
        emails = [normalize_email(email) for email in emails or [] if email]
        usernames = [normalize_username(name) for name in usernames or [] if name]

        if user_ids:
            filters.append(User.id.in_(user_ids))
        if emails:
            filters.append(User.email.in_(emails))
        if usernames:
            filters.append(User.username.in_(usernames))

        if not filters:
            return []
        return self.db.query(User).filter(or_(*filters)).order_by(User.id).all()

    def create_mutual_friendships(
        self,
        user_id: int,
        user_ids: Iterable[int] = (),
        emails: Iterable[str] = (),
        usernames: Iterable[str] = ()
    ) -> List[Friendship]:
        """
        Befriend every resolved target.

        New pairs get ``user -> target`` REQUESTED and ``target -> user``
        PENDING. A pair whose ``user -> target`` edge already exists is left
        as is. All new rows are committed together. Returns the user's edge
        for each target.
        """
        user_ids = list(user_ids or [])
        emails = list(emails or [])
        usernames = list(usernames or [])

        if not (user_ids or emails or usernames):
            raise BadRequestError("Provide at least one of user_ids, emails or usernames")

        self._require_user(user_id)

        targets = self.resolve_users(user_ids, emails, usernames)
        if not targets:
            raise NotFoundError("No matching users found")

        others = [target for target in targets if target.id != user_id]
        if not others:
            raise BadRequestError("Cannot create a friendship with yourself")
        targets = others

        friendships = []
        for target in targets:
            edge, reciprocal = self.get_pair(user_id, target.id)
            if edge is not None:
                friendships.append(edge)
                continue

            edge = Friendship(
                user_id=user_id,
                friend_id=target.id,
                status=FriendshipStatus.REQUESTED.value
            )
            self.db.add(edge)
            if reciprocal is None:
                self.db.add(Friendship(
                    user_id=target.id,
                    friend_id=user_id,
                    status=FriendshipStatus.PENDING.value
                ))
            friendships.append(edge)

        self._commit("Friendship already exists")
        for friendship in friendships:
            self.db.refresh(friendship)

        logger.info(f"User {user_id} requested friendships with {[t.id for t in targets]}")
        return friendships

    # Transitions

    def change_friendship_status(
        self,
        user_id: int,
        friend_id: int,
        new_status: FriendshipStatus
    ) -> Friendship:
        """
        Move the ``user -> friend`` edge to ``new_status``.

        Accepting also accepts a reciprocal edge that is still requested or
        pending. Declining, rejecting and banning only touch the acting edge.
        """
        new_status = self._coerce_status(new_status)
        self._require_user(user_id)
        self._require_user(friend_id)

        edge, reciprocal = self.get_pair(user_id, friend_id)
        if edge is None:
            raise ConflictError(f"No friendship between users '{user_id}' and '{friend_id}'")

        if new_status == FriendshipStatus.ACCEPTED:
            if edge.status == FriendshipStatus.REQUESTED.value:
                raise ConflictError("Cannot accept a friendship you requested")

            edge.status = new_status.value
            if reciprocal is not None and reciprocal.status in (
                FriendshipStatus.REQUESTED.value,
                FriendshipStatus.PENDING.value,
            ):
                reciprocal.status = FriendshipStatus.ACCEPTED.value
        else:
            edge.status = new_status.value

        self._commit("Friendship update conflict")
        self.db.refresh(edge)

        logger.info(f"Friendship {user_id} -> {friend_id} set to '{new_status.value}'")
        return edge

    def reject_friendship(self, user_id: int, friend_id: int) -> Friendship:
        """Mark the ``user -> friend`` edge rejected; the row is kept"""
        edge = self.get_edge(user_id, friend_id)
        if edge is None:
            raise NotFoundError(f"No friendship between users '{user_id}' and '{friend_id}'")

        edge.status = FriendshipStatus.REJECTED.value
        self.db.commit()
        self.db.refresh(edge)

        logger.info(f"Friendship {user_id} -> {friend_id} rejected")
        return edge

    def reject_friendships(self, user_id: int, friend_ids: Iterable[int]) -> List[Friendship]:
        """Reject every edge from ``user_id`` to one of ``friend_ids``; unmatched ids are ignored"""
        friend_ids = list(friend_ids or [])
        if not friend_ids:
            raise BadRequestError("userIds must contain at least one user id")

        edges = self.db.query(Friendship).filter(
            Friendship.user_id == user_id,
            Friendship.friend_id.in_(friend_ids)
        ).order_by(Friendship.id).all()

        for edge in edges:
            edge.status = FriendshipStatus.REJECTED.value

        self.db.commit()
        for edge in edges:
            self.db.refresh(edge)

        logger.info(f"User {user_id} rejected {len(edges)} friendship(s)")
        return edges

    def _coerce_status(self, value) -> FriendshipStatus:
        try:
            status = FriendshipStatus(value)
        except ValueError:
            raise BadRequestError(f"Unknown friendship status '{value}'")
        if status not in TERMINAL_STATUSES:
            raise BadRequestError(f"Friendship status cannot be set to '{status.value}'")
        return status

    def _require_user(self, user_id: int) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFoundError(f"User '{user_id}' not found")
        return user

    def _commit(self, message: str) -> None:
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError(message)
