"""
Authentication Service - credential checks and JWT management
"""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from app.core.errors import UnauthorizedError
from app.core.security import create_access_token, decode_access_token
from app.models.user import User
from app.services.user_service import UserService, token_payload

logger = logging.getLogger(__name__)


class AuthService:
    """Service for authentication operations"""

    def __init__(self, db: Session):
        self.db = db
        self.users = UserService(db)

    def login(self, login: str, password: str) -> str:
        """
        Verify credentials and return an access token

        Raises:
            UnauthorizedError: unknown login, wrong password or inactive account
        """
        user = self.users.authenticate(login, password)
        if not user:
            logger.info(f"Failed login attempt for: {login}")
            raise UnauthorizedError("Invalid login or password")
        if not user.is_active:
            raise UnauthorizedError("User account is inactive")

        self.users.login_update(user)
        logger.info(f"Authentication successful for user: {user.id}")
        return self.create_access_token_for_user(user)

    def create_access_token_for_user(self, user: User) -> str:
        """Create JWT access token for user"""
        return create_access_token(data=token_payload(user))

    def get_user_from_token(self, token: str) -> Optional[User]:
        """Resolve the user a token was issued for, or None"""
        payload = decode_access_token(token)
        if not payload or not payload.get("sub"):
            return None
        try:
            user_id = int(payload["sub"])
        except (TypeError, ValueError):
            return None
        return self.users.get_user_by_id(user_id)
