"""
FastAPI dependencies: database-bound services and the current user
"""
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.errors import ForbiddenError, UnauthorizedError
from app.database import get_db
from app.models.user import User
from app.services.auth_service import AuthService
from app.services.social_service import SocialService
from app.services.user_service import UserService

bearer_scheme = HTTPBearer(auto_error=False)


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    return UserService(db=db)


def get_social_service(db: Session = Depends(get_db)) -> SocialService:
    return SocialService(db=db)


def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    return AuthService(db=db)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service)
) -> User:
    """The active user identified by the bearer token"""
    if credentials is None:
        raise UnauthorizedError("Missing access token")

    user = auth_service.get_user_from_token(credentials.credentials)
    if user is None:
        raise UnauthorizedError("Could not validate credentials")
    if not user.is_active:
        raise ForbiddenError("User account is inactive")
    return user


def get_current_admin(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_admin:
        raise ForbiddenError("Admin access required")
    return current_user


def require_self_or_admin(current_user: User, user_id: int) -> None:
    """Only admins may act on another user's records"""
    if current_user.id != user_id and not current_user.is_admin:
        raise ForbiddenError("Not allowed to act on another user")
