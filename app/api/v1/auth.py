"""
Authentication endpoints - registration and JWT issue
"""
from fastapi import APIRouter, Depends, Request
from app.core.config import settings
from app.core.dependencies import get_auth_service, get_current_user, get_user_service
from app.core.limiter import limiter
from app.models.user import User
from app.schemas.auth import TokenRequest, TokenEnvelope
from app.schemas.user import UserRegister, UserEnvelope
from app.services.auth_service import AuthService
from app.services.user_service import UserService, user_to_json

router = APIRouter()


@router.post("/register", response_model=UserEnvelope)
async def register(
    request: UserRegister,
    user_service: UserService = Depends(get_user_service)
):
    """
    Create an account

    - **username**: URL-safe after trimming
    - **email**: normalized to lower case
    - **password**: stored as a bcrypt hash
    """
    user = user_service.register(
        username=request.username,
        email=request.email,
        password=request.password,
        phone=request.phone
    )
    return UserEnvelope(message="User registered", user=user_to_json(user))


@router.post("/token", response_model=TokenEnvelope)
@limiter.limit(settings.AUTH_RATE_LIMIT)
async def create_token(
    request: Request,
    credentials: TokenRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """Exchange a username/email and password for an access token"""
    access_token = auth_service.login(credentials.login, credentials.password)
    return TokenEnvelope(message="Access token created", access_token=access_token)


@router.get("/me", response_model=UserEnvelope)
async def get_current_user_info(
    current_user: User = Depends(get_current_user)
):
    """
    Get current authenticated user information

    Requires Bearer token in Authorization header.
    """
    return UserEnvelope(message="Found current user", user=user_to_json(current_user))
