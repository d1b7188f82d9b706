"""
API v1 routes aggregation
"""
from fastapi import APIRouter
from app.api.v1 import auth, users, resources, social

api_router = APIRouter()

# Authentication
api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])

# Users
api_router.include_router(users.router, prefix="/users", tags=["users"])

# Resources
api_router.include_router(resources.router, prefix="/resources", tags=["resources"])

# Friendships
api_router.include_router(social.router, tags=["friendships"])
