"""User schemas for request/response validation"""
from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List, Dict, Any


class UserRegister(BaseModel):
    """Schema for self-registration"""
    username: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=1)
    phone: Optional[str] = None


class UserSelfUpdate(BaseModel):
    """
    Fields a user may change on their own account.

    A blank password keeps the existing one.
    """
    username: Optional[str] = Field(None, max_length=255)
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    phone: Optional[str] = None
    facebook_id: Optional[str] = None
    github_id: Optional[str] = None
    twitter_id: Optional[str] = None
    google_id: Optional[str] = None


class UserAdminUpdate(UserSelfUpdate):
    """Admins may additionally (de)activate accounts and grant admin"""
    is_active: Optional[bool] = None
    is_admin: Optional[bool] = None


class PermissionActions(BaseModel):
    actions: List[str]


class MetadataItem(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    value: Optional[str] = None


class MetadataUpdate(BaseModel):
    metadata: List[MetadataItem]


class MetadataDelete(BaseModel):
    names: List[str]


class ResourceCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    actions: List[str] = Field(default_factory=list)


class ResourceResponse(BaseModel):
    id: int
    name: str
    actions: List[str]

    class Config:
        from_attributes = True


class UserEnvelope(BaseModel):
    ok: bool = True
    message: str
    user: Dict[str, Any]


class UsersEnvelope(BaseModel):
    ok: bool = True
    message: str
    users: List[Dict[str, Any]]


class ResourceEnvelope(BaseModel):
    ok: bool = True
    message: str
    resource: ResourceResponse


class ResourcesEnvelope(BaseModel):
    ok: bool = True
    message: str
    resources: List[ResourceResponse]
