"""
User service - registration, profile updates, permissions and metadata
"""
import logging
import re
from typing import Dict, Iterable, List, Optional, Union

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.core.errors import BadRequestError, ConflictError, NotFoundError
from app.core.security import get_password_hash, verify_password
from app.models.user import User, Resource, Permission, Metadata
from app.schemas.user import UserAdminUpdate, UserSelfUpdate, MetadataItem
from app.utils.time_utils import utc_now, to_utc_isoformat

logger = logging.getLogger(__name__)

URL_SAFE_PATTERN = re.compile(r'^[A-Za-z0-9_-]+$')

# Listing filters
USER_SCOPES = {
    "active": User.is_active.is_(True),
    "inactive": User.is_active.is_(False),
    "admins": User.is_admin.is_(True),
    "non_admins": User.is_admin.is_(False),
}

SOCIAL_ID_FIELDS = ("facebook_id", "github_id", "twitter_id", "google_id")


def normalize_username(value: Optional[str]) -> str:
    """Trim and base64url-escape a username (``+`` -> ``-``, ``/`` -> ``_``, no padding)"""
    if not value:
        return ""
    return value.strip().replace("+", "-").replace("/", "_").replace("=", "")


def normalize_email(value: Optional[str]) -> str:
    """Trim, lowercase and drop a ``+tag`` extension from the local part"""
    if not value:
        return ""
    email = value.strip().lower()
    local, sep, domain = email.partition("@")
    if sep and "+" in local:
        local = local.split("+", 1)[0]
    return f"{local}{sep}{domain}"


def validate_username(username: str) -> None:
    if not username:
        raise BadRequestError("Username cannot be blank.")
    if not URL_SAFE_PATTERN.match(username):
        raise BadRequestError("Username must be URL safe.")


def token_permissions(permissions: Iterable[Permission], include_id: bool = False) -> Dict[str, Dict]:
    """
    Format permissions keyed by resource name.

    Input is a user's list of Permission rows; output looks like::

        {
            "my-amazing-resource": {"actions": ["read:active"]},
            "some-other-resource": {"actions": ["admin", "write:new"]},
        }

    ``include_id`` adds the permission id next to ``actions``.
    """
    formatted = {}
    for permission in permissions or []:
        attrs = {"actions": list(permission.actions or [])}
        if include_id:
            attrs["id"] = permission.id
        formatted[permission.name] = attrs
    return formatted


def token_payload(user: User) -> Dict:
    """Limited user data carried in the access token"""
    return {
        "sub": str(user.id),
        "username": user.username,
        "is_active": user.is_active,
        "is_admin": user.is_admin,
        "permissions": token_permissions(user.permissions),
    }


def user_to_json(user: User) -> Dict:
    """Public representation of a user; social ids only appear when set"""
    props = {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "phone": user.phone,
        "is_active": user.is_active,
        "is_admin": user.is_admin,
        "login_at": to_utc_isoformat(user.login_at),
        "created_at": to_utc_isoformat(user.created_at),
        "updated_at": to_utc_isoformat(user.updated_at),
        "permissions": token_permissions(user.permissions, include_id=True),
    }

    if user.metadata_entries:
        props["metadata"] = {entry.name: entry.value for entry in user.metadata_entries}

    for field in SOCIAL_ID_FIELDS:
        value = getattr(user, field)
        if value:
            props[field] = value

    return props


class UserService:
    """Service for user account operations"""

    def __init__(self, db: Session):
        self.db = db

    def get_user_by_id(self, user_id: int) -> Optional[User]:
        """Get user by ID"""
        return self.db.query(User).filter(User.id == user_id).first()

    def get_user_or_404(self, user_id: int) -> User:
        user = self.get_user_by_id(user_id)
        if not user:
            raise NotFoundError(f"User '{user_id}' not found")
        return user

    def get_user_by_login(self, login: str) -> Optional[User]:
        """Get user by username or email"""
        return self.db.query(User).filter(
            or_(
                User.username == normalize_username(login),
                User.email == normalize_email(login),
            )
        ).first()

    def list_users(self, scope: Optional[str] = None) -> List[User]:
        query = self.db.query(User)
        if scope:
            if scope not in USER_SCOPES:
                raise BadRequestError(f"Unknown user scope '{scope}'")
            query = query.filter(USER_SCOPES[scope])
        return query.order_by(User.id).all()

    def register(
        self,
        username: str,
        email: str,
        password: str,
        phone: Optional[str] = None
    ) -> User:
        """Create a new user; the password is hashed before insert"""
        username = normalize_username(username)
        email = normalize_email(email)
        validate_username(username)
        if not email:
            raise BadRequestError("Email cannot be blank.")
        if not password:
            raise BadRequestError("Password cannot be blank.")

        user = User(
            username=username,
            email=email,
            password=get_password_hash(password),
            phone=phone,
            is_active=True,
            is_admin=False,
        )
        self.db.add(user)
        self._commit_unique("Username or email already in use")
        self.db.refresh(user)

        logger.info(f"Created new user with ID: {user.id}")
        return user

    def authenticate(self, login: str, password: str) -> Optional[User]:
        """Return the user matching the credentials, or None"""
        user = self.get_user_by_login(login)
        if not user or not verify_password(password, user.password):
            return None
        return user

    def login_update(self, user: User) -> User:
        """Stamp the login time"""
        user.login_at = utc_now()
        self.db.commit()
        self.db.refresh(user)
        return user

    def update_user(self, user: User, update_data: Union[UserSelfUpdate, UserAdminUpdate]) -> User:
        """
        Apply an allow-listed update.

        The DTO type decides which fields are reachable; a blank password is
        ignored and a non-blank one is hashed before it is stored.
        """
        changes = update_data.model_dump(exclude_unset=True)
        # Account flags are never nullable
        for flag in ("is_active", "is_admin"):
            if flag in changes and changes[flag] is None:
                changes.pop(flag)
        fields = sorted(changes)

        if "password" in changes:
            password = changes.pop("password")
            if password:
                user.password = get_password_hash(password)

        if "username" in changes:
            username = normalize_username(changes.pop("username"))
            validate_username(username)
            user.username = username

        if "email" in changes:
            email = normalize_email(changes.pop("email"))
            if not email:
                raise BadRequestError("Email cannot be blank.")
            user.email = email

        for key, value in changes.items():
            setattr(user, key, value)

        self._commit_unique("Username or email already in use")
        self.db.refresh(user)

        logger.info(f"Updated user {user.id}: {fields}")
        return user

    # Resources & permissions

    def list_resources(self) -> List[Resource]:
        return self.db.query(Resource).order_by(Resource.id).all()

    def create_resource(self, name: str, actions: List[str]) -> Resource:
        resource = Resource(name=name, actions=list(dict.fromkeys(actions)))
        self.db.add(resource)
        self._commit_unique(f"Resource '{name}' already exists")
        self.db.refresh(resource)
        return resource

    def update_permission(self, user: User, resource: Resource, actions: List[str]) -> Permission:
        """Create the user's permission for ``resource`` or replace its actions"""
        valid_actions = resource.valid_actions(actions)

        permission = self.db.query(Permission).filter(
            Permission.user_id == user.id,
            Permission.resource_id == resource.id
        ).first()

        if not permission:
            permission = Permission(
                user_id=user.id,
                resource_id=resource.id,
                actions=valid_actions
            )
            self.db.add(permission)
        else:
            permission.actions = valid_actions

        return permission

    def update_permissions(self, user: User, permissions: Dict[str, Dict]) -> User:
        """
        Update every permission named in ``permissions`` (keyed by resource
        name, each value holding an ``actions`` list). Unknown resources and
        entries without an actions list are ignored. Returns the reloaded user.
        """
        if not permissions:
            return user

        for resource in self.list_resources():
            entry = permissions.get(resource.name)
            actions = entry.get("actions") if isinstance(entry, dict) else None
            if isinstance(actions, list):
                self.update_permission(user, resource, actions)

        self._commit_unique("Permission already exists")
        return self._reload(user)

    def delete_permission(self, user: User, resource_name: str) -> None:
        permission = self.db.query(Permission).join(Resource).filter(
            Permission.user_id == user.id,
            Resource.name == resource_name
        ).first()

        if not permission:
            raise NotFoundError(
                f"User '{user.id}' has no matching permission for resource '{resource_name}'"
            )

        self.db.delete(permission)
        self.db.commit()

    # Metadata

    def update_metadata(self, user: User, items: List[MetadataItem]) -> List[Metadata]:
        """Upsert metadata entries by name; a repeated name keeps its last value"""
        values = {}
        for item in items:
            values[item.name] = item.value

        entries = []
        for name, value in values.items():
            entry = self.db.query(Metadata).filter(
                Metadata.user_id == user.id,
                Metadata.name == name
            ).first()

            if not entry:
                entry = Metadata(user_id=user.id, name=name, value=value)
                self.db.add(entry)
            else:
                entry.value = value
            entries.append(entry)

        self._commit_unique("Duplicate metadata name")
        for entry in entries:
            self.db.refresh(entry)
        return entries

    def delete_metadata(self, user: User, names: List[str]) -> int:
        """Delete metadata entries by name; unknown names are skipped"""
        deleted = 0
        for name in names:
            entry = self.db.query(Metadata).filter(
                Metadata.user_id == user.id,
                Metadata.name == name
            ).first()
            if not entry:
                continue
            self.db.delete(entry)
            deleted += 1

        self.db.commit()
        return deleted

    def _reload(self, user: User) -> User:
        self.db.expire(user)
        return self.db.query(User).options(
            selectinload(User.permissions).selectinload(Permission.resource)
        ).filter(User.id == user.id).first()

    def _commit_unique(self, message: str) -> None:
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError(message)
