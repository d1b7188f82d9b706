"""
User model and related tables
"""
from sqlalchemy import Column, String, Boolean, Integer, DateTime, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from app.database import Base
from app.utils.time_utils import utc_now

# JSONB on PostgreSQL, plain JSON elsewhere
JSONList = JSON().with_variant(JSONB(), "postgresql")


class User(Base):
    """User account model"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(255), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password = Column(String(255), nullable=True)  # bcrypt hash
    phone = Column(String(50), nullable=True)

    # Social identities
    facebook_id = Column(String(255), nullable=True)
    github_id = Column(String(255), nullable=True)
    twitter_id = Column(String(255), nullable=True)
    google_id = Column(String(255), nullable=True)

    # Status
    is_active = Column(Boolean, default=True)
    is_admin = Column(Boolean, default=False)

    # Timestamps
    login_at = Column(DateTime, default=utc_now, nullable=True)
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    # Relationships
    permissions = relationship("Permission", back_populates="user", cascade="all, delete-orphan")
    metadata_entries = relationship("Metadata", back_populates="user", cascade="all, delete-orphan")
    friendships = relationship(
        "Friendship",
        foreign_keys="Friendship.user_id",
        back_populates="user",
        cascade="all, delete-orphan",
    )


class Resource(Base):
    """A named resource and the actions that may be granted on it"""
    __tablename__ = "resources"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), unique=True, nullable=False, index=True)
    actions = Column(JSONList, default=list)

    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    permissions = relationship("Permission", back_populates="resource", cascade="all, delete-orphan")

    def valid_actions(self, actions):
        """Requested actions this resource defines, in request order, without duplicates"""
        allowed = set(self.actions or [])
        valid = []
        for action in actions:
            if action in allowed and action not in valid:
                valid.append(action)
        return valid


class Permission(Base):
    """Actions a user may perform on a resource"""
    __tablename__ = "permissions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    resource_id = Column(Integer, ForeignKey("resources.id", ondelete="CASCADE"), index=True, nullable=False)
    actions = Column(JSONList, default=list)

    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    __table_args__ = (
        UniqueConstraint('user_id', 'resource_id', name='unique_permission'),
    )

    user = relationship("User", back_populates="permissions")
    resource = relationship("Resource", back_populates="permissions")

    @property
    def name(self) -> str:
        return self.resource.name


class Metadata(Base):
    """Free-form key/value data attached to a user"""
    __tablename__ = "metadata"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    name = Column(String(255), nullable=False)
    value = Column(String(1024), nullable=True)

    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    __table_args__ = (
        UniqueConstraint('user_id', 'name', name='unique_metadata_name'),
    )

    user = relationship("User", back_populates="metadata_entries")
