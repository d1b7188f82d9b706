"""
Shared fixtures: an in-memory SQLite database injected in place of PostgreSQL
"""
import os

os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.main import app
from app.core.limiter import limiter
from app.models.user import User
from app.services.auth_service import AuthService
from app.services.user_service import UserService

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    limiter.enabled = False
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        limiter.enabled = True


@pytest.fixture
def make_user(db):
    """Factory creating registered users: make_user("alice") -> alice@example.com"""
    service = UserService(db)

    def _make_user(username: str, email: str = None, password: str = "secret", is_admin: bool = False) -> User:
        user = service.register(username, email or f"{username}@example.com", password)
        if is_admin:
            user.is_admin = True
            db.commit()
            db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def auth_headers(db):
    """Bearer headers for a user"""
    auth_service = AuthService(db)

    def _auth_headers(user: User) -> dict:
        token = auth_service.create_access_token_for_user(user)
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers
