"""
Test configuration for the medical records backend.
"""
import os

# Must be in place before the application modules read their settings
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-access-secret")
os.environ.setdefault("REFRESH_TOKEN_SECRET", "test-refresh-secret")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from medrecords.auth.models import Gender, User, UserRole
from medrecords.core.security import hash_password, sign_access_token
from medrecords.database import Base, get_db, get_session_factory, init_db
from medrecords.main import app
from medrecords.realtime.registry import ConnectionRegistry

# Test database URL
TEST_DATABASE_URL = "sqlite://"

# Create test database engine
engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Create test session factory
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

DEFAULT_PASSWORD = "correct-horse"


@pytest.fixture(scope="function")
def db():
    """
    Create a fresh database for each test.
    """
    # Create tables
    init_db(bind=engine)

    # Create session
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

    # Drop tables after test
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db):
    """
    Create a test client with a test database session.
    """
    def override_get_db():
        try:
            yield db
        finally:
            pass

    # Override the get_db dependency
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: TestingSessionLocal
    app.state.connection_registry = ConnectionRegistry()

    # Create test client
    with TestClient(app) as client:
        yield client

    # Remove dependency override
    app.dependency_overrides = {}


@pytest.fixture
def make_user(db):
    """
    Factory inserting a user directly, bypassing the registration flow.
    """
    counter = {"n": 0}

    def _make_user(role=UserRole.PATIENT, password=DEFAULT_PASSWORD, **overrides):
        counter["n"] += 1
        fields = {
            "first_name": "Test",
            "last_name": f"User{counter['n']}",
            "email": f"user{counter['n']}@example.com",
            "password_hash": hash_password(password),
            "role": role,
        }
        if role == UserRole.PATIENT:
            fields.update(gender=Gender.FEMALE, date_of_birth=date(1990, 1, 1))
        elif role == UserRole.DOCTOR:
            fields.update(specialization="Cardiology", license_number="LIC-1")
        fields.update(overrides)
        user = User(**fields)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def login(client):
    """
    Log a user in through the API and return the response body.
    """
    def _login(email, password=DEFAULT_PASSWORD):
        response = client.post("/api/v1/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return response.json()

    return _login


@pytest.fixture
def auth_headers():
    """
    Build an Authorization header for an access token, or sign one for a user.
    """
    def _auth_headers(token_or_user):
        token = token_or_user
        if isinstance(token_or_user, User):
            token = sign_access_token(token_or_user)
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers


@pytest.fixture
def fake_storage(monkeypatch):
    """
    Replace Cloudinary calls made by the profile service with in-memory fakes.
    """
    calls = {"uploaded": [], "deleted": []}

    def fake_upload(data, folder="profile-images"):
        calls["uploaded"].append(data)
        n = len(calls["uploaded"])
        return {"url": f"https://res.cloudinary.test/{folder}/img{n}.png", "public_id": f"{folder}/img{n}"}

    def fake_delete(public_id):
        calls["deleted"].append(public_id)
        return True

    monkeypatch.setattr("medrecords.users.service.upload_profile_image", fake_upload)
    monkeypatch.setattr("medrecords.users.service.delete_profile_image", fake_delete)
    return calls
