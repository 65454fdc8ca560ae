import os

os.environ.setdefault("DB_BACKEND", "memory")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("ADMIN_USERNAME", "admin")
os.environ.setdefault("ADMIN_PASSWORD", "S3cret!pass")

import pytest
from fastapi.testclient import TestClient

from crm.database import MemoryStore, get_store
from crm.main import app
from crm.utils.jwt_handler import create_access_token


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def unindexed_store():
    """Store without composite indexes, like a fresh Firestore project."""
    return MemoryStore(indexes=())


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    token = create_access_token({"sub": "admin", "userId": "admin", "isAdmin": True})
    return {"Authorization": f"Bearer {token}"}
