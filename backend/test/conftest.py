"""
Shared pytest fixtures.

The Mongo handler is replaced by an AsyncMock through app.dependency_overrides,
so no database is needed. JWT and upload handlers are real instances backed by
a test secret and a temporary directory.
"""

import os
import tempfile
from unittest.mock import AsyncMock

# Must be set before the app (and its handlers) are imported
os.environ["JWT_SECRET_KEY"] = "test-secret-key-not-real"
os.environ["MONGO_DATABASE"] = "cats_test"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="cat_api_test_")
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from bson import ObjectId
from datetime import datetime
from httpx import AsyncClient, ASGITransport

from core import Dependencies
from server.server import app
from service import JWTService, MongoClient, UploadService


USER_ID = ObjectId("65f1c2a9e4b0a1b2c3d4e5f6")
ADMIN_ID = ObjectId("65f1c2a9e4b0a1b2c3d4e5f7")
CAT_ID = ObjectId("65f1c2a9e4b0a1b2c3d4e600")


@pytest.fixture
def user_doc():
    return {
        "_id": USER_ID,
        "user_name": "john_doe",
        "email": "john.doe@example.com",
        "role": "user",
    }


@pytest.fixture
def admin_doc():
    return {
        "_id": ADMIN_ID,
        "user_name": "admin",
        "email": "admin@example.com",
        "role": "admin",
    }


@pytest.fixture
def cat_doc():
    return {
        "_id": CAT_ID,
        "cat_name": "Miuku",
        "weight": 4.2,
        "birthdate": datetime(2020, 5, 1),
        "filename": "abc123.jpg",
        "location": {"type": "Point", "coordinates": [24.94, 60.17]},
        "owner": USER_ID,
    }


@pytest.fixture
def sample_image_bytes():
    """Smallest JPEG header Pillow cannot decode; uploads fall back to default coordinates."""
    return (
        b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        b'\xff\xd9'
    )


@pytest.fixture
def mock_mongo_handler():
    """AsyncMock with the MongoDBHandler interface; every query method is awaitable."""
    return AsyncMock(spec=MongoClient.MongoDBHandler)


@pytest.fixture(scope="session")
def jwt_handler():
    return JWTService.JWTHandler()


@pytest.fixture
def upload_handler(tmp_path):
    return UploadService.UploadHandler(upload_dir=str(tmp_path / "uploads"))


@pytest.fixture
def user_headers(jwt_handler, user_doc):
    return {"Authorization": f"Bearer {jwt_handler.create_access_token(user_doc)}"}


@pytest.fixture
def admin_headers(jwt_handler, admin_doc):
    return {"Authorization": f"Bearer {jwt_handler.create_access_token(admin_doc)}"}


@pytest_asyncio.fixture
async def client(mock_mongo_handler, jwt_handler, upload_handler):
    """HTTPX client talking to the app in-process with handler dependencies overridden."""
    app.dependency_overrides[Dependencies.get_mongo_client] = lambda: mock_mongo_handler
    app.dependency_overrides[Dependencies.get_jwt_handler] = lambda: jwt_handler
    app.dependency_overrides[Dependencies.get_upload_handler] = lambda: upload_handler

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
