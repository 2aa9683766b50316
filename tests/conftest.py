"""
Test configuration: Beanie over an in-memory Mongo and an ASGI test client.
"""
import os
from datetime import date
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from mongomock_motor import AsyncMongoMockClient

os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret-key-for-testing")
os.environ.setdefault("MONGODB_DB_NAME", "portal_test")

from main import app
from portal.core.auth_dependencies import get_admin_user
from portal.database.connection import init_db
from portal.database.models import DOCUMENT_MODELS

TEST_ADMIN = {"id": "admin-1", "email": "admin@example.com", "full_name": "Test Admin"}


@pytest_asyncio.fixture
async def db():
    """Fresh in-memory database with every document model registered."""
    database = await init_db(client=AsyncMongoMockClient())
    yield database
    for model in DOCUMENT_MODELS:
        await model.delete_all()


@pytest_asyncio.fixture
async def client(db) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client with the admin dependency satisfied."""
    app.dependency_overrides[get_admin_user] = lambda: TEST_ADMIN
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def anonymous_client(db) -> AsyncGenerator[AsyncClient, None]:
    app.dependency_overrides.clear()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def business_permit_intake():
    return {
        "serviceType": "business-permit",
        "firstName": "A",
        "lastName": "B",
        "email": "a@b.com",
        "phone": "08012345678",
        "address": "X",
        "wardNumber": "3",
        "applicationDate": "2024-01-01",
    }


@pytest.fixture
def birth_certificate_intake(business_permit_intake):
    intake = dict(business_permit_intake)
    intake["serviceType"] = "birth-certificate"
    intake["dateOfBirth"] = date(1990, 5, 17).isoformat()
    return intake
