import pytest

from portal.core.config import settings
from portal.core.security import create_access_token, decode_token, hash_password, verify_password
from portal.database.models import AdminUser, AuditLog
from portal.services.auth_service import auth_service

ADMIN_EMAIL = "clerk@example.com"
ADMIN_PASSWORD = "s3cure-pass"


@pytest.fixture
def bootstrap_settings(monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_EMAIL", ADMIN_EMAIL)
    monkeypatch.setattr(settings, "ADMIN_PASSWORD", ADMIN_PASSWORD)
    monkeypatch.setattr(settings, "ADMIN_FULL_NAME", "Ward Clerk")


async def _login(client, password=ADMIN_PASSWORD):
    return await client.post("/auth/login", data={"username": ADMIN_EMAIL, "password": password})


def test_password_hashing():
    hashed = hash_password(ADMIN_PASSWORD)
    assert verify_password(ADMIN_PASSWORD, hashed)
    assert not verify_password("wrong-password", hashed)
    with pytest.raises(ValueError):
        hash_password("short")


def test_token_round_trip_carries_admin_role():
    payload = decode_token(create_access_token(ADMIN_EMAIL))
    assert payload["sub"] == ADMIN_EMAIL
    assert payload["role"] == "admin"
    assert decode_token("garbage") is None


@pytest.mark.asyncio
async def test_bootstrap_admin_created_once(db, bootstrap_settings):
    created = await auth_service.ensure_default_admin()
    assert created["email"] == ADMIN_EMAIL
    assert await auth_service.ensure_default_admin() is None
    assert await AdminUser.find_all().count() == 1


@pytest.mark.asyncio
async def test_bootstrap_skipped_without_credentials(db, monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_EMAIL", None)
    assert await auth_service.ensure_default_admin() is None
    assert await AdminUser.find_all().count() == 0


@pytest.mark.asyncio
async def test_login_and_me(anonymous_client, bootstrap_settings):
    await auth_service.ensure_default_admin()

    response = await _login(anonymous_client)
    assert response.status_code == 200
    token = response.json()["access_token"]

    me = await anonymous_client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["email"] == ADMIN_EMAIL
    assert me.json()["full_name"] == "Ward Clerk"

    notifications = await anonymous_client.get("/admin/notifications", headers={"Authorization": f"Bearer {token}"})
    assert notifications.status_code == 200

    audit = await AuditLog.find_one(AuditLog.action == "login")
    assert audit.status == "successful"


@pytest.mark.asyncio
async def test_login_with_wrong_password(anonymous_client, bootstrap_settings):
    await auth_service.ensure_default_admin()

    response = await _login(anonymous_client, password="not-the-password")
    assert response.status_code == 401
    assert response.json()["error"]["message"] == "Invalid email or password"

    audit = await AuditLog.find_one(AuditLog.action == "login")
    assert audit.status == "failed"


@pytest.mark.asyncio
async def test_token_for_unknown_admin_is_refused(anonymous_client):
    token = create_access_token("ghost@example.com")
    response = await anonymous_client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_change_password(anonymous_client, bootstrap_settings):
    await auth_service.ensure_default_admin()
    token = (await _login(anonymous_client)).json()["access_token"]
    headers = {"Authorization": f"Bearer {token}"}

    wrong = await anonymous_client.put("/auth/password", headers=headers,
                                       json={"currentPassword": "nope-nope", "newPassword": "another-pass"})
    assert wrong.status_code == 401

    changed = await anonymous_client.put("/auth/password", headers=headers,
                                         json={"currentPassword": ADMIN_PASSWORD, "newPassword": "another-pass"})
    assert changed.status_code == 200

    assert (await _login(anonymous_client)).status_code == 401
    assert (await _login(anonymous_client, password="another-pass")).status_code == 200


@pytest.mark.asyncio
async def test_refresh_token(anonymous_client, bootstrap_settings):
    await auth_service.ensure_default_admin()
    token = (await _login(anonymous_client)).json()["access_token"]

    response = await anonymous_client.post("/auth/refresh", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    assert decode_token(response.json()["access_token"])["sub"] == ADMIN_EMAIL
