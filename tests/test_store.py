import pytest
from pymongo.errors import DuplicateKeyError, ServerSelectionTimeoutError

from portal.core.errors import StoreUnavailable
from portal.database.models import Notification, Payment, ServiceApplication
from portal.database.store import store_guard


async def _unreachable(self, *args, **kwargs):
    raise ServerSelectionTimeoutError("No servers found yet")


def test_store_guard_wraps_driver_errors():
    with pytest.raises(StoreUnavailable) as exc:
        with store_guard("load a service application"):
            raise ServerSelectionTimeoutError("No servers found yet")
    assert exc.value.status_code == 503
    assert "load a service application" in exc.value.message


def test_store_guard_lets_duplicate_keys_through():
    with pytest.raises(DuplicateKeyError):
        with store_guard("store a service application"):
            raise DuplicateKeyError("E11000 duplicate key error")


@pytest.mark.asyncio
async def test_submission_reports_store_outage(client, business_permit_intake, monkeypatch):
    monkeypatch.setattr(ServiceApplication, "insert", _unreachable)

    response = await client.post("/service-applications", json=business_permit_intake)

    assert response.status_code == 503
    error = response.json()["error"]
    assert error["code"] == "store_unavailable"
    assert error["status_code"] == 503


@pytest.mark.asyncio
async def test_notification_store_outage_does_not_fail_payment(client, business_permit_intake, monkeypatch):
    submitted = await client.post("/service-applications", json=business_permit_intake)
    application_id = submitted.json()["applicationId"]
    monkeypatch.setattr(Notification, "insert", _unreachable)

    response = await client.post("/service-applications/payments", json={
        "applicationId": application_id,
        "paymentMethod": "bank-transfer",
        "transactionId": "TXN123",
        "amount": 5000,
    })

    assert response.status_code == 200
    assert await Payment.find(Payment.application_id == application_id).count() == 1
    assert await Notification.find_all().count() == 0

    status = await client.get(f"/service-applications/{application_id}/status")
    assert status.json()["status"] == "payment_pending"
