import json

import httpx
import pytest

from portal.core.errors import NotFoundError
from portal.database.models import Notification
from portal.schemas.notification_schema import NotificationEvent
from portal.services.admin_alert_service import AdminAlertService
from portal.services.notification_service import NotificationService


def _event(application_id="UGW-1-AAAAA", payment_id="p-1"):
    return NotificationEvent(
        type="payment",
        title="New Payment Received",
        message=f"Payment of ₦5,000.00 for Application #{application_id}",
        application_id=application_id,
        payment_id=payment_id,
        priority="high",
    )


@pytest.mark.asyncio
async def test_notify_stores_unread_notification(db):
    service = NotificationService()
    notification_id = await service.notify(_event())

    stored = await service.get_notification(notification_id)
    assert stored.read is False
    assert stored.priority == "high"
    assert await service.unread_count() == 1


@pytest.mark.asyncio
async def test_mark_read_is_idempotent(db):
    service = NotificationService()
    notification_id = await service.notify(_event())

    first = await service.mark_read(notification_id)
    second = await service.mark_read(notification_id)

    assert first.read_at is not None
    assert second.read is True
    assert second.read_at is not None
    assert await service.unread_count() == 0


@pytest.mark.asyncio
async def test_mark_all_read(db):
    service = NotificationService()
    await service.notify(_event(payment_id="p-1"))
    await service.notify(_event(payment_id="p-2"))

    assert await service.mark_all_read() == 2
    assert await service.mark_all_read() == 0
    assert await service.unread_count() == 0


@pytest.mark.asyncio
async def test_list_unread_only(db):
    service = NotificationService()
    first = await service.notify(_event(payment_id="p-1"))
    await service.notify(_event(payment_id="p-2"))
    await service.mark_read(first)

    unread = await service.list_notifications(unread_only=True)
    assert [n.payment_id for n in unread] == ["p-2"]
    assert len(await service.list_notifications()) == 2


@pytest.mark.asyncio
async def test_unknown_notification(db):
    service = NotificationService()
    with pytest.raises(NotFoundError):
        await service.mark_read("not-an-id")
    with pytest.raises(NotFoundError):
        await service.mark_read("65f000000000000000000000")


@pytest.mark.asyncio
async def test_notify_safely_sends_sms_alert(db):
    sent = []

    def handler(request: httpx.Request) -> httpx.Response:
        sent.append(json.loads(request.content))
        return httpx.Response(200, json={"status": "success", "data": {"uid": "sms-1"}})

    alerts = AdminAlertService(
        api_url="https://sms.example.com/api/v3/sms/send",
        api_token="token",
        sender_id="PORTAL",
        admin_phone="08012345678",
        transport=httpx.MockTransport(handler),
    )
    service = NotificationService(alert_service=alerts)

    notification_id = await service.notify_safely(_event(), amount=5000, payment_method="bank-transfer")

    assert notification_id is not None
    assert len(sent) == 1
    assert sent[0]["recipient"] == "2348012345678"
    assert "UGW-1-AAAAA" in sent[0]["message"]


@pytest.mark.asyncio
async def test_notify_safely_survives_gateway_failure(db):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"status": "error", "message": "gateway down"})

    alerts = AdminAlertService(
        api_url="https://sms.example.com/api/v3/sms/send",
        api_token="token",
        sender_id="PORTAL",
        admin_phone="08012345678",
        transport=httpx.MockTransport(handler),
    )
    service = NotificationService(alert_service=alerts)

    assert await service.notify_safely(_event(), amount=5000, payment_method="pos") is not None
    assert await Notification.find_all().count() == 1


@pytest.mark.parametrize("raw", ["08012345678", "+2348012345678", "234 801 234 5678", "8012345678"])
def test_normalize_phone_number(raw):
    assert AdminAlertService.normalize_phone_number(raw) == "2348012345678"


@pytest.mark.parametrize("raw", ["", "0801", "0801234567a"])
def test_normalize_phone_number_rejects_bad_input(raw):
    with pytest.raises(ValueError):
        AdminAlertService.normalize_phone_number(raw)


def test_sanitize_message_keeps_ascii():
    assert AdminAlertService._sanitize_message("₦5,000 – paid") == "NGN 5,000 - paid"
