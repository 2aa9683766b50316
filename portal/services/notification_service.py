import logging
from datetime import datetime
from typing import List, Optional

from beanie import PydanticObjectId
from bson.errors import InvalidId

from portal.core.errors import NotFoundError
from portal.database.models.notification_model import Notification
from portal.database.store import store_guard
from portal.schemas.notification_schema import NotificationEvent
from portal.services.admin_alert_service import AdminAlertService, admin_alert_service

logger = logging.getLogger(__name__)


class NotificationService:
    """Admin-facing alerts stored in the ``notifications`` collection.

    The admin dashboard polls ``unread_count``; nothing is pushed.
    """

    def __init__(self, alert_service: Optional[AdminAlertService] = None):
        self.alert_service = alert_service

    async def notify(self, event: NotificationEvent) -> str:
        notification = Notification(
            type=event.type,
            title=event.title,
            message=event.message,
            application_id=event.application_id,
            payment_id=event.payment_id,
            priority=event.priority,
        )
        with store_guard("create a notification"):
            await notification.insert()
        logger.info(f"Notification {notification.id} created ({event.type}) for application {event.application_id}")
        return str(notification.id)

    async def notify_safely(self, event: NotificationEvent, amount: Optional[float] = None,
                            payment_method: Optional[str] = None) -> Optional[str]:
        """Emit ``event`` after the caller's write has completed.

        Never raises: a notification outage must not undo or fail the payment
        that triggered it.
        """
        try:
            notification_id = await self.notify(event)
        except Exception as e:
            logger.warning(f"Notification for application {event.application_id} was not stored: {e}", exc_info=True)
            return None

        if self.alert_service and self.alert_service.is_configured and amount is not None:
            try:
                await self.alert_service.send_payment_alert(event.application_id, amount, payment_method or "unknown")
            except Exception as e:
                logger.warning(f"SMS admin alert failed for application {event.application_id}: {e}")

        return notification_id

    async def unread_count(self) -> int:
        with store_guard("count unread notifications"):
            return await Notification.find(Notification.read == False).count()  # noqa: E712

    async def list_notifications(self, limit: int = 50, unread_only: bool = False) -> List[Notification]:
        query = {"read": False} if unread_only else {}
        with store_guard("list notifications"):
            return await Notification.find(query).sort("-created_at").limit(limit).to_list()

    async def get_notification(self, notification_id: str) -> Notification:
        try:
            object_id = PydanticObjectId(notification_id)
        except (InvalidId, TypeError, ValueError):
            raise NotFoundError(f"Notification {notification_id} not found")

        with store_guard("load a notification"):
            notification = await Notification.get(object_id)
        if not notification:
            raise NotFoundError(f"Notification {notification_id} not found")
        return notification

    async def mark_read(self, notification_id: str) -> Notification:
        notification = await self.get_notification(notification_id)
        if notification.read:
            return notification

        with store_guard("mark a notification as read"):
            await notification.set({Notification.read: True, Notification.read_at: datetime.utcnow()})
        return notification

    async def mark_all_read(self) -> int:
        with store_guard("mark notifications as read"):
            unread = await Notification.find(Notification.read == False).count()  # noqa: E712
            if unread:
                await Notification.find(Notification.read == False).update_many(  # noqa: E712
                    {"$set": {"read": True, "read_at": datetime.utcnow()}}
                )
        logger.info(f"Marked {unread} notifications as read")
        return unread


notification_service = NotificationService(alert_service=admin_alert_service)
