from fastapi import HTTPException, status
import logging

from portal.services.application_service import ApplicationService, application_service
from portal.services.notification_service import NotificationService, notification_service
from portal.services.payment_service import PaymentService, payment_service

logger = logging.getLogger(__name__)


def _require(service, name: str):
    if service is None:
        logger.error(f"{name} is not initialized")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{name} is not initialized. Please contact the system administrator."
        )
    return service


def get_application_service() -> ApplicationService:
    return _require(application_service, "Application service")


def get_payment_service() -> PaymentService:
    return _require(payment_service, "Payment service")


def get_notification_service() -> NotificationService:
    return _require(notification_service, "Notification service")
