from fastapi import APIRouter, HTTPException, Depends, Query
from fastapi import status
from typing import Dict, Any, Optional
import logging

from portal.api.dependencies import get_application_service, get_notification_service, get_payment_service
from portal.core.auth_dependencies import get_admin_user
from portal.core.config import settings
from portal.core.errors import PortalError
from portal.helpers.response_builder import (
    build_application_response,
    build_notification_response,
    build_payment_response,
)
from portal.services.application_service import ApplicationService
from portal.services.notification_service import NotificationService
from portal.services.payment_service import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(get_admin_user)])


# Polled by the dashboard every NOTIFICATION_POLL_SECONDS
@router.get("/notifications", response_model=Dict[str, Any])
async def get_notifications(
    limit: int = Query(default=50, ge=1, le=500),
    unread_only: bool = Query(default=False, alias="unreadOnly"),
    service: NotificationService = Depends(get_notification_service)
):
    try:
        unread = await service.unread_count()
        notifications = await service.list_notifications(limit=limit, unread_only=unread_only)
        return {
            "unreadCount": unread,
            "notifications": [build_notification_response(n) for n in notifications],
            "pollIntervalSeconds": settings.NOTIFICATION_POLL_SECONDS,
        }
    except Exception as e:
        logger.error(f"Error loading notifications: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load notifications"
        )


@router.put("/notifications/read-all", response_model=Dict[str, Any])
async def mark_all_notifications_read(service: NotificationService = Depends(get_notification_service)):
    try:
        marked = await service.mark_all_read()
        return {"success": True, "marked": marked, "unreadCount": 0}
    except Exception as e:
        logger.error(f"Error marking notifications as read: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to mark notifications as read"
        )


@router.put("/notifications/{notification_id}/read", response_model=Dict[str, Any])
async def mark_notification_read(
    notification_id: str,
    service: NotificationService = Depends(get_notification_service)
):
    notification = await service.mark_read(notification_id)
    return {"success": True, "notification": build_notification_response(notification)}


@router.get("/applications", response_model=Dict[str, Any])
async def list_applications(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=500),
    status_filter: Optional[str] = Query(default=None, alias="status"),
    search: Optional[str] = Query(default=None, description="Application id, applicant name or email"),
    service: ApplicationService = Depends(get_application_service)
):
    try:
        result = await service.list_applications(skip=skip, limit=limit, status=status_filter, search=search)
        applications = []
        for application in result["applications"]:
            latest = await service.latest_payment(application.application_id)
            derived = await service.effective_status(application, latest)
            applications.append(build_application_response(application, derived, include_details=False))
        return {
            "applications": applications,
            "total": result["total"],
            "skip": skip,
            "limit": limit,
        }
    except PortalError:
        raise
    except Exception as e:
        logger.error(f"Error listing applications: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An error occurred while retrieving applications"
        )


@router.get("/applications/{application_id}", response_model=Dict[str, Any])
async def get_application(
    application_id: str,
    service: ApplicationService = Depends(get_application_service)
):
    application = await service.get(application_id)
    latest = await service.latest_payment(application.application_id)
    derived = await service.effective_status(application, latest)
    return build_application_response(application, derived, latest_payment=latest)


@router.get("/payments/recent", response_model=Dict[str, Any])
async def recent_payments(
    limit: int = Query(default=20, ge=1, le=100),
    service: PaymentService = Depends(get_payment_service)
):
    try:
        rows = await service.recent_payments(limit=limit)
        payments = []
        for row in rows:
            item = build_payment_response(row["payment"])
            item["applicantName"] = row["applicantName"]
            payments.append(item)
        return {"payments": payments}
    except PortalError:
        raise
    except Exception as e:
        logger.error(f"Error fetching payments: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch payments"
        )
