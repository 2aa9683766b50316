from typing import Any, Dict, Optional, Union
from datetime import datetime

from portal.database.models import Notification, Payment, ServiceApplication
from portal.schemas.service_application_schema import ApplicationStatusEnum


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _value(value: Any) -> Any:
    return getattr(value, "value", value)


def build_payment_response(payment: Payment) -> Dict[str, Any]:
    return {
        "id": str(payment.id),
        "applicationId": payment.application_id,
        "paymentMethod": payment.payment_method,
        "transactionId": payment.transaction_id,
        "amount": payment.amount,
        "status": _value(payment.status),
        "paymentDate": _iso(payment.payment_date),
        "verifiedAt": _iso(payment.verified_at),
        "verifiedBy": payment.verified_by,
    }


def build_application_response(
    application: ServiceApplication,
    status: Optional[Union[str, ApplicationStatusEnum]] = None,
    latest_payment: Optional[Payment] = None,
    include_details: bool = True,
) -> Dict[str, Any]:
    """Serialize an application for the API; ``status`` is the derived status when given."""
    response = {
        "id": str(application.id) if application.id else None,
        "applicationId": application.application_id,
        "serviceType": application.service_type,
        "wardNumber": application.ward_number,
        "applicationDate": application.application_date,
        "firstName": application.first_name,
        "lastName": application.last_name,
        "email": application.email,
        "phone": application.phone,
        "dateOfBirth": application.date_of_birth,
        "status": _value(status or application.status),
        "paymentId": application.payment_id,
        "createdAt": _iso(application.created_at),
        "updatedAt": _iso(application.updated_at),
    }
    if include_details:
        response.update({
            "address": application.address,
            "purpose": application.purpose,
            "additionalInfo": application.additional_info,
            "documents": [d.model_dump() for d in application.documents],
        })
    if latest_payment is not None:
        response["payment"] = build_payment_response(latest_payment)
    return response


def build_notification_response(notification: Notification) -> Dict[str, Any]:
    return {
        "id": str(notification.id),
        "type": notification.type,
        "title": notification.title,
        "message": notification.message,
        "applicationId": notification.application_id,
        "paymentId": notification.payment_id,
        "priority": notification.priority,
        "read": notification.read,
        "createdAt": _iso(notification.created_at),
        "readAt": _iso(notification.read_at),
    }
