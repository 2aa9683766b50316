from portal.schemas.admin_schemas import AdminResponse, PasswordChange, Token
from portal.schemas.notification_schema import NotificationEvent
from portal.schemas.service_application_schema import (
    ApplicationStatusEnum,
    PaymentStatusEnum,
    DocumentDescriptor,
    ServiceApplicationCreate,
    PaymentConfirmationRequest,
    StatusUpdateRequest,
    PaymentVerificationRequest,
)
