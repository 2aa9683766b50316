import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from beanie import PydanticObjectId
from bson.errors import InvalidId

from portal.core.config import settings
from portal.core.errors import NotFoundError, ValidationError
from portal.database.models.payment_model import Payment
from portal.database.models.service_application_model import ServiceApplication
from portal.database.store import store_guard
from portal.schemas.notification_schema import NotificationEvent
from portal.schemas.service_application_schema import PaymentStatusEnum
from portal.services.application_service import ApplicationService, application_service
from portal.services.notification_service import NotificationService, notification_service
from portal.services.status_reconciler import StatusEvent, StatusReconciler, status_reconciler
from portal.utils.validation import validate_payment_declaration

logger = logging.getLogger(__name__)


class PaymentService:
    """Payment declarations against service applications and their verification."""

    def __init__(
        self,
        applications: ApplicationService,
        notifications: NotificationService,
        reconciler: StatusReconciler,
        minimum_amount: Optional[float] = None,
    ):
        self.applications = applications
        self.notifications = notifications
        self.reconciler = reconciler
        self.minimum_amount = minimum_amount if minimum_amount is not None else settings.MIN_PAYMENT_AMOUNT
        logger.info("PaymentService initialized")

    # Records a declared payment, moves the application to payment_pending and alerts the admins
    async def confirm_payment(
        self,
        application_id: Optional[str],
        payment_method: Any,
        transaction_id: Any,
        amount: Any,
    ) -> Dict[str, Any]:
        application_id = (application_id or "").strip()
        if not application_id:
            raise ValidationError("Application ID is required", field="applicationId")

        method, reference, value = validate_payment_declaration(
            payment_method, transaction_id, amount, self.minimum_amount
        )

        application = await self.applications.get(application_id)
        current = await self.applications.effective_status(application)
        target = self.reconciler.apply(current, StatusEvent.payment_confirmed)

        payment = Payment(
            application_id=application.application_id,
            payment_method=method,
            transaction_id=reference,
            amount=value,
            status=PaymentStatusEnum.pending_verification,
        )
        with store_guard("record a payment"):
            await payment.insert()
        payment_id = str(payment.id)
        logger.info(f"Payment {payment_id} of {value:,.2f} recorded for application {application_id}")

        await self.applications.set_status(application, target, payment_id=payment_id)

        await self.notifications.notify_safely(
            NotificationEvent(
                type="payment",
                title="New Payment Received",
                message=f"Payment of ₦{value:,.2f} for Application #{application_id}",
                application_id=application_id,
                payment_id=payment_id,
                priority="high",
            ),
            amount=value,
            payment_method=method,
        )

        return {"paymentId": payment_id, "payment": payment}

    async def get_payment(self, payment_id: str) -> Payment:
        try:
            object_id = PydanticObjectId(payment_id)
        except (InvalidId, TypeError, ValueError):
            raise NotFoundError(f"Payment {payment_id} not found", field="paymentId")

        with store_guard("load a payment"):
            payment = await Payment.get(object_id)
        if not payment:
            raise NotFoundError(f"Payment {payment_id} not found", field="paymentId")
        return payment

    # Admin verification of a payment; the latest payment also drives the application status
    async def verify_payment(self, payment_id: str, verified: bool, actor: Optional[str] = None) -> Payment:
        payment = await self.get_payment(payment_id)
        application = await self.applications.get(payment.application_id)
        latest = await self.applications.latest_payment(application.application_id)
        drives_status = latest is not None and latest.id == payment.id

        target = None
        if drives_status:
            current = await self.applications.effective_status(application, payment)
            target = self.reconciler.apply(current, self.reconciler.payment_event(verified))

        new_status = PaymentStatusEnum.verified if verified else PaymentStatusEnum.rejected
        with store_guard("update a payment"):
            await payment.set({
                Payment.status: new_status,
                Payment.verified_at: datetime.utcnow(),
                Payment.verified_by: actor,
            })
        logger.info(f"Payment {payment_id} marked {new_status.value} by {actor or 'unknown admin'}")

        if target is not None:
            await self.applications.set_status(application, target)
            logger.info(f"Application {application.application_id} moved to {target.value}")
        else:
            logger.info(f"Payment {payment_id} is not the latest for {application.application_id}; status unchanged")

        return payment

    async def verify_application_payment(self, application_id: str, verified: bool,
                                         actor: Optional[str] = None) -> Payment:
        application = await self.applications.get(application_id)
        latest = await self.applications.latest_payment(application.application_id)
        if latest is None:
            raise NotFoundError(f"No payment recorded for application {application_id}", field="paymentId")
        return await self.verify_payment(str(latest.id), verified, actor=actor)

    async def recent_payments(self, limit: int = 20) -> List[Dict[str, Any]]:
        """Latest payments with the applicant's name attached."""
        with store_guard("list recent payments"):
            payments = await Payment.find({}).sort("-payment_date", "-_id").limit(limit).to_list()
            ids = list({p.application_id for p in payments})
            applications = await ServiceApplication.find({"application_id": {"$in": ids}}).to_list() if ids else []

        names = {a.application_id: a.applicant_name for a in applications}
        return [{"payment": p, "applicantName": names.get(p.application_id)} for p in payments]


payment_service = PaymentService(
    applications=application_service,
    notifications=notification_service,
    reconciler=status_reconciler,
)
