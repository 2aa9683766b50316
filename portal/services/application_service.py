import logging
import re
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from pymongo.errors import DuplicateKeyError

from portal.core.errors import ConflictError, NotFoundError
from portal.database.models.payment_model import Payment
from portal.database.models.service_application_model import DocumentMetadata, ServiceApplication
from portal.database.store import store_guard
from portal.schemas.service_application_schema import (
    ApplicationStatusEnum,
    ServiceApplicationCreate,
)
from portal.services.status_reconciler import StatusReconciler, parse_status, status_reconciler
from portal.utils.identifiers import generate_application_id
from portal.utils.validation import validate_intake

logger = logging.getLogger(__name__)


class ApplicationService:
    """Owns service applications: intake validation, id issuance, reads."""

    def __init__(self, reconciler: StatusReconciler, id_factory: Callable[[], str] = generate_application_id):
        self.reconciler = reconciler
        self.id_factory = id_factory
        logger.info("ApplicationService initialized")

    # Validates the intake and stores a new application in pending_payment
    async def submit(self, intake: ServiceApplicationCreate) -> Dict[str, Any]:
        cleaned = validate_intake(intake.model_dump(by_alias=True))

        # A generated id may collide with an existing one; regenerate once
        for attempt in (1, 2):
            application = ServiceApplication(
                application_id=self.id_factory(),
                service_type=cleaned["serviceType"],
                ward_number=cleaned["wardNumber"],
                application_date=cleaned["applicationDate"],
                first_name=cleaned["firstName"],
                last_name=cleaned["lastName"],
                email=cleaned["email"],
                phone=cleaned["phone"],
                address=cleaned["address"],
                date_of_birth=cleaned["dateOfBirth"],
                purpose=cleaned["purpose"],
                additional_info=cleaned["additionalInfo"],
                documents=[DocumentMetadata(**d) for d in cleaned["documents"]],
                status=ApplicationStatusEnum.pending_payment,
            )
            try:
                with store_guard("store a service application"):
                    await application.insert()
            except DuplicateKeyError:
                logger.warning(f"Application id {application.application_id} already exists (attempt {attempt})")
                continue

            logger.info(f"Service application {application.application_id} submitted ({application.service_type})")
            return {"applicationId": application.application_id, "application": application}

        raise ConflictError("Could not allocate a unique application id, please retry", field="applicationId")

    async def find(self, application_id: str) -> Optional[ServiceApplication]:
        with store_guard("load a service application"):
            return await ServiceApplication.find_one(
                ServiceApplication.application_id == (application_id or "").strip()
            )

    async def get(self, application_id: str) -> ServiceApplication:
        application = await self.find(application_id)
        if not application:
            logger.warning(f"Service application {application_id} not found")
            raise NotFoundError(f"Application {application_id} not found", field="applicationId")
        return application

    async def latest_payment(self, application_id: str) -> Optional[Payment]:
        with store_guard("load the latest payment"):
            payments = await Payment.find(Payment.application_id == application_id) \
                .sort("-payment_date", "-_id").limit(1).to_list()
        return payments[0] if payments else None

    async def effective_status(self, application: ServiceApplication,
                               latest: Optional[Payment] = None) -> ApplicationStatusEnum:
        if latest is None:
            latest = await self.latest_payment(application.application_id)
        if latest is None:
            return self.reconciler.derive(application.status)
        return self.reconciler.derive(
            application.status,
            latest.status,
            overridden=self.override_covers(application, latest),
        )

    @staticmethod
    def override_covers(application: ServiceApplication, payment: Payment) -> bool:
        """True when an admin override was written after ``payment`` was declared."""
        return (
            application.status_overridden_at is not None
            and application.overridden_payment_id == str(payment.id)
        )

    async def status_summary(self, application_id: str) -> Dict[str, Any]:
        application = await self.get(application_id)
        latest = await self.latest_payment(application.application_id)
        return {
            "applicationId": application.application_id,
            "serviceType": application.service_type,
            "status": (await self.effective_status(application, latest)).value,
            "paymentStatus": latest.status.value if latest else None,
        }

    async def set_status(self, application: ServiceApplication, status: ApplicationStatusEnum,
                         payment_id: Optional[str] = None, override: bool = False,
                         latest: Optional[Payment] = None) -> ServiceApplication:
        now = datetime.utcnow()
        changes: Dict[Any, Any] = {
            ServiceApplication.status: status,
            ServiceApplication.updated_at: now,
            # Any write through the normal flow ends a previous override
            ServiceApplication.status_overridden_at: now if override else None,
            ServiceApplication.overridden_payment_id: str(latest.id) if override and latest else None,
        }
        if payment_id is not None:
            changes[ServiceApplication.payment_id] = payment_id
        with store_guard("update an application status"):
            await application.set(changes)
        return application

    async def update_status(self, application_id: str, requested: Optional[str], force: bool = False) -> ServiceApplication:
        """Admin status change: graph-checked, or an override when ``force`` is set."""
        application = await self.get(application_id)
        latest = await self.latest_payment(application.application_id)
        current = await self.effective_status(application, latest)
        target = self.reconciler.admin_target(current, requested, force=force)
        await self.set_status(application, target, override=force, latest=latest)
        logger.info(f"Application {application_id} status {current.value} -> {target.value}")
        return application

    # Lists applications newest first with optional status filter and search
    async def list_applications(
        self,
        skip: int = 0,
        limit: int = 50,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Dict[str, Any]:
        query: Dict[str, Any] = {}
        if status and status.lower() != "all":
            query["status"] = parse_status(status).value
        if search:
            search_regex = {"$regex": re.escape(search.strip()), "$options": "i"}
            query["$or"] = [
                {"application_id": search_regex},
                {"first_name": search_regex},
                {"last_name": search_regex},
                {"email": search_regex},
            ]

        with store_guard("list service applications"):
            total = await ServiceApplication.find(query).count()
            applications = await ServiceApplication.find(query) \
                .sort("-created_at").skip(skip).limit(limit).to_list()

        return {"applications": applications, "total": total, "skip": skip, "limit": limit}


application_service = ApplicationService(reconciler=status_reconciler)
