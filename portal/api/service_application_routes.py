from fastapi import APIRouter, HTTPException, Depends
from fastapi import status
from typing import Dict, Any
import logging

from portal.api.dependencies import get_application_service, get_payment_service
from portal.core.auth_dependencies import get_admin_user
from portal.core.errors import PortalError
from portal.helpers.response_builder import build_application_response, build_payment_response
from portal.schemas.service_application_schema import (
    PaymentConfirmationRequest,
    PaymentVerificationRequest,
    ServiceApplicationCreate,
    StatusUpdateRequest,
)
from portal.services.application_service import ApplicationService
from portal.services.audit_service import audit_service
from portal.services.payment_service import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/service-applications", tags=["Service Applications"])


# Submits a new service application; the returned id is the payment reference
@router.post("", response_model=Dict[str, Any], status_code=status.HTTP_200_OK)
async def submit_service_application(
    intake: ServiceApplicationCreate,
    service: ApplicationService = Depends(get_application_service)
):
    try:
        result = await service.submit(intake)
        return {
            "success": True,
            "applicationId": result["applicationId"],
            "message": "Application submitted successfully",
        }
    except PortalError:
        raise
    except Exception as e:
        logger.error(f"Error submitting service application: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to submit application"
        )


# Records the applicant's payment declaration and notifies the admins
@router.post("/payments", response_model=Dict[str, Any], status_code=status.HTTP_200_OK)
async def confirm_payment(
    request: PaymentConfirmationRequest,
    service: PaymentService = Depends(get_payment_service)
):
    try:
        result = await service.confirm_payment(
            request.application_id,
            request.payment_method,
            request.transaction_id,
            request.amount,
        )
        return {
            "success": True,
            "paymentId": result["paymentId"],
            "message": "Payment confirmed and admin notified",
        }
    except PortalError:
        raise
    except Exception as e:
        logger.error(f"Error processing payment for {request.application_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to process payment"
        )


# Public status check used by the applicant after paying
@router.get("/{application_id}/status", response_model=Dict[str, Any])
async def get_application_status(
    application_id: str,
    service: ApplicationService = Depends(get_application_service)
):
    return await service.status_summary(application_id)


# Admin status change; 'force' turns it into an override
@router.put("/{application_id}/status", response_model=Dict[str, Any])
async def update_application_status(
    application_id: str,
    request: StatusUpdateRequest,
    current_admin: Dict = Depends(get_admin_user),
    service: ApplicationService = Depends(get_application_service)
):
    try:
        application = await service.update_status(application_id, request.status, force=request.force)
    except PortalError:
        await audit_service.record(action="update_status", actor=current_admin.get("email"),
                                   acted=application_id, detail=request.status, status="failed")
        raise

    effective = await service.effective_status(application)
    await audit_service.record(
        action="override_status" if request.force else "update_status",
        actor=current_admin.get("email"),
        acted=application_id,
        detail=getattr(application.status, "value", application.status),
    )
    return {
        "success": True,
        "message": "Application status updated",
        "application": build_application_response(application, effective),
    }


# Admin verification of the application's latest payment
@router.put("/{application_id}/payment/verify", response_model=Dict[str, Any])
async def verify_application_payment(
    application_id: str,
    request: PaymentVerificationRequest,
    current_admin: Dict = Depends(get_admin_user),
    service: PaymentService = Depends(get_payment_service)
):
    try:
        payment = await service.verify_application_payment(
            application_id, request.verified, actor=current_admin.get("email")
        )
    except PortalError:
        await audit_service.record(action="verify_payment", actor=current_admin.get("email"),
                                   acted=application_id, status="failed")
        raise

    await audit_service.record(
        action="verify_payment",
        actor=current_admin.get("email"),
        acted=application_id,
        detail=getattr(payment.status, "value", payment.status),
    )
    return {
        "success": True,
        "message": "Payment verified" if request.verified else "Payment rejected",
        "payment": build_payment_response(payment),
    }
