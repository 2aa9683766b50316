from pydantic import BaseModel, Field
from enum import Enum
from typing import List, Optional, Union


class ApplicationStatusEnum(str, Enum):
    pending_payment = "pending_payment"
    payment_pending = "payment_pending"
    payment_verified = "payment_verified"
    in_review = "in_review"
    approved = "approved"
    rejected = "rejected"


class PaymentStatusEnum(str, Enum):
    pending_verification = "pending_verification"
    verified = "verified"
    rejected = "rejected"


class DocumentDescriptor(BaseModel):
    name: str = Field(..., description="Original file name")
    size: int = Field(default=0, ge=0, description="File size in bytes")
    type: Optional[str] = Field(default=None, description="MIME type reported by the browser")


class ServiceApplicationCreate(BaseModel):
    """Intake submitted by the applicant.

    Fields are optional at the schema level so that missing values reach the
    registry and are reported as a 400 naming the field.
    """
    service_type: Optional[str] = Field(default=None, alias="serviceType")
    ward_number: Optional[str] = Field(default=None, alias="wardNumber")
    application_date: Optional[str] = Field(default=None, alias="applicationDate")
    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    date_of_birth: Optional[str] = Field(default=None, alias="dateOfBirth")
    purpose: Optional[str] = None
    additional_info: Optional[str] = Field(default=None, alias="additionalInfo")
    documents: List[DocumentDescriptor] = Field(default_factory=list)

    class Config:
        populate_by_name = True
        coerce_numbers_to_str = True


class PaymentConfirmationRequest(BaseModel):
    application_id: Optional[str] = Field(default=None, alias="applicationId")
    payment_method: Optional[str] = Field(default=None, alias="paymentMethod")
    transaction_id: Optional[str] = Field(default=None, alias="transactionId")
    amount: Optional[Union[float, str]] = None

    class Config:
        populate_by_name = True


class StatusUpdateRequest(BaseModel):
    status: Optional[str] = None
    force: bool = Field(default=False, description="Bypass the transition graph (admin override)")


class PaymentVerificationRequest(BaseModel):
    verified: bool
