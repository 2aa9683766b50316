from beanie import Document, Indexed
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from portal.schemas.service_application_schema import ApplicationStatusEnum


class DocumentMetadata(BaseModel):
    name: str = Field(..., description="Original file name")
    size: int = Field(default=0, description="File size in bytes")
    type: Optional[str] = Field(default=None, description="MIME type")


class ServiceApplication(Document):
    application_id: Indexed(str, unique=True) = Field(..., description="Human-shareable id, also the payment reference")
    service_type: str = Field(..., description="Requested municipal service")
    ward_number: str = Field(..., description="Ward of the applicant")
    application_date: str = Field(..., description="Date of application (YYYY-MM-DD)")

    first_name: str
    last_name: str
    email: str
    phone: str
    address: str
    date_of_birth: Optional[str] = Field(None, description="Only kept for birth-related services (YYYY-MM-DD)")
    purpose: Optional[str] = None
    additional_info: Optional[str] = None
    documents: List[DocumentMetadata] = Field(default_factory=list)

    status: ApplicationStatusEnum = Field(default=ApplicationStatusEnum.pending_payment)
    payment_id: Optional[str] = Field(None, description="Id of the latest payment attempt")
    status_overridden_at: Optional[datetime] = Field(None, description="Set when an admin override wrote the status")
    overridden_payment_id: Optional[str] = Field(None, description="Latest payment at the time of the override")

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None

    @property
    def applicant_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    class Settings:
        name = "service_applications"
