from beanie import Document, Indexed
from pydantic import Field
from typing import Optional
from datetime import datetime

from portal.schemas.service_application_schema import PaymentStatusEnum


class Payment(Document):
    application_id: Indexed(str) = Field(..., description="Application the payment is declared against")
    payment_method: str = Field(..., description="e.g. bank-transfer, pos, cash")
    transaction_id: str = Field(..., description="Bank or POS reference supplied by the applicant")
    amount: float = Field(..., gt=0)
    status: PaymentStatusEnum = Field(default=PaymentStatusEnum.pending_verification)
    payment_date: datetime = Field(default_factory=datetime.utcnow)
    verified_at: Optional[datetime] = None
    verified_by: Optional[str] = None

    class Settings:
        name = "payments"
