from beanie import Document
from pydantic import Field
from datetime import datetime
from typing import Optional


class AuditLog(Document):
    action: str = Field(..., description="Action performed, e.g. 'login', 'verify_payment', 'update_status'")
    actor: Optional[str] = Field(None, description="Admin who performed the action")
    acted: Optional[str] = Field(None, description="Entity acted upon (application id, payment id)")
    detail: Optional[str] = Field(None, description="Short human-readable detail, e.g. the new status")
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    status: str = Field(..., description="Result status: 'successful' or 'failed'")

    class Settings:
        name = "audit_logs"
