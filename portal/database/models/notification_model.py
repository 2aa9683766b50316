from beanie import Document
from pydantic import Field
from typing import Optional
from datetime import datetime


class Notification(Document):
    type: str = Field(default="payment")
    title: str
    message: str
    application_id: Optional[str] = None
    payment_id: Optional[str] = None
    priority: str = Field(default="normal")
    read: bool = Field(default=False)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    read_at: Optional[datetime] = None

    class Settings:
        name = "notifications"
