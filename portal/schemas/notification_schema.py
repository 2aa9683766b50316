from pydantic import BaseModel, Field
from typing import Optional


class NotificationEvent(BaseModel):
    type: str = Field(default="payment", description="Event category, e.g. 'payment'")
    title: str
    message: str
    application_id: Optional[str] = None
    payment_id: Optional[str] = None
    priority: str = Field(default="normal")
