from beanie import Document
from pydantic import EmailStr, Field
from datetime import datetime
from typing import Optional
from bson import ObjectId


class AdminUser(Document):
    email: EmailStr = Field(..., description="Email address used to log in")
    full_name: str = Field(..., description="Display name of the admin")
    hashed_password: str = Field(..., description="bcrypt hash of the admin password")
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None

    class Settings:
        name = "admin_users"

    class Config:
        populate_by_name = True
        arbitrary_types_allowed = True
        json_encoders = {
            ObjectId: str,
            datetime: lambda v: v.isoformat()
        }
