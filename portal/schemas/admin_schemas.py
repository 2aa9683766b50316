from pydantic import BaseModel, EmailStr, Field
from typing import Optional


class AdminResponse(BaseModel):
    id: str = Field(..., description="Unique identifier of the admin account")
    email: EmailStr = Field(..., description="Email address of the admin")
    full_name: str = Field(..., description="Full name of the admin")
    message: Optional[str] = None


class PasswordChange(BaseModel):
    current_password: str = Field(..., alias="currentPassword")
    new_password: str = Field(..., min_length=8, alias="newPassword")

    class Config:
        populate_by_name = True


class Token(BaseModel):
    access_token: str = Field(..., description="Access token for the admin")
    token_type: str = Field(default="bearer", description="Type of the token")
