from fastapi import HTTPException, status
from portal.database.models import AdminUser
from portal.core import hash_password, verify_password, create_access_token, is_valid_password
from portal.core.config import settings
from typing import Dict, Optional
from datetime import datetime
import logging

logger = logging.getLogger(__name__)


class AuthService:

    @staticmethod
    def _public(admin: AdminUser) -> Dict:
        return {"id": str(admin.id), "email": admin.email, "full_name": admin.full_name}

    # Creates the bootstrap admin from settings when no admin account exists yet
    @staticmethod
    async def ensure_default_admin() -> Optional[Dict]:
        if not settings.ADMIN_EMAIL or not settings.ADMIN_PASSWORD:
            logger.info("ADMIN_EMAIL/ADMIN_PASSWORD not set; skipping bootstrap admin")
            return None

        if await AdminUser.find_one({}) is not None:
            return None

        admin = AdminUser(
            email=settings.ADMIN_EMAIL,
            full_name=settings.ADMIN_FULL_NAME,
            hashed_password=hash_password(settings.ADMIN_PASSWORD),
        )
        await admin.insert()
        logger.info("Bootstrap admin account created for %s", admin.email)
        return AuthService._public(admin)

    # Authenticates an admin and returns a bearer token
    @staticmethod
    async def login_admin(email: str, password: str) -> Dict:
        logger.debug("Login attempt for email: %s", email)
        admin = await AdminUser.find_one(AdminUser.email == email)

        if not admin or not admin.is_active or not verify_password(password, admin.hashed_password):
            logger.warning("Failed admin login for email: %s", email)
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password"
            )

        try:
            access_token = create_access_token(subject=admin.email)
        except ValueError as e:
            logger.error("Token creation failed: %s", e)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Could not create access token"
            )
        return {
            "access_token": access_token,
            "token_type": "bearer",
            "admin": AuthService._public(admin),
        }

    @staticmethod
    async def get_admin_by_email(email: str) -> Optional[Dict]:
        admin = await AdminUser.find_one(AdminUser.email == email)
        if not admin or not admin.is_active:
            return None
        return AuthService._public(admin)

    @staticmethod
    async def refresh_admin_token(email: str) -> Dict:
        admin = await AdminUser.find_one(AdminUser.email == email)
        if not admin:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Admin not found")
        try:
            access_token = create_access_token(subject=email)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Could not create access token"
            )
        return {"access_token": access_token, "token_type": "bearer"}

    @staticmethod
    async def change_password(email: str, current_password: str, new_password: str) -> None:
        admin = await AdminUser.find_one(AdminUser.email == email)
        if not admin or not verify_password(current_password, admin.hashed_password):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Current password is incorrect"
            )
        if not is_valid_password(new_password):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Password must be at least 8 characters long"
            )

        await admin.set({
            AdminUser.hashed_password: hash_password(new_password),
            AdminUser.updated_at: datetime.utcnow(),
        })
        logger.info("Password updated for admin %s", email)


auth_service = AuthService()
