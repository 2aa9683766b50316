from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from typing import Dict
import logging

from portal.services.auth_service import auth_service
from portal.schemas import AdminResponse, PasswordChange, Token
from portal.core.auth_dependencies import get_admin_user
from portal.services.audit_service import audit_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"]
)


# Authenticates an admin (username field carries the email) and returns a bearer token
@router.post("/login", response_model=Token, status_code=status.HTTP_200_OK)
async def login_admin(form_data: OAuth2PasswordRequestForm = Depends()) -> Token:
    try:
        token_data = await auth_service.login_admin(form_data.username, form_data.password)
    except HTTPException:
        await audit_service.record(action="login", actor=form_data.username, status="failed")
        raise
    except Exception as e:
        logger.error(f"Unexpected error during login: {e}")
        await audit_service.record(action="login", actor=form_data.username, status="failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred during login"
        )

    await audit_service.record(action="login", actor=form_data.username, status="successful")
    return Token(access_token=token_data["access_token"], token_type=token_data["token_type"])


@router.get("/me", response_model=AdminResponse, status_code=status.HTTP_200_OK)
async def get_current_admin_info(current_admin: Dict = Depends(get_admin_user)) -> AdminResponse:
    return AdminResponse(**current_admin)


@router.post("/refresh", response_model=Token, status_code=status.HTTP_200_OK)
async def refresh_token(current_admin: Dict = Depends(get_admin_user)) -> Token:
    token_data = await auth_service.refresh_admin_token(current_admin["email"])
    return Token(access_token=token_data["access_token"], token_type=token_data["token_type"])


@router.put("/password", status_code=status.HTTP_200_OK)
async def change_password(payload: PasswordChange, current_admin: Dict = Depends(get_admin_user)) -> Dict:
    await auth_service.change_password(current_admin["email"], payload.current_password, payload.new_password)
    await audit_service.record(action="change_password", actor=current_admin["email"], acted=current_admin["id"])
    return {"message": "Password updated successfully"}
