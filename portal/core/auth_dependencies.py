from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from portal.core.security import decode_token, ADMIN_ROLE
from portal.services.auth_service import auth_service
from typing import Dict
import logging

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")

# Resolves the admin behind a bearer token; every admin route depends on this
async def get_admin_user(token: str = Depends(oauth2_scheme)) -> Dict:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_token(token)
    if payload is None:
        logger.debug("Token payload is None after decoding.")
        raise credentials_exception

    email = payload.get("sub")
    if email is None or payload.get("role") != ADMIN_ROLE:
        logger.warning("Token without admin subject rejected")
        raise credentials_exception

    admin = await auth_service.get_admin_by_email(email)
    if admin is None:
        raise credentials_exception

    return admin
