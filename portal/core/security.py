import logging
from passlib.context import CryptContext
from datetime import datetime, timedelta, timezone
from jose import jwt, JWTError
from typing import Optional, Dict, Any
from portal.core.config import settings

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ADMIN_ROLE = "admin"

# Minimum length for admin passwords
def is_valid_password(password: str) -> bool:
    return bool(password) and len(password) >= 8

# Hashes an admin password with bcrypt
def hash_password(password: str) -> str:
    if not is_valid_password(password):
        raise ValueError("Password must be at least 8 characters long")

    try:
        return pwd_context.hash(password)
    except Exception as e:
        raise ValueError("Failed to hash password") from e

# Checks a plain password against the stored bcrypt hash
def verify_password(password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(password, hashed_password)
    except Exception as e:
        logger.warning(f"Password verification error: {e}")
        return False

# Issues an admin access token; the subject is the admin email
def create_access_token(subject: str, expires_delta: Optional[timedelta] = None) -> str:
    if not settings.JWT_SECRET_KEY:
        raise ValueError("JWT_SECRET_KEY is not configured")

    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode = {"sub": subject, "role": ADMIN_ROLE, "exp": expire}
    try:
        return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
    except Exception as e:
        raise ValueError("Failed to create access token") from e

# Returns the token payload, or None when the token is invalid or expired
def decode_token(token: str) -> Optional[Dict[str, Any]]:
    if not settings.JWT_SECRET_KEY:
        return None
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None
