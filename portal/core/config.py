import os
import logging
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring non-integer value for {name}; using {default}")
        return default


class Settings:
    PROJECT_NAME: str = "Municipal Service Application Portal"
    MONGODB_URI: str = os.getenv("MONGODB_URI")
    MONGODB_DB_NAME: str = os.getenv("MONGODB_DB_NAME")
    MONGODB_TLS: bool = os.getenv("MONGODB_TLS", "false").lower() in ("1", "true", "yes")
    JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY")
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = _int_env("JWT_ACCESS_TOKEN_EXPIRE_MINUTES", 30)
    CLIENT_URL: str = os.getenv("CLIENT_URL", "http://localhost:3000")

    # Bootstrap admin account, created on startup when no admin exists yet
    ADMIN_EMAIL: str = os.getenv("ADMIN_EMAIL")
    ADMIN_PASSWORD: str = os.getenv("ADMIN_PASSWORD")
    ADMIN_FULL_NAME: str = os.getenv("ADMIN_FULL_NAME", "Portal Administrator")

    APPLICATION_ID_PREFIX: str = os.getenv("APPLICATION_ID_PREFIX", "UGW")
    MIN_PAYMENT_AMOUNT: int = _int_env("MIN_PAYMENT_AMOUNT", 5000)
    NOTIFICATION_POLL_SECONDS: int = _int_env("NOTIFICATION_POLL_SECONDS", 30)

    # Optional SMS alert to the admin when a payment is declared
    SMS_API_URL: str = os.getenv("SMS_API_URL")
    SMS_API_TOKEN: str = os.getenv("SMS_API_TOKEN")
    SMS_SENDER_ID: str = os.getenv("SMS_SENDER_ID")
    ADMIN_ALERT_PHONE: str = os.getenv("ADMIN_ALERT_PHONE")


settings = Settings()


def _mask_secret(val: str) -> str:
    if not val:
        return "<missing>"
    if len(val) <= 8:
        return "*" * len(val)
    return f"{val[:4]}...{val[-4:]}"


if not settings.JWT_SECRET_KEY:
    logger.warning("JWT_SECRET_KEY is missing or empty; admin login will fail")
else:
    logger.debug("Loaded JWT_SECRET_KEY: %s", _mask_secret(settings.JWT_SECRET_KEY))
