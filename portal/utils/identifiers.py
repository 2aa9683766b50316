import secrets
import string
import time
from typing import Optional

from portal.core.config import settings

_BASE36_ALPHABET = string.digits + string.ascii_uppercase


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("base36 encoding expects a non-negative integer")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))


def generate_application_id(prefix: Optional[str] = None, now_ms: Optional[int] = None) -> str:
    """Build a human-shareable application id such as ``UGW-LZ3K1Q2A-7F4QX``.

    The id doubles as the applicant's payment reference, so it is kept short,
    upper-case and visually distinct from Mongo ObjectIds.
    """
    prefix = (prefix or settings.APPLICATION_ID_PREFIX or "APP").upper()
    timestamp = to_base36(now_ms if now_ms is not None else int(time.time() * 1000))
    suffix = "".join(secrets.choice(_BASE36_ALPHABET) for _ in range(5))
    return f"{prefix}-{timestamp}-{suffix}"
