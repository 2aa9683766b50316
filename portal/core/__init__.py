from portal.core.config import Settings, settings
from portal.core.errors import (
    PortalError,
    ValidationError,
    InvalidTransition,
    NotFoundError,
    ConflictError,
    StoreUnavailable,
)
from portal.core.security import (
    hash_password,
    verify_password,
    create_access_token,
    decode_token,
    is_valid_password,
)
