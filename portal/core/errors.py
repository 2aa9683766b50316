from typing import Optional


class PortalError(Exception):
    """Base class for errors that map onto an HTTP status code."""

    status_code: int = 500
    code: str = "portal_error"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> dict:
        body = {
            "code": self.code,
            "message": self.message,
            "status_code": self.status_code,
        }
        if self.field:
            body["field"] = self.field
        return body


class ValidationError(PortalError):
    status_code = 400
    code = "validation_error"


class InvalidTransition(ValidationError):
    code = "invalid_transition"


class NotFoundError(PortalError):
    status_code = 404
    code = "not_found"


class ConflictError(PortalError):
    status_code = 409
    code = "conflict"


class StoreUnavailable(PortalError):
    status_code = 503
    code = "store_unavailable"
