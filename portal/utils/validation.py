import math
import re
from datetime import date
from typing import Any, Dict, Mapping, Optional, Tuple

from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from portal.core.errors import ValidationError

BIRTH_RELATED_SERVICES = frozenset({"birth-certificate", "local-origin"})

# Wire name -> label used in error messages, in the order the form shows them
REQUIRED_INTAKE_FIELDS = (
    ("serviceType", "service type"),
    ("wardNumber", "ward number"),
    ("firstName", "first name"),
    ("lastName", "last name"),
    ("email", "email"),
    ("phone", "phone"),
    ("address", "address"),
)

OPTIONAL_TEXT_FIELDS = ("purpose", "additionalInfo")

_EMAIL_ADAPTER = TypeAdapter(EmailStr)
PHONE_PATTERN = re.compile(r"^[\d\s\-\+\(\)]{10,}$")


def _clean(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def is_birth_related(service_type: Optional[str]) -> bool:
    return _clean(service_type).lower() in BIRTH_RELATED_SERVICES


def parse_date_of_birth(value: Any, today: Optional[date] = None) -> str:
    raw = _clean(value)
    if not raw:
        raise ValidationError("Date of birth is required for this service", field="dateOfBirth")
    try:
        parsed = date.fromisoformat(raw)
    except ValueError:
        raise ValidationError("Date of birth must be a valid date (YYYY-MM-DD)", field="dateOfBirth")
    if parsed > (today or date.today()):
        raise ValidationError("Date of birth cannot be in the future", field="dateOfBirth")
    return parsed.isoformat()


def validate_intake(data: Mapping[str, Any], today: Optional[date] = None) -> Dict[str, Any]:
    """Validate a service-application intake keyed by wire (camelCase) names.

    Returns a cleaned copy: text trimmed, ``serviceType`` lower-cased,
    ``dateOfBirth`` normalised to ``YYYY-MM-DD`` for birth-related services
    and forced to ``None`` for every other service.
    """
    cleaned: Dict[str, Any] = {}

    for field, label in REQUIRED_INTAKE_FIELDS:
        value = _clean(data.get(field))
        if not value:
            raise ValidationError(f"Please fill in the {label} field", field=field)
        cleaned[field] = value

    cleaned["serviceType"] = cleaned["serviceType"].lower()

    try:
        cleaned["email"] = _EMAIL_ADAPTER.validate_python(cleaned["email"])
    except PydanticValidationError:
        raise ValidationError("Please enter a valid email address", field="email")
    if not PHONE_PATTERN.match(cleaned["phone"]):
        raise ValidationError("Please enter a valid phone number", field="phone")

    if is_birth_related(cleaned["serviceType"]):
        cleaned["dateOfBirth"] = parse_date_of_birth(data.get("dateOfBirth"), today=today)
    else:
        cleaned["dateOfBirth"] = None

    application_date = _clean(data.get("applicationDate"))
    if application_date:
        try:
            application_date = date.fromisoformat(application_date).isoformat()
        except ValueError:
            raise ValidationError("Application date must be a valid date (YYYY-MM-DD)", field="applicationDate")
    cleaned["applicationDate"] = application_date or (today or date.today()).isoformat()

    for field in OPTIONAL_TEXT_FIELDS:
        cleaned[field] = _clean(data.get(field)) or None

    cleaned["documents"] = list(data.get("documents") or [])
    return cleaned


def validate_payment_declaration(
    payment_method: Any,
    transaction_id: Any,
    amount: Any,
    minimum_amount: float,
) -> Tuple[str, str, float]:
    method = _clean(payment_method)
    if not method:
        raise ValidationError("Payment method is required", field="paymentMethod")
    reference = _clean(transaction_id)
    if not reference:
        raise ValidationError("Transaction ID is required", field="transactionId")

    if amount is None or isinstance(amount, bool) or _clean(amount) == "":
        raise ValidationError("Payment amount is required", field="amount")
    try:
        value = float(amount)
    except (TypeError, ValueError):
        raise ValidationError("Payment amount must be a number", field="amount")
    if not math.isfinite(value) or value <= 0:
        raise ValidationError("Payment amount must be a positive number", field="amount")
    if value < minimum_amount:
        raise ValidationError(
            f"Payment amount must be at least {minimum_amount:,.2f}", field="amount"
        )
    return method, reference, value
