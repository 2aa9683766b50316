"""
Applicant-side flow for the service application form.

One ``SubmissionFlow`` per form session. It keeps the entered values, guards
against double submission and talks to the API with ``httpx``. A failed
submission is reported to the caller and the entered values are kept for a
retry; no application id is ever made up locally.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from portal.core.config import settings
from portal.core.errors import ValidationError
from portal.utils.validation import is_birth_related, validate_intake, validate_payment_declaration

logger = logging.getLogger(__name__)

FORM_FIELDS = (
    "serviceType", "wardNumber", "applicationDate", "firstName", "lastName",
    "email", "phone", "address", "dateOfBirth", "purpose", "additionalInfo",
)


class SubmissionError(Exception):
    """The server rejected the request or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.field = field


class SubmissionInProgress(SubmissionError):
    pass


def _error_from_response(response: httpx.Response, fallback: str) -> SubmissionError:
    try:
        body = response.json()
    except ValueError:
        body = {}
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return SubmissionError(error.get("message") or fallback, response.status_code, error.get("field"))
    if isinstance(error, str):
        return SubmissionError(error, response.status_code)
    return SubmissionError(f"{fallback}: server error {response.status_code}", response.status_code)


class SubmissionFlow:

    def __init__(self, base_url: str, transport: Optional[httpx.AsyncBaseTransport] = None,
                 timeout: float = 30.0):
        self.base_url = base_url.rstrip("/")
        self._transport = transport
        self._timeout = timeout
        self.form: Dict[str, Any] = {field: None for field in FORM_FIELDS}
        self.documents: list = []
        self.application_id: Optional[str] = None
        self.payment_id: Optional[str] = None
        self.submitting = False
        self.confirming_payment = False

    @property
    def date_of_birth_required(self) -> bool:
        return is_birth_related(self.form.get("serviceType"))

    def update(self, **values: Any) -> None:
        for key, value in values.items():
            if key == "serviceType":
                self.set_service_type(value)
            elif key in self.form:
                self.form[key] = value
            else:
                raise KeyError(f"Unknown form field: {key}")

    def set_service_type(self, service_type: Optional[str]) -> None:
        self.form["serviceType"] = service_type
        if not self.date_of_birth_required:
            # Explicit null tells the server the field was deliberately left out
            self.form["dateOfBirth"] = None

    def add_document(self, name: str, size: int, content_type: Optional[str] = None) -> None:
        self.documents.append({"name": name, "size": size, "type": content_type})

    def build_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        for key in FORM_FIELDS:
            value = self.form.get(key)
            payload[key] = value.strip() if isinstance(value, str) else value
        if not self.date_of_birth_required:
            payload["dateOfBirth"] = None
        payload["documents"] = list(self.documents)
        return payload

    def validate(self) -> Dict[str, Any]:
        payload = self.build_payload()
        validate_intake(payload)
        return payload

    def reset(self) -> None:
        self.form = {field: None for field in FORM_FIELDS}
        self.documents = []

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self._timeout, transport=self._transport)

    async def submit(self) -> str:
        """Send the application and return the server-issued application id."""
        if self.submitting:
            raise SubmissionInProgress("An application is already being submitted")

        payload = self.validate()
        self.submitting = True
        try:
            async with self._client() as client:
                response = await client.post("/service-applications", json=payload)
            if response.status_code >= 400:
                raise _error_from_response(response, "Failed to submit application")

            application_id = response.json().get("applicationId")
            if not application_id:
                raise SubmissionError("Server response did not include an application id", response.status_code)
        except httpx.HTTPError as e:
            logger.error(f"Submission failed: {e}")
            raise SubmissionError(f"Failed to submit application: {e}") from e
        finally:
            self.submitting = False

        self.application_id = application_id
        self.reset()
        logger.info(f"Application {application_id} submitted")
        return application_id

    async def confirm_payment(self, payment_method: str, transaction_id: str, amount: Any) -> str:
        if self.confirming_payment:
            raise SubmissionInProgress("A payment confirmation is already in progress")
        if not self.application_id:
            raise ValidationError("Submit the application before confirming payment", field="applicationId")

        method, reference, value = validate_payment_declaration(
            payment_method, transaction_id, amount, settings.MIN_PAYMENT_AMOUNT
        )
        self.confirming_payment = True
        try:
            async with self._client() as client:
                response = await client.post("/service-applications/payments", json={
                    "applicationId": self.application_id,
                    "paymentMethod": method,
                    "transactionId": reference,
                    "amount": value,
                })
            if response.status_code >= 400:
                raise _error_from_response(response, "Failed to confirm payment")
            self.payment_id = response.json().get("paymentId")
        except httpx.HTTPError as e:
            logger.error(f"Payment confirmation failed: {e}")
            raise SubmissionError(f"Failed to confirm payment: {e}") from e
        finally:
            self.confirming_payment = False

        return self.payment_id

    async def check_status(self) -> Dict[str, Any]:
        if not self.application_id:
            raise ValidationError("No application has been submitted yet", field="applicationId")
        try:
            async with self._client() as client:
                response = await client.get(f"/service-applications/{self.application_id}/status")
        except httpx.HTTPError as e:
            raise SubmissionError(f"Failed to check application status: {e}") from e
        if response.status_code >= 400:
            raise _error_from_response(response, "Failed to check application status")
        return response.json()
