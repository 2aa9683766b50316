"""
SMS alert to the portal administrator when a payment is declared.

Works with any bearer-token SMS gateway accepting
``{"recipient", "sender_id", "type", "message"}`` JSON (PhilSMS, Termii and
similar). Disabled unless SMS_API_URL, SMS_API_TOKEN, SMS_SENDER_ID and
ADMIN_ALERT_PHONE are all set.
"""

import logging
from typing import Optional
import httpx
from portal.core.config import settings

logger = logging.getLogger(__name__)


class AdminAlertService:

    def __init__(
        self,
        api_url: Optional[str] = None,
        api_token: Optional[str] = None,
        sender_id: Optional[str] = None,
        admin_phone: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = api_url or settings.SMS_API_URL
        self.api_token = api_token or settings.SMS_API_TOKEN
        self.sender_id = sender_id or settings.SMS_SENDER_ID
        self.admin_phone = admin_phone or settings.ADMIN_ALERT_PHONE
        self._transport = transport

        if not self.is_configured:
            logger.info("SMS admin alerts disabled (gateway settings not configured)")

    @property
    def is_configured(self) -> bool:
        return bool(self.api_url and self.api_token and self.sender_id and self.admin_phone)

    @staticmethod
    def _sanitize_message(message: str) -> str:
        """Keep the message plain ASCII so the gateway does not switch to unicode billing."""
        replacements = {
            '₦': 'NGN ',
            '’': "'",
            '‘': "'",
            '“': '"',
            '”': '"',
            '–': '-',
        }
        for old, new in replacements.items():
            message = message.replace(old, new)
        return ''.join(char for char in message if ord(char) < 128)

    @staticmethod
    def normalize_phone_number(phone_number: str) -> str:
        """
        Normalize a Nigerian number to international format without '+'.

        Examples: "08012345678", "+2348012345678", "234 801 234 5678" -> "2348012345678"

        Raises:
            ValueError: if the number is not 13 digits once normalized
        """
        if not phone_number:
            raise ValueError("Phone number cannot be empty")

        cleaned = phone_number
        for sep in (" ", "-", "(", ")"):
            cleaned = cleaned.replace(sep, "")
        if cleaned.startswith("+"):
            cleaned = cleaned[1:]
        if cleaned.startswith("0"):
            cleaned = cleaned[1:]
        if not cleaned.startswith("234"):
            cleaned = f"234{cleaned}"

        if len(cleaned) != 13 or not cleaned.isdigit():
            raise ValueError(
                f"Invalid phone number format. Expected 13 digits (234XXXXXXXXXX), got '{cleaned}'"
            )
        return cleaned

    async def send_sms(self, phone_number: str, message: str) -> dict:
        if not self.is_configured:
            raise RuntimeError("SMS gateway is not configured")

        recipient = self.normalize_phone_number(phone_number)
        payload = {
            "recipient": recipient,
            "sender_id": self.sender_id,
            "type": "plain",
            "message": self._sanitize_message(message),
        }
        headers = {
            "Authorization": f"Bearer {self.api_token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

        logger.info(f"Sending SMS alert to {recipient[:6]}...*** ({len(payload['message'])} chars)")
        async with httpx.AsyncClient(timeout=30.0, transport=self._transport) as client:
            response = await client.post(self.api_url, headers=headers, json=payload)

        try:
            data = response.json()
        except ValueError:
            raise RuntimeError(f"Invalid JSON response from SMS gateway (HTTP {response.status_code})")

        if response.status_code >= 400 or data.get("status") != "success":
            error_message = data.get("message", "Unknown error")
            logger.error(f"SMS gateway error: HTTP {response.status_code} - {error_message}")
            raise RuntimeError(f"SMS gateway error: {error_message}")

        return {"success": True, "phone": recipient, "message_id": (data.get("data") or {}).get("uid")}

    async def send_payment_alert(self, application_id: str, amount: float, payment_method: str) -> dict:
        message = (
            f"New payment of NGN {amount:,.2f} via {payment_method} for application "
            f"{application_id}. Please verify it on the admin dashboard."
        )
        return await self.send_sms(self.admin_phone, message)


admin_alert_service = AdminAlertService()
