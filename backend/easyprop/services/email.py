"""
OTP email delivery through the EmailJS REST API
"""

import secrets
from typing import Any, Dict, Optional

import httpx

from easyprop.core.config import settings
from easyprop.core.exceptions import EasyPropException
from easyprop.core.logging import get_logger

logger = get_logger(__name__)

OTP_TTL_MINUTES = 10


def generate_otp() -> str:
    """Six-digit numeric one-time password"""
    return f"{secrets.randbelow(900000) + 100000}"


class EmailService:
    def __init__(
        self,
        service_id: Optional[str] = None,
        template_id: Optional[str] = None,
        public_key: Optional[str] = None,
        api_url: Optional[str] = None,
    ):
        self.service_id = service_id if service_id is not None else settings.EMAILJS_SERVICE_ID
        self.template_id = template_id if template_id is not None else settings.EMAILJS_TEMPLATE_ID
        self.public_key = public_key if public_key is not None else settings.EMAILJS_PUBLIC_KEY
        self.api_url = api_url or settings.EMAILJS_API_URL

    @property
    def configured(self) -> bool:
        return all([self.service_id, self.template_id, self.public_key])

    def _development_result(self, email: str, otp: str, reason: str) -> Dict[str, Any]:
        logger.warning("OTP email not sent, returning development OTP", email=email, reason=reason)
        return {
            "success": True,
            "message": "OTP generated (development mode, email not sent)",
            "development_otp": otp,
        }

    async def send_otp(self, email: str, otp: str, name: str = "User") -> Dict[str, Any]:
        if not self.configured:
            return self._development_result(email, otp, "EmailJS not configured")

        payload = {
            "service_id": self.service_id,
            "template_id": self.template_id,
            "user_id": self.public_key,
            "template_params": {
                "email": email,
                "to_name": name,
                "otp_code": otp,
                "from_name": "EasyProp",
                "message": (
                    f"Your OTP for EasyProp registration is: {otp}. "
                    f"This code will expire in {OTP_TTL_MINUTES} minutes."
                ),
            },
        }

        try:
            async with httpx.AsyncClient(timeout=settings.REQUEST_TIMEOUT) as client:
                response = await client.post(self.api_url, json=payload)
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("EmailJS request failed", email=email, error=str(e))
            if settings.ENVIRONMENT == "development":
                return self._development_result(email, otp, "EmailJS request failed")
            raise EasyPropException(
                "Failed to send OTP email. Please try again.",
                error_code="EMAIL_SEND_FAILED"
            )

        logger.info("OTP email sent", email=email)
        return {"success": True, "message": "OTP sent successfully to your email"}


email_service = EmailService()
