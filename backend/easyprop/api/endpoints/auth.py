from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel

from easyprop.core.exceptions import ValidationException
from easyprop.services.email import email_service, generate_otp
from easyprop.utils.validation import validate_email

router = APIRouter()


class OTPRequest(BaseModel):
    email: str
    name: Optional[str] = None


@router.post("/otp")
async def send_registration_otp(request: OTPRequest):
    """
    Email a six digit registration code.

    Without EmailJS credentials the code is returned in the response as
    ``development_otp`` instead of being mailed.
    """
    if not validate_email(request.email):
        raise ValidationException("Please enter a valid email address")
    otp = generate_otp()
    result = await email_service.send_otp(request.email, otp, request.name or "User")
    return {**result, "email": request.email}
