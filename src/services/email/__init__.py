"""Email delivery services package."""

from src.services.email.interface import EmailChannelInterface
from src.services.email.ses_service import (
    OTP_SUBJECT,
    SESEmailChannel,
    render_otp_email,
)

__all__ = [
    "EmailChannelInterface",
    "OTP_SUBJECT",
    "SESEmailChannel",
    "render_otp_email",
]
