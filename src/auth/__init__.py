"""Login package: one-time codes and the user registry."""

from src.auth.otp import OTPManager, generate_code, generate_session_token, is_email
from src.auth.registry import UserRegistry

__all__ = [
    "OTPManager",
    "UserRegistry",
    "generate_code",
    "generate_session_token",
    "is_email",
]
