"""
One-Time Code Login

Flow:
1. send   - draw a code and a session token, store them, email the code
2. verify - check the code; on success hand back the token and burn the record
3. sweep  - periodically delete records past their expiry

DESIGN DECISION: The stored record survives a failed email dispatch.
The user simply asks for a new code, which replaces it.

The session token returned by verify is a bearer credential. Nothing in
this service (or the ledgers) checks it on later calls.
"""

import re
import secrets
from datetime import datetime, timedelta
from typing import Callable, Optional
from uuid import uuid4

import structlog

from src.auth.registry import UserRegistry
from src.config import get_settings
from src.errors import (
    ChannelFailureError,
    InvalidInputError,
    OTPExpiredError,
    OTPMismatchError,
    OTPNotFoundError,
)
from src.log import mask_email
from src.models.records import OTPRecord, utcnow
from src.services.email import EmailChannelInterface, render_otp_email
from src.services.email.ses_service import OTP_SUBJECT
from src.services.storage import OTPRepository


logger = structlog.get_logger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

CODE_MIN = 100000
CODE_MAX = 999999


def is_email(value: Optional[str]) -> bool:
    return bool(value) and EMAIL_PATTERN.match(value) is not None


def generate_code() -> str:
    """Six digits, uniform over [100000, 999999]."""
    return str(CODE_MIN + secrets.randbelow(CODE_MAX - CODE_MIN + 1))


def generate_session_token() -> str:
    return uuid4().hex


class OTPManager:
    """Issues, checks and expires one-time login codes."""

    def __init__(
        self,
        otps: OTPRepository,
        email_channel: EmailChannelInterface,
        registry: UserRegistry,
        lifetime_minutes: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._otps = otps
        self._email = email_channel
        self._registry = registry
        self._lifetime_minutes = lifetime_minutes or get_settings().otp.lifetime_minutes
        self._clock = clock or utcnow

    @property
    def lifetime(self) -> timedelta:
        return timedelta(minutes=self._lifetime_minutes)

    async def send(self, email: Optional[str]) -> dict:
        """
        Issue a new code for this email and mail it.

        Returns:
            {"sent": True}

        Raises:
            InvalidInputError: If the address is malformed
            ChannelFailureError: If the email could not be sent (the code stays stored)
        """
        if not is_email(email):
            raise InvalidInputError("Invalid email address")

        normalized = email.lower()
        code = generate_code()
        record = OTPRecord(
            email=normalized,
            code=code,
            expiry=self._clock() + self.lifetime,
            session_token=generate_session_token(),
        )
        await self._otps.upsert(record)

        html_body, text_body = render_otp_email(code, self._lifetime_minutes)
        try:
            await self._email.send(email, OTP_SUBJECT, html_body, text_body)
        except ChannelFailureError as e:
            logger.warning("otp_dispatch_failed", email=mask_email(normalized), error=str(e))
            raise ChannelFailureError(f"Email send failed: {e}")

        await self._registry.touch(normalized)
        logger.info("otp_sent", email=mask_email(normalized))
        return {"sent": True}

    async def verify(self, email: Optional[str], code: Optional[str]) -> dict:
        """
        Check a submitted code. Single use: a match deletes the record.

        A wrong code leaves the record in place, so the user can retry
        until it expires.

        Returns:
            {"verified": True, "token": <session token>, "email": <lowercased email>}

        Raises:
            InvalidInputError: If email or code is missing
            OTPNotFoundError: If no code is pending for the email
            OTPExpiredError: If the pending code has expired
            OTPMismatchError: If the code is wrong
        """
        if not email or code is None or not str(code).strip():
            raise InvalidInputError("Email and OTP required")

        normalized = email.strip().lower()
        record = await self._otps.get(normalized)
        if record is None:
            logger.info("otp_verify_failed", email=mask_email(normalized), reason="not_found")
            raise OTPNotFoundError("No OTP found. Request a new one.")

        if record.is_expired(self._clock()):
            logger.info("otp_verify_failed", email=mask_email(normalized), reason="expired")
            raise OTPExpiredError("OTP expired. Request a new one.")

        if record.code != str(code).strip():
            logger.info("otp_verify_failed", email=mask_email(normalized), reason="mismatch")
            raise OTPMismatchError("Wrong OTP. Try again.")

        await self._otps.delete(record)
        logger.info("otp_verified", email=mask_email(normalized))
        return {"verified": True, "token": record.session_token, "email": normalized}

    async def sweep_expired(self) -> int:
        """
        Delete every record whose expiry has passed.

        Rows are deleted bottom-up so earlier row numbers stay valid.

        Returns:
            Number of records removed
        """
        now = self._clock()
        expired = [record for record in await self._otps.scan() if record.is_expired(now)]
        for record in sorted(expired, key=lambda r: r.row_number, reverse=True):
            await self._otps.delete(record)

        logger.info("otp_sweep_completed", removed=len(expired))
        return len(expired)
