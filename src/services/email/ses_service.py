"""
Email Delivery using AWS SES

Renders the one-time code email from a Jinja2 template and hands it to SES.
Any SES or transport error becomes a ChannelFailureError carrying the
provider's error code or message.
"""

import asyncio
from pathlib import Path
from typing import Any, Optional

import boto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError
from jinja2 import Environment, FileSystemLoader, select_autoescape

from src.config import get_settings
from src.config.settings import EmailSettings
from src.errors import ChannelFailureError
from src.log import mask_email
from src.services.email.interface import EmailChannelInterface


logger = structlog.get_logger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"

env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html", "xml"]),
)

OTP_SUBJECT = "SmartBudget Pro — Your OTP"


def render_otp_email(code: str, lifetime_minutes: int) -> tuple[str, str]:
    """
    Build the login code email.

    Returns:
        (html_body, text_body)
    """
    html_body = env.get_template("otp_email.html.jinja").render(
        otp=code,
        lifetime=lifetime_minutes,
    )
    text_body = f"Your OTP is: {code}\nValid for {lifetime_minutes} minutes."
    return html_body, text_body


class SESEmailChannel(EmailChannelInterface):
    """Email channel backed by Amazon SES."""

    def __init__(
        self,
        settings: Optional[EmailSettings] = None,
        client: Optional[Any] = None,
    ):
        self._settings = settings or get_settings().email
        self._client = client

    def _get_client(self):
        """Get or create the SES client."""
        if self._client is None:
            kwargs = {"region_name": self._settings.region}
            if self._settings.access_key_id and self._settings.secret_access_key:
                kwargs["aws_access_key_id"] = self._settings.access_key_id
                kwargs["aws_secret_access_key"] = self._settings.secret_access_key
            self._client = boto3.client("ses", **kwargs)
        return self._client

    @property
    def source(self) -> str:
        return f"{self._settings.sender_name} <{self._settings.sender_email}>"

    async def send(
        self,
        to_address: str,
        subject: str,
        html_body: str,
        text_body: str,
    ) -> str:
        try:
            resp = await asyncio.to_thread(
                self._get_client().send_email,
                Source=self.source,
                Destination={"ToAddresses": [to_address]},
                Message={
                    "Subject": {"Data": subject, "Charset": "UTF-8"},
                    "Body": {
                        "Html": {"Data": html_body, "Charset": "UTF-8"},
                        "Text": {"Data": text_body, "Charset": "UTF-8"},
                    },
                },
            )
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error("ses_send_rejected", to=mask_email(to_address), code=code)
            raise ChannelFailureError(f"{code}: {e}")
        except BotoCoreError as e:
            logger.error("ses_send_failed", to=mask_email(to_address), error=str(e))
            raise ChannelFailureError(str(e))

        message_id = resp.get("MessageId", "")
        logger.info("ses_send_succeeded", to=mask_email(to_address), message_id=message_id)
        return message_id
