"""Tests for the SES email channel and the OTP template."""

import threading
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from src.config.settings import EmailSettings
from src.errors import ChannelFailureError
from src.services.email import OTP_SUBJECT, SESEmailChannel, render_otp_email


@pytest.fixture
def settings() -> EmailSettings:
    return EmailSettings(sender_email="noreply@smartbudget.test", region="eu-west-1")


class TestRenderOTPEmail:

    def test_html_contains_code_and_lifetime(self):
        html_body, text_body = render_otp_email("482913", 10)
        assert "482913" in html_body
        assert "10 minutes" in html_body
        assert text_body == "Your OTP is: 482913\nValid for 10 minutes."


class TestSESEmailChannel:

    async def test_send_builds_ses_message(self, settings):
        ses = MagicMock()
        ses.send_email.return_value = {"MessageId": "0100-abc"}
        channel = SESEmailChannel(settings=settings, client=ses)

        message_id = await channel.send("a@b.com", OTP_SUBJECT, "<p>hi</p>", "hi")

        assert message_id == "0100-abc"
        kwargs = ses.send_email.call_args.kwargs
        assert kwargs["Source"] == "SmartBudget Pro <noreply@smartbudget.test>"
        assert kwargs["Destination"] == {"ToAddresses": ["a@b.com"]}
        assert kwargs["Message"]["Subject"]["Data"] == OTP_SUBJECT
        assert kwargs["Message"]["Body"]["Html"]["Data"] == "<p>hi</p>"
        assert kwargs["Message"]["Body"]["Text"]["Data"] == "hi"

    async def test_client_error_becomes_channel_failure(self, settings):
        ses = MagicMock()
        ses.send_email.side_effect = ClientError(
            {"Error": {"Code": "MessageRejected", "Message": "Email address is not verified."}},
            "SendEmail",
        )
        channel = SESEmailChannel(settings=settings, client=ses)

        with pytest.raises(ChannelFailureError, match="^MessageRejected"):
            await channel.send("a@b.com", OTP_SUBJECT, "<p/>", "")

    async def test_transport_error_becomes_channel_failure(self, settings):
        ses = MagicMock()
        ses.send_email.side_effect = EndpointConnectionError(endpoint_url="https://email.eu-west-1.amazonaws.com")
        channel = SESEmailChannel(settings=settings, client=ses)

        with pytest.raises(ChannelFailureError, match="Could not connect"):
            await channel.send("a@b.com", OTP_SUBJECT, "<p/>", "")

    async def test_send_runs_in_worker_thread(self, settings):
        """The blocking SES call does not run on the event loop thread."""
        callers = []

        def send_email(**kwargs):
            callers.append(threading.current_thread())
            return {"MessageId": "0100-def"}

        ses = MagicMock()
        ses.send_email.side_effect = send_email
        channel = SESEmailChannel(settings=settings, client=ses)

        assert await channel.send("a@b.com", OTP_SUBJECT, "<p/>", "") == "0100-def"
        assert callers and callers[0] is not threading.current_thread()
