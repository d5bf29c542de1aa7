"""
Abstract Email Channel

The core only needs one capability: deliver a message with an HTML body
(and a plain-text fallback) to an address. Delivery can fail.
"""

from abc import ABC, abstractmethod


class EmailChannelInterface(ABC):
    """Anything that can deliver an email."""

    @abstractmethod
    async def send(
        self,
        to_address: str,
        subject: str,
        html_body: str,
        text_body: str,
    ) -> str:
        """
        Deliver one message.

        Returns:
            Provider message id

        Raises:
            ChannelFailureError: If the provider refused or could not be reached
        """
        pass
