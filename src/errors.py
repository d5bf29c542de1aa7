"""
Error taxonomy for SmartBudget.

Every error the core raises carries a human-readable message. The router
turns any of them into `{"success": false, "error": <message>}`; the wire
format does not distinguish between kinds.
"""


class SmartBudgetError(Exception):
    """Base exception for all domain errors."""
    pass


class InvalidInputError(SmartBudgetError):
    """A required field is missing or malformed."""
    pass


class OTPNotFoundError(SmartBudgetError):
    """No one-time code is pending for the email."""
    pass


class OTPExpiredError(SmartBudgetError):
    """The pending code is past its expiry."""
    pass


class OTPMismatchError(SmartBudgetError):
    """The submitted code does not match the pending one."""
    pass


class ChannelFailureError(SmartBudgetError):
    """The email channel could not deliver a message."""
    pass


class DecodeFailureError(SmartBudgetError):
    """A stored JSON document could not be parsed."""

    def __init__(self, table: str, row_number: int, message: str):
        self.table = table
        self.row_number = row_number
        super().__init__(message)
