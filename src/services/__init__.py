"""Services package."""

from src.services.email import (
    EmailChannelInterface,
    SESEmailChannel,
    render_otp_email,
)
from src.services.storage import (
    BillsRepository,
    BudgetRepository,
    ConnectionError,
    GoogleSheetsClient,
    GoogleSheetsTableStore,
    InMemoryTableStore,
    OTPRepository,
    StorageError,
    TableNotFoundError,
    TableSchema,
    TableStoreInterface,
    UserRepository,
)

__all__ = [
    # Email services
    "EmailChannelInterface",
    "SESEmailChannel",
    "render_otp_email",
    # Storage services
    "BillsRepository",
    "BudgetRepository",
    "ConnectionError",
    "GoogleSheetsClient",
    "GoogleSheetsTableStore",
    "InMemoryTableStore",
    "OTPRepository",
    "StorageError",
    "TableNotFoundError",
    "TableSchema",
    "TableStoreInterface",
    "UserRepository",
]
