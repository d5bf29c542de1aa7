"""
Data Models Package

Pydantic models for the rows SmartBudget stores and the requests it accepts.
"""

from src.models.api import (
    GET_ACTIONS,
    POST_ACTIONS,
    LoadBillsRequest,
    LoadDataRequest,
    PingRequest,
    SaveBillsRequest,
    SaveMonthRequest,
    SendOTPRequest,
    VerifyOTPRequest,
    err,
    ok,
)
from src.models.records import (
    BILLS_COLUMNS,
    BUDGET_COLUMNS,
    OTP_COLUMNS,
    USER_COLUMNS,
    BillsEntry,
    BudgetEntry,
    OTPRecord,
    UserRecord,
    utcnow,
)

__all__ = [
    # API models
    "GET_ACTIONS",
    "POST_ACTIONS",
    "LoadBillsRequest",
    "LoadDataRequest",
    "PingRequest",
    "SaveBillsRequest",
    "SaveMonthRequest",
    "SendOTPRequest",
    "VerifyOTPRequest",
    "err",
    "ok",
    # Stored records
    "BILLS_COLUMNS",
    "BUDGET_COLUMNS",
    "OTP_COLUMNS",
    "USER_COLUMNS",
    "BillsEntry",
    "BudgetEntry",
    "OTPRecord",
    "UserRecord",
    "utcnow",
]
