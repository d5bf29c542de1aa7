"""
Stored Records for SmartBudget

Each record maps to one row of a worksheet. The models know how to turn
themselves into a row (`to_sheets_row`) and how to read themselves back
(`from_sheets_row`).

DESIGN DECISION: Sheets hands every cell back as a string, so decoding is
tolerant for bookkeeping cells (timestamps, counters) and strict where a bad
value changes behaviour (OTP expiry, JSON documents).
"""

import json
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.errors import DecodeFailureError


# Column headers, in sheet order
OTP_COLUMNS = ["Email", "OTP", "Expiry", "Token"]
USER_COLUMNS = ["Email", "First Login", "Last Login", "Login Count"]
BUDGET_COLUMNS = ["Email", "MonthKey", "Data (JSON)", "Updated At"]
BILLS_COLUMNS = ["Email", "Bills (JSON)", "Updated At"]


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def _cell(row: list, index: int) -> str:
    """Read a cell, treating short rows as empty cells."""
    try:
        value = row[index]
    except IndexError:
        return ""
    return "" if value is None else str(value)


def _parse_timestamp(value: str) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def to_epoch_ms(moment: datetime) -> int:
    """Convert a datetime to integer epoch milliseconds."""
    return int(moment.timestamp() * 1000)


def from_epoch_ms(value: int) -> datetime:
    """Convert integer epoch milliseconds to an aware UTC datetime."""
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


def decode_document(raw: str, table: str, row_number: int) -> Any:
    """
    Parse a JSON document cell.

    Raises:
        DecodeFailureError: If the cell is not valid JSON
    """
    try:
        return json.loads(raw)
    except (TypeError, ValueError) as e:
        raise DecodeFailureError(
            table=table,
            row_number=row_number,
            message=f"Row {row_number} of {table} holds invalid JSON: {e}",
        )


class SheetRecord(BaseModel):
    """Base for records read from or written to a worksheet."""

    model_config = ConfigDict(str_strip_whitespace=True)

    # 1-based sheet row the record was read from (row 1 is the header)
    row_number: Optional[int] = Field(default=None, exclude=True)


class OTPRecord(SheetRecord):
    """
    A pending one-time code.

    At most one record per email exists; sending a new code replaces it.
    """

    email: str = Field(..., min_length=3, description="Lowercased email address")
    code: str = Field(..., pattern=r"^\d{6}$", description="Six ASCII digits")
    expiry: datetime = Field(..., description="Absolute expiry (UTC)")
    session_token: str = Field(..., min_length=1, description="Opaque bearer token")

    @field_validator('email')
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()

    def is_expired(self, now: datetime) -> bool:
        return now > self.expiry

    def to_sheets_row(self) -> list:
        """[email, code, expiry_epoch_ms, token]"""
        return [
            self.email,
            self.code,
            to_epoch_ms(self.expiry),
            self.session_token,
        ]

    @classmethod
    def from_sheets_row(cls, row: list, row_number: Optional[int] = None) -> "OTPRecord":
        """
        Raises:
            ValueError: If the expiry is not a number or a field fails validation
        """
        try:
            expiry = from_epoch_ms(int(float(_cell(row, 2))))
        except (OverflowError, OSError) as e:
            raise ValueError(f"Expiry out of range: {e}")
        return cls(
            email=_cell(row, 0),
            code=_cell(row, 1),
            expiry=expiry,
            session_token=_cell(row, 3),
            row_number=row_number,
        )


class UserRecord(SheetRecord):
    """Login bookkeeping for one email address."""

    email: str = Field(..., min_length=1)
    first_login_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None
    login_count: int = Field(default=1, ge=0)

    def to_sheets_row(self) -> list:
        return [
            self.email,
            self.first_login_at.isoformat() if self.first_login_at else "",
            self.last_login_at.isoformat() if self.last_login_at else "",
            self.login_count,
        ]

    @classmethod
    def from_sheets_row(cls, row: list, row_number: Optional[int] = None) -> "UserRecord":
        try:
            count = int(float(_cell(row, 3) or 0))
        except ValueError:
            count = 0
        return cls(
            email=_cell(row, 0),
            first_login_at=_parse_timestamp(_cell(row, 1)),
            last_login_at=_parse_timestamp(_cell(row, 2)),
            login_count=max(count, 0),
            row_number=row_number,
        )


class BudgetEntry(SheetRecord):
    """One month of budget data for one user."""

    # Month keys match exactly, padding included
    model_config = ConfigDict(str_strip_whitespace=False)

    email: str = Field(..., min_length=1)
    month_key: str = Field(..., min_length=1, description="e.g. '2024-01'")
    document: Any = Field(..., description="Arbitrary JSON-serialisable payload")
    updated_at: datetime = Field(default_factory=utcnow)

    def to_sheets_row(self) -> list:
        return [
            self.email,
            self.month_key,
            json.dumps(self.document),
            self.updated_at.isoformat(),
        ]


class BillsEntry(SheetRecord):
    """The full list of recurring bills for one user."""

    email: str = Field(..., min_length=1)
    document: Any = Field(default_factory=list)
    updated_at: datetime = Field(default_factory=utcnow)

    def to_sheets_row(self) -> list:
        return [
            self.email,
            json.dumps(self.document),
            self.updated_at.isoformat(),
        ]
