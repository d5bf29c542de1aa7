"""
Entity Repositories

One repository per stored entity, each built on a TableStoreInterface.
Lookups are linear scans; the first matching row wins. Email comparison is
case-insensitive everywhere.

Repositories hand back raw JSON cells for budget and bills rows; decoding
(and deciding what to do with a corrupt cell) belongs to the ledgers.
"""

from datetime import datetime
from typing import Optional

import structlog
from pydantic import ValidationError

from src.config import get_settings
from src.models.records import (
    BILLS_COLUMNS,
    BUDGET_COLUMNS,
    OTP_COLUMNS,
    USER_COLUMNS,
    BillsEntry,
    BudgetEntry,
    OTPRecord,
    UserRecord,
)
from src.services.storage.interface import (
    FIRST_DATA_ROW,
    TableSchema,
    TableStoreInterface,
)


logger = structlog.get_logger(__name__)


def same_email(stored: str, email: str) -> bool:
    return str(stored).strip().lower() == email.strip().lower()


def _sheet_name(attribute: str, default: str) -> str:
    """Configured sheet name, falling back to the default when Sheets isn't configured."""
    try:
        return getattr(get_settings().google_sheets, attribute)
    except ValidationError:
        return default


class _Repository:
    """Shared plumbing: a table store plus the schema of one table."""

    def __init__(self, store: TableStoreInterface, table: TableSchema):
        self._store = store
        self.table = table

    async def _numbered_rows(self) -> list[tuple[int, list[str]]]:
        rows = await self._store.get_rows(self.table)
        return [
            (row_number, row)
            for row_number, row in enumerate(rows, start=FIRST_DATA_ROW)
            if row and row[0]
        ]

    async def _first_row_for(self, email: str) -> Optional[int]:
        for row_number, row in await self._numbered_rows():
            if same_email(row[0], email):
                return row_number
        return None


class OTPRepository(_Repository):
    """Pending one-time codes, one row per email. The table is hidden."""

    def __init__(self, store: TableStoreInterface, sheet_name: Optional[str] = None):
        super().__init__(store, TableSchema(
            name=sheet_name or _sheet_name("otp_sheet_name", "OTPStore"),
            columns=tuple(OTP_COLUMNS),
            hidden=True,
        ))

    async def scan(self) -> list[OTPRecord]:
        """All readable records. Unreadable rows are logged and left alone."""
        records = []
        for row_number, row in await self._numbered_rows():
            try:
                records.append(OTPRecord.from_sheets_row(row, row_number=row_number))
            except ValueError as e:
                logger.warning(
                    "otp_row_undecodable",
                    table=self.table.name,
                    row=row_number,
                    error=str(e),
                )
        return records

    async def get(self, email: str) -> Optional[OTPRecord]:
        for record in await self.scan():
            if same_email(record.email, email):
                return record
        return None

    async def upsert(self, record: OTPRecord) -> None:
        """Replace the row for this email (readable or not), or append one."""
        row_number = await self._first_row_for(record.email)
        row = record.to_sheets_row()
        if row_number is not None:
            await self._store.update_row(self.table, row_number, row)
        else:
            await self._store.append_row(self.table, row)

    async def delete(self, record: OTPRecord) -> None:
        """Delete the row a record was read from."""
        await self._store.delete_row(self.table, record.row_number)


class UserRepository(_Repository):
    """User registry: one row per email."""

    def __init__(self, store: TableStoreInterface, sheet_name: Optional[str] = None):
        super().__init__(store, TableSchema(
            name=sheet_name or _sheet_name("users_sheet_name", "Users"),
            columns=tuple(USER_COLUMNS),
            header_color="#7c3aed",
        ))

    async def get(self, email: str) -> Optional[UserRecord]:
        for row_number, row in await self._numbered_rows():
            if same_email(row[0], email):
                return UserRecord.from_sheets_row(row, row_number=row_number)
        return None

    async def add(self, record: UserRecord) -> None:
        await self._store.append_row(self.table, record.to_sheets_row())

    async def record_login(
        self,
        record: UserRecord,
        last_login_at: datetime,
        login_count: int,
    ) -> None:
        """Overwrite Last Login and Login Count; First Login is left untouched."""
        await self._store.update_row(
            self.table,
            record.row_number,
            [last_login_at.isoformat(), login_count],
            start_column=3,
        )


class BudgetRepository(_Repository):
    """Monthly budget documents keyed by (email, month key)."""

    def __init__(self, store: TableStoreInterface, sheet_name: Optional[str] = None):
        super().__init__(store, TableSchema(
            name=sheet_name or _sheet_name("budget_sheet_name", "BudgetData"),
            columns=tuple(BUDGET_COLUMNS),
            header_color="#059669",
        ))

    async def scan_email(self, email: str) -> list[tuple[int, str, str]]:
        """(row_number, month_key, raw_json) for every row of this email."""
        return [
            (row_number, row[1], row[2] if len(row) > 2 else "")
            for row_number, row in await self._numbered_rows()
            if len(row) > 1 and same_email(row[0], email)
        ]

    async def find_row(self, email: str, month_key: str) -> Optional[int]:
        for row_number, key, _ in await self.scan_email(email):
            if key == month_key:
                return row_number
        return None

    async def upsert(self, entry: BudgetEntry) -> Optional[int]:
        """
        Update the first row for (email, month key) or append a new one.

        Returns:
            The updated sheet row, or None when a row was appended
        """
        row_number = await self.find_row(entry.email, entry.month_key)
        row = entry.to_sheets_row()
        if row_number is not None:
            # Data and Updated At only; Email and MonthKey are the key
            await self._store.update_row(self.table, row_number, row[2:], start_column=3)
            return row_number
        await self._store.append_row(self.table, row)
        return None


class BillsRepository(_Repository):
    """Recurring bills, one row per email."""

    def __init__(self, store: TableStoreInterface, sheet_name: Optional[str] = None):
        super().__init__(store, TableSchema(
            name=sheet_name or _sheet_name("bills_sheet_name", "Bills"),
            columns=tuple(BILLS_COLUMNS),
            header_color="#2563eb",
        ))

    async def find(self, email: str) -> Optional[tuple[int, str]]:
        """(row_number, raw_json) of the first row for this email."""
        for row_number, row in await self._numbered_rows():
            if same_email(row[0], email):
                return row_number, (row[1] if len(row) > 1 else "")
        return None

    async def upsert(self, entry: BillsEntry) -> Optional[int]:
        """Update the first row for this email or append one."""
        row_number = await self._first_row_for(entry.email)
        row = entry.to_sheets_row()
        if row_number is not None:
            await self._store.update_row(self.table, row_number, row[1:], start_column=2)
            return row_number
        await self._store.append_row(self.table, row)
        return None
