"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as the storage backend because:
1. The household can view and fix their data directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- No transactions (concurrent upserts to the same key can lose an update)
- Limited query capabilities (we scan and filter in Python)

The implementation follows the abstract interface, so we can swap
to PostgreSQL/SQLite later without changing business logic.
"""

import asyncio
from typing import Optional

import gspread
import structlog
from google.oauth2.service_account import Credentials
from gspread.cell import Cell
from gspread.utils import ValueRenderOption, rowcol_to_a1
from tenacity import retry, stop_after_attempt, wait_exponential

from src.config import get_settings
from src.services.storage.interface import (
    ConnectionError,
    StorageError,
    TableNotFoundError,
    TableSchema,
    TableStoreInterface,
)


logger = structlog.get_logger(__name__)

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive",
]


def hex_to_rgb(color: str) -> dict[str, float]:
    """'#059669' -> {'red': 0.02, 'green': 0.59, 'blue': 0.41} (Sheets API colour)."""
    value = color.lstrip("#")
    red, green, blue = (int(value[i:i + 2], 16) / 255 for i in (0, 2, 4))
    return {"red": red, "green": green, "blue": blue}


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication, worksheet lookup and lazy worksheet creation.
    Only connection setup is retried.
    """

    def __init__(
        self,
        credentials_path: Optional[str] = None,
        spreadsheet_id: Optional[str] = None,
    ):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._worksheets: dict[str, gspread.Worksheet] = {}
        if credentials_path is None or spreadsheet_id is None:
            settings = get_settings().google_sheets
            credentials_path = credentials_path or settings.credentials_path
            spreadsheet_id = spreadsheet_id or settings.spreadsheet_id
        self._credentials_path = credentials_path
        self._spreadsheet_id = spreadsheet_id

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                credentials = Credentials.from_service_account_file(
                    self._credentials_path,
                    scopes=SCOPES,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(self._spreadsheet_id)
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._spreadsheet_id}"
                )
        return self._spreadsheet

    def get_worksheet(
        self,
        table: TableSchema,
        create: bool = False,
    ) -> Optional[gspread.Worksheet]:
        """
        Get a worksheet by table name.

        With create=True a missing worksheet is created with its header row,
        header styling and hidden flag; otherwise None is returned.
        """
        if table.name in self._worksheets:
            return self._worksheets[table.name]

        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(table.name)
        except gspread.WorksheetNotFound:
            if not create:
                return None
            sheet = self._create_worksheet(spreadsheet, table)

        self._worksheets[table.name] = sheet
        return sheet

    def _create_worksheet(
        self,
        spreadsheet: gspread.Spreadsheet,
        table: TableSchema,
    ) -> gspread.Worksheet:
        sheet = spreadsheet.add_worksheet(
            title=table.name,
            rows=1000,
            cols=len(table.columns),
        )
        sheet.append_row(list(table.columns))

        if table.header_color:
            header_range = f"A1:{rowcol_to_a1(1, len(table.columns))}"
            sheet.format(header_range, {
                "backgroundColor": hex_to_rgb(table.header_color),
                "textFormat": {
                    "bold": True,
                    "foregroundColor": {"red": 1.0, "green": 1.0, "blue": 1.0},
                },
            })
        if table.hidden:
            sheet.hide()

        logger.info("worksheet_created", table=table.name, hidden=table.hidden)
        return sheet


class GoogleSheetsTableStore(TableStoreInterface):
    """
    Google Sheets implementation of the table store.

    One table per worksheet; row 1 holds the header.
    Values are written RAW so JSON documents are stored verbatim, and read
    back unformatted so numeric cells (OTP expiry) are not display text.

    gspread is synchronous, so every API round trip runs in a worker thread
    and the event loop stays free for other requests.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _require_sheet(self, table: TableSchema) -> gspread.Worksheet:
        sheet = self._client.get_worksheet(table)
        if sheet is None:
            raise TableNotFoundError(f"Table not found: {table.name}")
        return sheet

    def _read_rows(self, table: TableSchema) -> list[list[str]]:
        sheet = self._client.get_worksheet(table)
        if sheet is None:
            return []
        values = sheet.get_all_values(value_render_option=ValueRenderOption.unformatted)
        return [
            ["" if value is None else str(value) for value in row]
            for row in values[1:]
        ]

    def _append(self, table: TableSchema, values: list) -> None:
        sheet = self._client.get_worksheet(table, create=True)
        sheet.append_row(values, value_input_option="RAW")

    def _update(self, table: TableSchema, row_number: int, values: list, start_column: int) -> None:
        sheet = self._require_sheet(table)
        cells = [
            Cell(row_number, col, value)
            for col, value in enumerate(values, start=start_column)
        ]
        sheet.update_cells(cells, value_input_option="RAW")

    def _delete(self, table: TableSchema, row_number: int) -> None:
        self._require_sheet(table).delete_rows(row_number)

    async def get_rows(self, table: TableSchema) -> list[list[str]]:
        """Read all data rows (excluding header)."""
        try:
            return await asyncio.to_thread(self._read_rows, table)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read {table.name}: {e}")

    async def append_row(self, table: TableSchema, values: list) -> None:
        try:
            await asyncio.to_thread(self._append, table, values)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to append to {table.name}: {e}")

    async def update_row(
        self,
        table: TableSchema,
        row_number: int,
        values: list,
        start_column: int = 1,
    ) -> None:
        try:
            await asyncio.to_thread(self._update, table, row_number, values, start_column)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update row {row_number} of {table.name}: {e}")

    async def delete_row(self, table: TableSchema, row_number: int) -> None:
        try:
            await asyncio.to_thread(self._delete, table, row_number)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete row {row_number} of {table.name}: {e}")
