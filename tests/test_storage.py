"""Tests for the table stores and entity repositories."""

import asyncio
import time
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import gspread
import pytest
from gspread.utils import ValueRenderOption

from src.models.records import OTPRecord, UserRecord
from src.services.storage import (
    GoogleSheetsTableStore,
    InMemoryTableStore,
    StorageError,
    TableNotFoundError,
    TableSchema,
)
from src.services.storage.google_sheets import GoogleSheetsClient, hex_to_rgb


TABLE = TableSchema(name="Things", columns=("A", "B", "C"), header_color="#059669")
HIDDEN = TableSchema(name="Secret", columns=("A",), hidden=True)


class TestInMemoryTableStore:
    """The in-memory store behaves like a worksheet."""

    async def test_missing_table_reads_empty(self, store):
        assert await store.get_rows(TABLE) == []

    async def test_first_append_creates_header(self, store):
        """Lazily created on first write, header in row 1."""
        await store.append_row(TABLE, ["x", 1, None])
        assert store.has_table("Things")
        assert await store.get_rows(TABLE) == [["x", "1", ""]]

    async def test_hidden_flag_applied_on_create(self, store):
        await store.append_row(HIDDEN, ["x"])
        assert store.is_hidden("Secret")
        assert not store.is_hidden("Things")

    async def test_update_row_from_column(self, store):
        """Row numbers are 1-based with the header in row 1."""
        await store.append_row(TABLE, ["x", "1", "2"])
        await store.update_row(TABLE, 2, ["9", "8"], start_column=2)
        assert await store.get_rows(TABLE) == [["x", "9", "8"]]

    async def test_delete_row_shifts_up(self, store):
        for value in ("a", "b", "c"):
            await store.append_row(TABLE, [value])
        await store.delete_row(TABLE, 3)
        assert await store.get_rows(TABLE) == [["a"], ["c"]]

    async def test_update_missing_table_raises(self, store):
        with pytest.raises(TableNotFoundError):
            await store.update_row(TABLE, 2, ["x"])

    async def test_header_row_cannot_be_deleted(self, store):
        await store.append_row(TABLE, ["a"])
        with pytest.raises(StorageError):
            await store.delete_row(TABLE, 1)


class TestGoogleSheetsTableStore:
    """The gspread-backed store, with the client mocked out."""

    def _store_with(self, worksheet):
        client = MagicMock(spec=GoogleSheetsClient)
        client.get_worksheet.return_value = worksheet
        return GoogleSheetsTableStore(client), client

    async def test_get_rows_skips_header(self):
        sheet = MagicMock()
        sheet.get_all_values.return_value = [["A", "B"], ["1", "2"]]
        store, _ = self._store_with(sheet)
        assert await store.get_rows(TABLE) == [["1", "2"]]

    async def test_get_rows_reads_unformatted_values(self):
        """Numeric cells come back as numbers, not display text like 1.70531E+12."""
        sheet = MagicMock()
        sheet.get_all_values.return_value = [
            ["Email", "OTP", "Expiry", "Token"],
            ["a@b.com", 482913, 1705312800123, "tok"],
            ["c@d.com", "", None, ""],
        ]
        store, _ = self._store_with(sheet)

        rows = await store.get_rows(TABLE)

        sheet.get_all_values.assert_called_once_with(
            value_render_option=ValueRenderOption.unformatted
        )
        assert rows == [
            ["a@b.com", "482913", "1705312800123", "tok"],
            ["c@d.com", "", "", ""],
        ]
        record = OTPRecord.from_sheets_row(rows[0], row_number=2)
        assert record.code == "482913"
        assert record.expiry == datetime(2024, 1, 15, 10, 0, 0, 123000, tzinfo=timezone.utc)

    async def test_calls_run_off_the_event_loop(self):
        """Two slow reads overlap instead of running one after the other."""
        sheet = MagicMock()

        def slow_read(**kwargs):
            time.sleep(0.3)
            return [["A", "B"], ["1", "2"]]

        sheet.get_all_values.side_effect = slow_read
        store, _ = self._store_with(sheet)

        started = time.monotonic()
        first, second = await asyncio.gather(store.get_rows(TABLE), store.get_rows(TABLE))
        elapsed = time.monotonic() - started

        assert first == second == [["1", "2"]]
        assert elapsed < 0.55

    async def test_get_rows_missing_sheet(self):
        store, _ = self._store_with(None)
        assert await store.get_rows(TABLE) == []

    async def test_append_creates_and_writes_raw(self):
        sheet = MagicMock()
        store, client = self._store_with(sheet)
        await store.append_row(TABLE, ["a", "{}"])
        client.get_worksheet.assert_called_once_with(TABLE, create=True)
        sheet.append_row.assert_called_once_with(["a", "{}"], value_input_option="RAW")

    async def test_update_row_writes_cells(self):
        sheet = MagicMock()
        store, _ = self._store_with(sheet)
        await store.update_row(TABLE, 5, ["x", "y"], start_column=3)
        cells = sheet.update_cells.call_args.args[0]
        assert [(c.row, c.col, c.value) for c in cells] == [(5, 3, "x"), (5, 4, "y")]

    async def test_delete_missing_sheet_raises(self):
        store, _ = self._store_with(None)
        with pytest.raises(TableNotFoundError):
            await store.delete_row(TABLE, 2)

    async def test_api_errors_become_storage_errors(self):
        sheet = MagicMock()
        sheet.get_all_values.side_effect = RuntimeError("quota exceeded")
        store, _ = self._store_with(sheet)
        with pytest.raises(StorageError, match="quota exceeded"):
            await store.get_rows(TABLE)


class TestGoogleSheetsClient:
    """Worksheet lookup and lazy creation."""

    def _client_with(self, spreadsheet):
        client = GoogleSheetsClient(credentials_path="creds.json", spreadsheet_id="sheet-id")
        client._spreadsheet = spreadsheet
        return client

    def test_missing_worksheet_without_create(self):
        spreadsheet = MagicMock()
        spreadsheet.worksheet.side_effect = gspread.WorksheetNotFound("Things")
        client = self._client_with(spreadsheet)
        assert client.get_worksheet(TABLE) is None
        spreadsheet.add_worksheet.assert_not_called()

    def test_create_writes_styled_header(self):
        """New worksheets get a header row in white bold on the table colour."""
        spreadsheet = MagicMock()
        spreadsheet.worksheet.side_effect = gspread.WorksheetNotFound("Things")
        sheet = spreadsheet.add_worksheet.return_value
        client = self._client_with(spreadsheet)

        assert client.get_worksheet(TABLE, create=True) is sheet
        sheet.append_row.assert_called_once_with(["A", "B", "C"])
        header_range, fmt = sheet.format.call_args.args
        assert header_range == "A1:C1"
        assert fmt["textFormat"]["bold"] is True
        assert fmt["backgroundColor"] == hex_to_rgb("#059669")
        sheet.hide.assert_not_called()

    def test_create_hidden_table(self):
        spreadsheet = MagicMock()
        spreadsheet.worksheet.side_effect = gspread.WorksheetNotFound("Secret")
        sheet = spreadsheet.add_worksheet.return_value
        client = self._client_with(spreadsheet)

        client.get_worksheet(HIDDEN, create=True)
        sheet.hide.assert_called_once()
        sheet.format.assert_not_called()

    def test_worksheets_are_cached(self):
        spreadsheet = MagicMock()
        client = self._client_with(spreadsheet)
        client.get_worksheet(TABLE)
        client.get_worksheet(TABLE)
        spreadsheet.worksheet.assert_called_once_with("Things")

    def test_hex_to_rgb(self):
        assert hex_to_rgb("#ffffff") == {"red": 1.0, "green": 1.0, "blue": 1.0}


class TestOTPRepository:
    """One row per email; unreadable rows are left alone."""

    def _record(self, email="a@b.com", code="111111", minutes=10):
        return OTPRecord(
            email=email,
            code=code,
            expiry=datetime(2024, 1, 15, tzinfo=timezone.utc) + timedelta(minutes=minutes),
            session_token="tok-" + code,
        )

    async def test_upsert_replaces_existing_row(self, otp_repo, store):
        await otp_repo.upsert(self._record(code="111111"))
        await otp_repo.upsert(self._record(code="222222"))
        rows = await store.get_rows(otp_repo.table)
        assert len(rows) == 1
        assert rows[0][1] == "222222"

    async def test_get_is_case_insensitive(self, otp_repo):
        await otp_repo.upsert(self._record())
        found = await otp_repo.get("A@B.COM")
        assert found is not None
        assert found.row_number == 2

    async def test_table_is_hidden(self, otp_repo, store):
        await otp_repo.upsert(self._record())
        assert store.is_hidden("OTPStore")

    async def test_undecodable_row_skipped_but_still_replaced(self, otp_repo, store):
        """A corrupt row is invisible to reads, yet upsert overwrites it."""
        await store.append_row(otp_repo.table, ["a@b.com", "123456", "garbage", "t"])
        assert await otp_repo.scan() == []
        await otp_repo.upsert(self._record())
        rows = await store.get_rows(otp_repo.table)
        assert len(rows) == 1
        assert (await otp_repo.get("a@b.com")).code == "111111"

    async def test_delete(self, otp_repo, store):
        await otp_repo.upsert(self._record())
        await otp_repo.delete(await otp_repo.get("a@b.com"))
        assert await store.get_rows(otp_repo.table) == []


class TestUserRepository:

    async def test_record_login_keeps_first_login(self, user_repo, store):
        first = datetime(2024, 1, 1, tzinfo=timezone.utc)
        later = datetime(2024, 2, 1, tzinfo=timezone.utc)
        await user_repo.add(UserRecord(
            email="a@b.com", first_login_at=first, last_login_at=first, login_count=1,
        ))
        record = await user_repo.get("A@b.com")
        await user_repo.record_login(record, last_login_at=later, login_count=2)

        updated = await user_repo.get("a@b.com")
        assert updated.first_login_at == first
        assert updated.last_login_at == later
        assert updated.login_count == 2
