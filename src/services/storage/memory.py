"""
In-Memory Table Store

Same semantics as the Google Sheets store, held in Python lists.
Used by the test suite and for local development without credentials.
Cell values are stringified on write so reads look like RAW sheet values.
"""

from src.services.storage.interface import (
    FIRST_DATA_ROW,
    StorageError,
    TableNotFoundError,
    TableSchema,
    TableStoreInterface,
)


def _to_cell(value) -> str:
    return "" if value is None else str(value)


class InMemoryTableStore(TableStoreInterface):
    """Tables are lists of rows; index 0 of each list is the header."""

    def __init__(self):
        self._tables: dict[str, list[list[str]]] = {}
        self._hidden: set[str] = set()

    def has_table(self, name: str) -> bool:
        return name in self._tables

    def is_hidden(self, name: str) -> bool:
        return name in self._hidden

    def _sheet(self, table: TableSchema) -> list[list[str]]:
        try:
            return self._tables[table.name]
        except KeyError:
            raise TableNotFoundError(f"Table not found: {table.name}")

    def _index(self, sheet: list[list[str]], row_number: int) -> int:
        index = row_number - 1
        if row_number < FIRST_DATA_ROW or index >= len(sheet):
            raise StorageError(f"Row {row_number} is out of range")
        return index

    async def get_rows(self, table: TableSchema) -> list[list[str]]:
        sheet = self._tables.get(table.name)
        if not sheet:
            return []
        return [list(row) for row in sheet[1:]]

    async def append_row(self, table: TableSchema, values: list) -> None:
        if table.name not in self._tables:
            self._tables[table.name] = [list(table.columns)]
            if table.hidden:
                self._hidden.add(table.name)
        self._tables[table.name].append([_to_cell(v) for v in values])

    async def update_row(
        self,
        table: TableSchema,
        row_number: int,
        values: list,
        start_column: int = 1,
    ) -> None:
        sheet = self._sheet(table)
        row = sheet[self._index(sheet, row_number)]
        end = start_column - 1 + len(values)
        if len(row) < end:
            row.extend([""] * (end - len(row)))
        row[start_column - 1:end] = [_to_cell(v) for v in values]

    async def delete_row(self, table: TableSchema, row_number: int) -> None:
        sheet = self._sheet(table)
        del sheet[self._index(sheet, row_number)]
