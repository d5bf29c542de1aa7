"""
Abstract Table Store Interface

DESIGN DECISION: We define an abstract interface for table operations.
This allows us to:
1. Swap Google Sheets for a real database later
2. Use in-memory storage for testing
3. Keep business logic decoupled from storage implementation

The interface is intentionally spreadsheet-shaped: named tables, a header
row, data rows addressed by 1-based row number. Entity repositories are
built on top of it.
"""

from abc import ABC, abstractmethod
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


HEADER_ROW = 1
FIRST_DATA_ROW = 2


class TableSchema(BaseModel):
    """Name, header and presentation of one table."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    columns: tuple[str, ...]
    header_color: Optional[str] = Field(
        default=None,
        pattern=r"^#[0-9a-fA-F]{6}$",
        description="Header background colour; header text is white and bold",
    )
    hidden: bool = False


class TableStoreInterface(ABC):
    """
    Abstract interface for row-oriented table storage.

    Any storage implementation (Google Sheets, in-memory, ...)
    must implement these methods.
    """

    @abstractmethod
    async def get_rows(self, table: TableSchema) -> list[list[str]]:
        """
        Read all data rows (header excluded).

        Element i of the result lives at sheet row FIRST_DATA_ROW + i.

        Returns:
            The rows, or an empty list if the table does not exist yet
        """
        pass

    @abstractmethod
    async def append_row(self, table: TableSchema, values: list) -> None:
        """
        Append a row, creating the table with its header on first write.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def update_row(
        self,
        table: TableSchema,
        row_number: int,
        values: list,
        start_column: int = 1,
    ) -> None:
        """
        Overwrite consecutive cells of an existing row.

        Args:
            table: Target table
            row_number: 1-based sheet row (row 1 is the header)
            values: New cell values, written left to right
            start_column: 1-based column of the first value

        Raises:
            TableNotFoundError: If the table does not exist
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def delete_row(self, table: TableSchema, row_number: int) -> None:
        """
        Delete a row; rows below it move up by one.

        Raises:
            TableNotFoundError: If the table does not exist
            StorageError: If the delete fails
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class TableNotFoundError(StorageError):
    """The addressed table does not exist."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
