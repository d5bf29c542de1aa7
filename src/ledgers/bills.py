"""Bills Ledger: one JSON list of recurring bills per user."""

from datetime import datetime
from typing import Any, Callable, Optional

import structlog

from src.errors import DecodeFailureError, InvalidInputError
from src.models.records import BillsEntry, decode_document, utcnow
from src.services.storage import BillsRepository


logger = structlog.get_logger(__name__)


class BillsLedger:
    """Per-user list of recurring bills, replaced wholesale on save."""

    def __init__(
        self,
        bills: BillsRepository,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._bills = bills
        self._clock = clock or utcnow

    async def load(self, email: str) -> Any:
        """The saved bills for this email, or [] if none (or unreadable)."""
        found = await self._bills.find(email)
        if found is None:
            return []

        row_number, raw = found
        try:
            return decode_document(raw, self._bills.table.name, row_number)
        except DecodeFailureError as e:
            logger.warning("bills_row_undecodable", table=e.table, row=e.row_number, error=str(e))
            return []

    async def save(self, email: Optional[str], document: Any) -> None:
        """
        Replace the bills for this email.

        Raises:
            InvalidInputError: If email is missing
        """
        if not email:
            raise InvalidInputError("Email required")

        entry = BillsEntry(
            email=email.strip().lower(),
            document=[] if document is None else document,
            updated_at=self._clock(),
        )
        row = await self._bills.upsert(entry)
        logger.info("bills_saved", created=row is None)
