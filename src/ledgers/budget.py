"""
Budget Ledger

One JSON document per (email, month key). Saving the same pair again
replaces the document in place, so the pair stays unique.
"""

from datetime import datetime
from typing import Any, Callable, Literal, Optional

import structlog
from pydantic import BaseModel

from src.errors import DecodeFailureError, InvalidInputError
from src.models.records import BudgetEntry, decode_document, utcnow
from src.services.storage import BudgetRepository


logger = structlog.get_logger(__name__)


class SaveOutcome(BaseModel):
    """What a save did: rewrote an existing row or appended a new one."""
    action: Literal["updated", "created"]
    row: Optional[int] = None

    def to_response(self) -> dict:
        fields = {"saved": True, "action": self.action}
        if self.row is not None:
            fields["row"] = self.row
        return fields


class BudgetLedger:
    """Per-user monthly budget documents."""

    def __init__(
        self,
        budgets: BudgetRepository,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._budgets = budgets
        self._clock = clock or utcnow

    async def load_all(self, email: str) -> dict[str, Any]:
        """
        Every month saved for this email, as {month_key: document}.

        Rows whose JSON cannot be parsed are logged and skipped so one
        corrupt month never hides the others.
        """
        months: dict[str, Any] = {}
        for row_number, month_key, raw in await self._budgets.scan_email(email):
            if not month_key:
                continue
            try:
                months[month_key] = decode_document(raw, self._budgets.table.name, row_number)
            except DecodeFailureError as e:
                logger.warning(
                    "budget_row_undecodable",
                    table=e.table,
                    row=e.row_number,
                    error=str(e),
                )
        return months

    async def save_month(self, email: Optional[str], month_key: Optional[str], document: Any) -> SaveOutcome:
        """
        Upsert the document for (email, month key).

        Raises:
            InvalidInputError: If email, month key or document is missing
        """
        if not email or not month_key or document is None:
            raise InvalidInputError("Missing fields")

        entry = BudgetEntry(
            email=email.strip().lower(),
            month_key=month_key,
            document=document,
            updated_at=self._clock(),
        )
        row = await self._budgets.upsert(entry)

        if row is not None:
            logger.info("budget_month_updated", month_key=entry.month_key, row=row)
            return SaveOutcome(action="updated", row=row)

        logger.info("budget_month_created", month_key=entry.month_key)
        return SaveOutcome(action="created")
