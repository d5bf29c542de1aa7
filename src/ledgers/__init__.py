"""Ledgers package: budget months and recurring bills."""

from src.ledgers.bills import BillsLedger
from src.ledgers.budget import BudgetLedger, SaveOutcome

__all__ = ["BillsLedger", "BudgetLedger", "SaveOutcome"]
