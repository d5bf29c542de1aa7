"""
Shared fixtures.

No test talks to Google or AWS: storage is the in-memory table store,
email goes to a recording fake, and time comes from a settable clock.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from src.auth import OTPManager, UserRegistry
from src.errors import ChannelFailureError
from src.ledgers import BillsLedger, BudgetLedger
from src.router import ActionRouter
from src.services.email import EmailChannelInterface
from src.services.storage import (
    BillsRepository,
    BudgetRepository,
    InMemoryTableStore,
    OTPRepository,
    UserRepository,
)


class FakeEmailChannel(EmailChannelInterface):
    """Records every message; can be told to fail."""

    def __init__(self):
        self.sent: list[dict] = []
        self.fail_with: Optional[str] = None

    async def send(self, to_address, subject, html_body, text_body) -> str:
        if self.fail_with:
            raise ChannelFailureError(self.fail_with)
        self.sent.append({
            "to": to_address,
            "subject": subject,
            "html": html_body,
            "text": text_body,
        })
        return f"msg-{len(self.sent)}"

    @property
    def last_code(self) -> str:
        """The six-digit code in the most recent message."""
        text = self.sent[-1]["text"]
        return text.split("Your OTP is: ")[1][:6]


class FakeClock:
    """Callable clock that tests can move forward."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def store() -> InMemoryTableStore:
    return InMemoryTableStore()


@pytest.fixture
def email_channel() -> FakeEmailChannel:
    return FakeEmailChannel()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 1, 15, 9, 30, tzinfo=timezone.utc))


@pytest.fixture
def otp_repo(store) -> OTPRepository:
    return OTPRepository(store, sheet_name="OTPStore")


@pytest.fixture
def user_repo(store) -> UserRepository:
    return UserRepository(store, sheet_name="Users")


@pytest.fixture
def budget_repo(store) -> BudgetRepository:
    return BudgetRepository(store, sheet_name="BudgetData")


@pytest.fixture
def bills_repo(store) -> BillsRepository:
    return BillsRepository(store, sheet_name="Bills")


@pytest.fixture
def registry(user_repo, clock) -> UserRegistry:
    return UserRegistry(user_repo, clock=clock)


@pytest.fixture
def otp_manager(otp_repo, email_channel, registry, clock) -> OTPManager:
    return OTPManager(
        otps=otp_repo,
        email_channel=email_channel,
        registry=registry,
        lifetime_minutes=10,
        clock=clock,
    )


@pytest.fixture
def budget_ledger(budget_repo, clock) -> BudgetLedger:
    return BudgetLedger(budget_repo, clock=clock)


@pytest.fixture
def bills_ledger(bills_repo, clock) -> BillsLedger:
    return BillsLedger(bills_repo, clock=clock)


@pytest.fixture
def router(otp_manager, budget_ledger, bills_ledger) -> ActionRouter:
    return ActionRouter(
        otp_manager=otp_manager,
        budget_ledger=budget_ledger,
        bills_ledger=bills_ledger,
    )
