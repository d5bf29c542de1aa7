"""
Action Router for SmartBudget

Every request names an action. The router validates the request against
the typed model for that action, calls exactly one handler and wraps the
result in the response envelope:

    success: {"success": true, ...fields}
    error:   {"success": false, "error": "<message>"}

DESIGN DECISION: The router never raises. Domain errors become their
message; anything unexpected (a storage outage, say) is logged with its
traceback and reported the same way. The HTTP layer always answers 200.
"""

import json
from typing import Any, Mapping, Optional, Union

import structlog
from pydantic import ValidationError

from src.auth import OTPManager, UserRegistry
from src.config import get_settings
from src.errors import InvalidInputError, SmartBudgetError
from src.ledgers import BillsLedger, BudgetLedger
from src.models.api import (
    GET_ACTIONS,
    POST_ACTIONS,
    LoadBillsRequest,
    LoadDataRequest,
    PingRequest,
    SaveBillsRequest,
    SaveMonthRequest,
    SendOTPRequest,
    VerifyOTPRequest,
    err,
    get_request_adapter,
    ok,
    post_request_adapter,
)
from src.services.email import EmailChannelInterface, SESEmailChannel
from src.services.storage import (
    BillsRepository,
    BudgetRepository,
    GoogleSheetsTableStore,
    InMemoryTableStore,
    OTPRepository,
    TableStoreInterface,
    UserRepository,
)


logger = structlog.get_logger(__name__)

UNKNOWN_ACTION = "Unknown action"


def _validation_message(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part)
    return f"{location}: {first['msg']}" if location else first["msg"]


class ActionRouter:
    """Maps action names to handlers and wraps results in the envelope."""

    def __init__(
        self,
        otp_manager: OTPManager,
        budget_ledger: BudgetLedger,
        bills_ledger: BillsLedger,
    ):
        self._otp = otp_manager
        self._budget = budget_ledger
        self._bills = bills_ledger
        self._handlers = {
            "sendOTP": self._send_otp,
            "verifyOTP": self._verify_otp,
            "loadData": self._load_data,
            "loadBills": self._load_bills,
            "ping": self._ping,
            "saveMonth": self._save_month,
            "saveBills": self._save_bills,
        }

    async def handle_get(self, params: Mapping[str, Any]) -> dict:
        """Dispatch a read-style request carried as query parameters."""
        action = params.get("action") or ""
        if not isinstance(action, str) or action not in GET_ACTIONS:
            return err(UNKNOWN_ACTION)
        return await self._dispatch(action, dict(params), get_request_adapter)

    async def handle_post(self, body: Union[str, bytes, None]) -> dict:
        """Dispatch a write-style request carried as a JSON body."""
        try:
            payload = json.loads(body or b"")
        except (TypeError, ValueError) as e:
            return err(str(e))

        if not isinstance(payload, dict):
            return err(UNKNOWN_ACTION)
        action = payload.get("action") or ""
        if not isinstance(action, str) or action not in POST_ACTIONS:
            return err(UNKNOWN_ACTION)
        return await self._dispatch(action, payload, post_request_adapter)

    async def _dispatch(self, action: str, payload: dict, adapter) -> dict:
        try:
            request = adapter.validate_python(payload)
        except ValidationError as e:
            logger.info("action_rejected", action=action, error=_validation_message(e))
            return err(_validation_message(e))

        try:
            return ok(**await self._handlers[action](request))
        except SmartBudgetError as e:
            return err(str(e))
        except Exception as e:
            logger.exception("action_failed", action=action)
            return err(str(e) or e.__class__.__name__)

    # -------------------------------------------------------------------------
    # Handlers
    # -------------------------------------------------------------------------

    async def _send_otp(self, request: SendOTPRequest) -> dict:
        return await self._otp.send(request.email)

    async def _verify_otp(self, request: VerifyOTPRequest) -> dict:
        return await self._otp.verify(request.email, request.otp)

    async def _load_data(self, request: LoadDataRequest) -> dict:
        if not request.email:
            raise InvalidInputError("Email required")
        return {"months": await self._budget.load_all(request.email)}

    async def _load_bills(self, request: LoadBillsRequest) -> dict:
        if not request.email:
            raise InvalidInputError("Email required")
        return {"bills": await self._bills.load(request.email)}

    async def _ping(self, request: PingRequest) -> dict:
        return {"status": "connected"}

    async def _save_month(self, request: SaveMonthRequest) -> dict:
        outcome = await self._budget.save_month(request.email, request.key, request.data)
        return outcome.to_response()

    async def _save_bills(self, request: SaveBillsRequest) -> dict:
        await self._bills.save(request.email, request.bills)
        return {"saved": True}


def create_app_components(
    store: Optional[TableStoreInterface] = None,
    email_channel: Optional[EmailChannelInterface] = None,
) -> tuple[ActionRouter, OTPManager]:
    """
    Factory function to wire all application components.

    Args:
        store: Table store to use. Defaults to the backend named by
               STORAGE_BACKEND (Google Sheets unless set to "memory").
        email_channel: Email channel. Defaults to SES.

    Returns:
        (action_router, otp_manager) - the manager is returned separately
        so the scheduler can run the expired-code sweep.
    """
    if store is None:
        if get_settings().app.storage_backend == "memory":
            logger.warning("using_in_memory_store")
            store = InMemoryTableStore()
        else:
            store = GoogleSheetsTableStore()

    email_channel = email_channel or SESEmailChannel()

    registry = UserRegistry(UserRepository(store))
    otp_manager = OTPManager(
        otps=OTPRepository(store),
        email_channel=email_channel,
        registry=registry,
    )
    router = ActionRouter(
        otp_manager=otp_manager,
        budget_ledger=BudgetLedger(BudgetRepository(store)),
        bills_ledger=BillsLedger(BillsRepository(store)),
    )
    return router, otp_manager
