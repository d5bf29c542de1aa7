"""
Request and Response Models for the Action API

Every call names an `action`. Read-style actions arrive as query parameters
(GET), write-style actions as a JSON body (POST). Each transport has its own
tagged union so an action can only arrive the way it is meant to.

DESIGN DECISION: Required fields are Optional here. Missing values are
reported by the handlers with the exact messages clients already display
("Email required", "Missing fields", ...), not as generic validation errors.
"""

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, TypeAdapter


# Identity fields are trimmed; month keys and documents are kept verbatim
Trimmed = Annotated[str, StringConstraints(strip_whitespace=True)]


class ActionRequest(BaseModel):
    """Common shape: every request carries its action name."""
    model_config = ConfigDict(extra="ignore")


class AuthenticatedRequest(ActionRequest):
    """
    Requests that carry the bearer token returned by verifyOTP.

    The token is accepted but not checked against anything stored.
    """
    email: Optional[Trimmed] = None
    token: Optional[str] = None


# =============================================================================
# GET actions
# =============================================================================

class SendOTPRequest(ActionRequest):
    action: Literal["sendOTP"]
    email: Optional[Trimmed] = None


class VerifyOTPRequest(ActionRequest):
    action: Literal["verifyOTP"]
    email: Optional[Trimmed] = None
    otp: Optional[Trimmed] = None


class LoadDataRequest(AuthenticatedRequest):
    action: Literal["loadData"]


class LoadBillsRequest(AuthenticatedRequest):
    action: Literal["loadBills"]


class PingRequest(ActionRequest):
    action: Literal["ping"]


# =============================================================================
# POST actions
# =============================================================================

class SaveMonthRequest(AuthenticatedRequest):
    action: Literal["saveMonth"]
    key: Optional[str] = Field(default=None, description="Month key, e.g. '2024-01'")
    data: Any = Field(default=None, description="Budget document for the month")


class SaveBillsRequest(AuthenticatedRequest):
    action: Literal["saveBills"]
    bills: Any = Field(default=None, description="List of recurring bills")


GetRequest = Annotated[
    Union[
        SendOTPRequest,
        VerifyOTPRequest,
        LoadDataRequest,
        LoadBillsRequest,
        PingRequest,
    ],
    Field(discriminator="action"),
]

PostRequest = Annotated[
    Union[SaveMonthRequest, SaveBillsRequest],
    Field(discriminator="action"),
]

GET_ACTIONS = frozenset({"sendOTP", "verifyOTP", "loadData", "loadBills", "ping"})
POST_ACTIONS = frozenset({"saveMonth", "saveBills"})

get_request_adapter: TypeAdapter = TypeAdapter(GetRequest)
post_request_adapter: TypeAdapter = TypeAdapter(PostRequest)


# =============================================================================
# Response envelope
# =============================================================================

def ok(**fields: Any) -> dict[str, Any]:
    """Success envelope: {"success": true, ...fields}."""
    return {"success": True, **fields}


def err(message: str) -> dict[str, Any]:
    """Error envelope: {"success": false, "error": message}."""
    return {"success": False, "error": message}
