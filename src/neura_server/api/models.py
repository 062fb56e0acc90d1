"""
Pydantic models for API requests and responses.

The wire format is camelCase, matching the web client that drives the mining
game.  Models use snake_case attributes with a camelCase alias generator, and
FastAPI serialises responses by alias.

Amounts and partial state updates are deliberately loose (``Any`` / raw
dicts): the ledger decides what counts as a valid number so that bad input
produces the ledger's own errors instead of a generic validation failure.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# REQUEST MODELS (Client → Server)
# ============================================================================


class SessionCreateRequest(CamelModel):
    """
    Start a new mining session.

    Attributes:
        ua: Client user agent string (defaults to "Unknown")
        started_at: Optional ISO-8601 client start time
    """

    ua: str | None = Field(default=None, alias="ua")
    started_at: str | None = None


class BoostCreateRequest(CamelModel):
    """
    Request a boost grant for an offer-wall task.

    Attributes:
        session_id: Session that will own the boost
        requested_at: Optional ISO-8601 client request time
        task_type: Optional offer-wall task tag
    """

    session_id: str
    requested_at: str | None = None
    task_type: str | None = None


class SessionRefRequest(CamelModel):
    """Body carrying only the caller's session id (boost verify, withdrawal complete)."""

    session_id: str


class WithdrawalCreateRequest(CamelModel):
    """
    Request a withdrawal of mined tokens.

    Attributes:
        session_id: Session whose balance is debited
        wallet_address: Destination wallet
        amount: Requested amount (validated by the ledger, minimum 0.001)
        network: Target network identifier
    """

    session_id: str
    wallet_address: str | None = None
    amount: Any = None
    network: str = "bsc"


# ============================================================================
# RESPONSE MODELS (Server → Client)
# ============================================================================


class SessionCreateResponse(CamelModel):
    session_id: str
    mining_speed: float
    daily_limit: float
    message: str = "Session created"


class SessionStateResponse(CamelModel):
    mined_tokens: float
    daily_mined: float
    mining_speed: float
    completed_tasks: list[str]
    total_mining_time: float
    daily_limit: float


class SessionSaveResponse(CamelModel):
    success: bool
    daily_mined: float
    daily_limit: float
    message: str = "State saved"


class BoostCreateResponse(CamelModel):
    boost_id: str
    boost_amount: int
    message: str = "Boost created (requires OGADS verification)"


class BoostVerifyResponse(CamelModel):
    success: bool = True
    boost_amount: int
    new_speed: float
    applied: bool
    message: str


class WithdrawalCreateResponse(CamelModel):
    withdrawal_id: str
    new_balance: float
    message: str = "Withdrawal created (requires OGADS verification)"


class WithdrawalCompleteResponse(CamelModel):
    success: bool = True
    withdrawal: dict[str, Any]
    message: str = "Withdrawal completed successfully"


class SuccessResponse(CamelModel):
    success: bool
    message: str


class HealthResponse(CamelModel):
    status: str
    timestamp: str
    uptime: float


class ErrorResponse(CamelModel):
    error: str
    code: str
