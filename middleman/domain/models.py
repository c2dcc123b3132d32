"""Domain models for Middleman Offer Service."""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

U64_MAX = 2**64 - 1


class OfferStatus(str, Enum):
    """Offer status enum.

    SUBMITTED is the only non-terminal state.
    """

    SUBMITTED = "SUBMITTED"
    COMPLETED = "COMPLETED"
    DELETED = "DELETED"


class PartyRole(str, Enum):
    """Role an address plays in an offer."""

    HOLDER = "HOLDER"
    SPENDER = "SPENDER"


class Offer(BaseModel):
    """Offer domain model."""

    id: int = Field(ge=1, le=U64_MAX)
    holder: str
    spender: str
    amount: int = Field(ge=0)
    asset_id: str
    asset_subid: int = Field(ge=0, le=U64_MAX)
    status: OfferStatus = OfferStatus.SUBMITTED

    class Config:
        """Pydantic config."""

        from_attributes = True


class Payment(BaseModel):
    """Asset attached to an invocation."""

    token_id: str
    nonce: int = Field(default=0, ge=0, le=U64_MAX)
    amount: int = Field(ge=0)


class Transfer(BaseModel):
    """Single ledger movement of one asset between two addresses."""

    sender: str
    receiver: str
    token_id: str
    nonce: int = 0
    amount: int = Field(ge=0)
    message: Optional[str] = None


class CallContext(BaseModel):
    """Who invoked an operation and what they attached to it."""

    caller: str
    payment: Optional[Payment] = None


class AuditEvent(BaseModel):
    """Offer audit trail entry."""

    offer_id: int
    event_type: str
    ts: datetime
    payload: Dict[str, Any] = Field(default_factory=dict)


class CreateOfferRequest(BaseModel):
    """Request to create an offer."""

    spender: str
    amount: int
    payment: Payment


class AcceptOfferRequest(BaseModel):
    """Request to accept an offer."""

    payment: Payment


class OfferIdResponse(BaseModel):
    """Response carrying the id an operation acted on."""

    offer_id: int


class OfferIdsResponse(BaseModel):
    """Ordered sequence of offer ids."""

    offer_ids: List[int]


class CountResponse(BaseModel):
    """Number of submitted offers for an address."""

    count: int


class OffersCountResponse(BaseModel):
    """Current value of the offer counter."""

    offers_count: int


class WithdrawResponse(BaseModel):
    """Amount swept to the owner."""

    amount: int
