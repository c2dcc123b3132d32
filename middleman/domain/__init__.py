"""Domain layer."""
from middleman.domain.exceptions import (
    DomainException,
    InsufficientFundsException,
    InvalidAmountException,
    InvalidOfferStateException,
    InvalidTokenException,
    LedgerUnavailableException,
    OfferNotFoundException,
    PaymentMismatchException,
    TokenExpiredException,
    UnauthorizedException,
)
from middleman.domain.models import (
    AcceptOfferRequest,
    AuditEvent,
    CallContext,
    CountResponse,
    CreateOfferRequest,
    Offer,
    OfferIdResponse,
    OfferIdsResponse,
    OffersCountResponse,
    OfferStatus,
    PartyRole,
    Payment,
    Transfer,
    WithdrawResponse,
)

__all__ = [
    # Models
    "Offer",
    "OfferStatus",
    "PartyRole",
    "Payment",
    "Transfer",
    "CallContext",
    "AuditEvent",
    "CreateOfferRequest",
    "AcceptOfferRequest",
    "OfferIdResponse",
    "OfferIdsResponse",
    "CountResponse",
    "OffersCountResponse",
    "WithdrawResponse",
    # Exceptions
    "DomainException",
    "OfferNotFoundException",
    "UnauthorizedException",
    "InvalidOfferStateException",
    "PaymentMismatchException",
    "InvalidAmountException",
    "InsufficientFundsException",
    "LedgerUnavailableException",
    "InvalidTokenException",
    "TokenExpiredException",
]
