"""Domain exceptions for Middleman Offer Service."""


class DomainException(Exception):
    """Base domain exception."""

    def __init__(self, message: str, code: str = "DOMAIN_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(self.message)


class OfferNotFoundException(DomainException):
    """Offer not found exception."""

    def __init__(self, offer_id: int) -> None:
        super().__init__(
            message=f"Offer with id {offer_id} not found",
            code="OFFER_NOT_FOUND",
        )


class UnauthorizedException(DomainException):
    """Caller is not the holder, spender or owner required by the operation."""

    def __init__(self, message: str) -> None:
        super().__init__(message=message, code="UNAUTHORIZED")


class InvalidOfferStateException(DomainException):
    """Invalid offer state exception."""

    def __init__(self, message: str = "Offer deleted or completed") -> None:
        super().__init__(
            message=message,
            code="INVALID_OFFER_STATE",
        )


class PaymentMismatchException(DomainException):
    """Attached payment has the wrong asset or amount."""

    def __init__(self, message: str) -> None:
        super().__init__(message=message, code="PAYMENT_MISMATCH")


class InvalidAmountException(DomainException):
    """Requested offer amount is out of range."""

    def __init__(self, message: str = "The amount specified is below zero") -> None:
        super().__init__(message=message, code="INVALID_AMOUNT")


class InsufficientFundsException(DomainException):
    """Ledger rejected a transfer because the sender cannot cover it."""

    def __init__(self, address: str, token_id: str, nonce: int) -> None:
        super().__init__(
            message=f"Insufficient {token_id}/{nonce} balance for {address}",
            code="INSUFFICIENT_FUNDS",
        )


class LedgerUnavailableException(DomainException):
    """Ledger service unavailable exception."""

    def __init__(self) -> None:
        super().__init__(
            message="Ledger service is unavailable",
            code="LEDGER_UNAVAILABLE",
        )


class InvalidTokenException(DomainException):
    """Invalid token exception."""

    def __init__(self, message: str = "Invalid token") -> None:
        super().__init__(message=message, code="INVALID_TOKEN")


class TokenExpiredException(DomainException):
    """Token expired exception."""

    def __init__(self) -> None:
        super().__init__(
            message="Token has expired",
            code="TOKEN_EXPIRED",
        )
