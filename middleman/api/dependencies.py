"""API dependencies with dependency injection."""
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from middleman.config import settings
from middleman.domain.exceptions import InvalidTokenException, TokenExpiredException
from middleman.infrastructure.clients import HttpLedgerClient
from middleman.infrastructure.jwt_handler import JWTHandler
from middleman.infrastructure.ledger import InMemoryLedger, Ledger
from middleman.infrastructure.repositories import OfferStore
from middleman.infrastructure.repositories_inmemory import InMemoryOfferStore
from middleman.services.admin_service import AdminService
from middleman.services.invocation import InvocationRunner
from middleman.services.offer_service import OfferService
from middleman.services.query_service import OfferQueryService

# Singleton instances
_offer_store: Optional[OfferStore] = None
_ledger: Optional[Ledger] = None
_invocation_runner: Optional[InvocationRunner] = None
_jwt_handler: Optional[JWTHandler] = None

bearer_scheme = HTTPBearer(auto_error=False)


def get_offer_store() -> OfferStore:
    """Get OfferStore singleton for the configured backend."""
    global _offer_store
    if _offer_store is None:
        if settings.storage_backend == "memory":
            _offer_store = InMemoryOfferStore()
        else:
            from middleman.infrastructure.database import async_session_factory
            from middleman.infrastructure.repositories_postgres import PostgresOfferStore

            _offer_store = PostgresOfferStore(async_session_factory)
    return _offer_store


def get_ledger() -> Ledger:
    """Get Ledger singleton for the configured backend."""
    global _ledger
    if _ledger is None:
        if settings.ledger_backend == "memory":
            _ledger = InMemoryLedger()
        else:
            _ledger = HttpLedgerClient()
    return _ledger


def get_invocation_runner() -> InvocationRunner:
    """Get InvocationRunner singleton; every service shares its lock."""
    global _invocation_runner
    if _invocation_runner is None:
        _invocation_runner = InvocationRunner(get_offer_store(), get_ledger())
    return _invocation_runner


def get_jwt_handler() -> JWTHandler:
    """Get JWTHandler singleton."""
    global _jwt_handler
    if _jwt_handler is None:
        _jwt_handler = JWTHandler()
    return _jwt_handler


def get_offer_service() -> OfferService:
    """Get OfferService with dependencies."""
    return OfferService(runner=get_invocation_runner())


def get_query_service() -> OfferQueryService:
    """Get OfferQueryService with dependencies."""
    return OfferQueryService(runner=get_invocation_runner())


def get_admin_service() -> AdminService:
    """Get AdminService with dependencies."""
    return AdminService(runner=get_invocation_runner())


def get_caller(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    jwt_handler: JWTHandler = Depends(get_jwt_handler),
) -> str:
    """Resolve the calling address from the bearer token."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "MISSING_TOKEN", "message": "Missing bearer token"},
        )

    try:
        return jwt_handler.get_address_from_token(credentials.credentials)
    except (InvalidTokenException, TokenExpiredException) as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": e.code, "message": e.message},
        )
