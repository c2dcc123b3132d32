"""API routes."""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from prometheus_client import Counter, Histogram

from middleman.domain.exceptions import DomainException
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
    WithdrawResponse,
)
from middleman.services.admin_service import AdminService
from middleman.services.offer_service import OfferService
from middleman.services.query_service import OfferQueryService

from .dependencies import (
    get_admin_service,
    get_caller,
    get_offer_service,
    get_query_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["offers"])
admin_router = APIRouter(prefix="/api/v1/admin", tags=["admin"])

# Prometheus metrics
offer_create_counter = Counter(
    "offer_create_total", "Total number of offer creations", ["status"]
)
offer_delete_counter = Counter(
    "offer_delete_total", "Total number of offer deletions", ["status"]
)
offer_accept_counter = Counter(
    "offer_accept_total", "Total number of offer acceptances", ["status"]
)
balance_withdraw_counter = Counter(
    "balance_withdraw_total", "Total number of balance withdrawals", ["status"]
)
offer_query_counter = Counter(
    "offer_query_total", "Total number of offer queries", ["query", "status"]
)
offer_invocation_duration = Histogram(
    "offer_invocation_duration_seconds",
    "Time spent in mutating invocations",
    ["operation"],
)

HTTP_STATUS_BY_CODE = {
    "OFFER_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "UNAUTHORIZED": status.HTTP_403_FORBIDDEN,
    "INVALID_OFFER_STATE": status.HTTP_409_CONFLICT,
    "PAYMENT_MISMATCH": status.HTTP_400_BAD_REQUEST,
    "INVALID_AMOUNT": status.HTTP_400_BAD_REQUEST,
    "INSUFFICIENT_FUNDS": status.HTTP_409_CONFLICT,
    "LEDGER_UNAVAILABLE": status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _domain_error(e: DomainException) -> HTTPException:
    return HTTPException(
        status_code=HTTP_STATUS_BY_CODE.get(e.code, status.HTTP_400_BAD_REQUEST),
        detail={"code": e.code, "message": e.message},
    )


def _internal_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"code": "INTERNAL_ERROR", "message": "Internal server error"},
    )


@router.post(
    "/offers", response_model=OfferIdResponse, status_code=status.HTTP_201_CREATED
)
async def create_offer(
    request: CreateOfferRequest,
    caller: str = Depends(get_caller),
    service: OfferService = Depends(get_offer_service),
) -> OfferIdResponse:
    """Escrow the attached asset and open an offer to the spender."""
    ctx = CallContext(caller=caller, payment=request.payment)
    try:
        with offer_invocation_duration.labels(operation="create").time():
            offer_id = await service.create_offer(ctx, request.spender, request.amount)
        offer_create_counter.labels(status="success").inc()
        return OfferIdResponse(offer_id=offer_id)
    except DomainException as e:
        logger.warning(f"Offer creation rejected: {e.message}")
        offer_create_counter.labels(status=e.code.lower()).inc()
        raise _domain_error(e)
    except Exception as e:
        logger.exception(f"Unexpected error creating offer: {e}")
        offer_create_counter.labels(status="internal_error").inc()
        raise _internal_error()


@router.delete("/offers/{offer_id}", response_model=OfferIdResponse)
async def delete_offer(
    offer_id: int,
    caller: str = Depends(get_caller),
    service: OfferService = Depends(get_offer_service),
) -> OfferIdResponse:
    """Cancel a submitted offer; only its holder may do this."""
    try:
        with offer_invocation_duration.labels(operation="delete").time():
            await service.delete_offer(CallContext(caller=caller), offer_id)
        offer_delete_counter.labels(status="success").inc()
        return OfferIdResponse(offer_id=offer_id)
    except DomainException as e:
        logger.warning(f"Deletion of offer {offer_id} rejected: {e.message}")
        offer_delete_counter.labels(status=e.code.lower()).inc()
        raise _domain_error(e)
    except Exception as e:
        logger.exception(f"Unexpected error deleting offer {offer_id}: {e}")
        offer_delete_counter.labels(status="internal_error").inc()
        raise _internal_error()


@router.post("/offers/{offer_id}/accept", response_model=OfferIdResponse)
async def accept_offer(
    offer_id: int,
    request: AcceptOfferRequest,
    caller: str = Depends(get_caller),
    service: OfferService = Depends(get_offer_service),
) -> OfferIdResponse:
    """Pay for a submitted offer; only its spender may do this."""
    ctx = CallContext(caller=caller, payment=request.payment)
    try:
        with offer_invocation_duration.labels(operation="accept").time():
            await service.accept_offer(ctx, offer_id)
        offer_accept_counter.labels(status="success").inc()
        return OfferIdResponse(offer_id=offer_id)
    except DomainException as e:
        logger.warning(f"Acceptance of offer {offer_id} rejected: {e.message}")
        offer_accept_counter.labels(status=e.code.lower()).inc()
        raise _domain_error(e)
    except Exception as e:
        logger.exception(f"Unexpected error accepting offer {offer_id}: {e}")
        offer_accept_counter.labels(status="internal_error").inc()
        raise _internal_error()


@router.get("/offers/count", response_model=OffersCountResponse)
async def get_offers_count(
    service: OfferQueryService = Depends(get_query_service),
) -> OffersCountResponse:
    """Current counter value, i.e. the next offer id."""
    offers_count = await service.get_offers_count()
    offer_query_counter.labels(query="offers_count", status="success").inc()
    return OffersCountResponse(offers_count=offers_count)


@router.get("/offers/completed", response_model=OfferIdsResponse)
async def last_completed_offers(
    limit: int = Query(10, ge=0),
    service: OfferQueryService = Depends(get_query_service),
) -> OfferIdsResponse:
    """Most recently completed offers, newest first."""
    try:
        offer_ids = await service.last_completed_offers(limit)
        offer_query_counter.labels(query="last_completed", status="success").inc()
        return OfferIdsResponse(offer_ids=offer_ids)
    except DomainException as e:
        logger.error(f"Completed offers scan failed: {e.message}")
        offer_query_counter.labels(query="last_completed", status="error").inc()
        raise _domain_error(e)


@router.get("/offers/{offer_id}", response_model=Offer)
async def get_offer(
    offer_id: int,
    service: OfferQueryService = Depends(get_query_service),
) -> Offer:
    """Get offer by ID."""
    try:
        offer = await service.get_offer(offer_id)
        offer_query_counter.labels(query="offer", status="success").inc()
        return offer
    except DomainException as e:
        logger.warning(f"Offer lookup failed: {e.message}")
        offer_query_counter.labels(query="offer", status=e.code.lower()).inc()
        raise _domain_error(e)


@router.get("/offers/{offer_id}/history", response_model=List[AuditEvent])
async def get_offer_history(
    offer_id: int,
    service: OfferQueryService = Depends(get_query_service),
) -> List[AuditEvent]:
    """Audit trail of an offer."""
    try:
        events = await service.get_offer_history(offer_id)
        offer_query_counter.labels(query="history", status="success").inc()
        return events
    except DomainException as e:
        logger.warning(f"Offer history lookup failed: {e.message}")
        offer_query_counter.labels(query="history", status=e.code.lower()).inc()
        raise _domain_error(e)


@router.get("/addresses/{address}/submitted/count", response_model=CountResponse)
async def count_submitted_for(
    address: str,
    service: OfferQueryService = Depends(get_query_service),
) -> CountResponse:
    """Number of submitted offers the address takes part in."""
    count = await service.count_submitted_for(address)
    offer_query_counter.labels(query="submitted_count", status="success").inc()
    return CountResponse(count=count)


@router.get("/addresses/{address}/submitted/to", response_model=OfferIdsResponse)
async def offers_submitted_to(
    address: str,
    service: OfferQueryService = Depends(get_query_service),
) -> OfferIdsResponse:
    """Submitted offers addressed to the address."""
    offer_ids = await service.offers_submitted_to(address)
    offer_query_counter.labels(query="submitted_to", status="success").inc()
    return OfferIdsResponse(offer_ids=offer_ids)


@router.get("/addresses/{address}/submitted/from", response_model=OfferIdsResponse)
async def offers_submitted_from(
    address: str,
    service: OfferQueryService = Depends(get_query_service),
) -> OfferIdsResponse:
    """Submitted offers created by the address."""
    offer_ids = await service.offers_submitted_from(address)
    offer_query_counter.labels(query="submitted_from", status="success").inc()
    return OfferIdsResponse(offer_ids=offer_ids)


@router.get("/addresses/{address}/offers/to", response_model=OfferIdsResponse)
async def get_offers_to(
    address: str,
    service: OfferQueryService = Depends(get_query_service),
) -> OfferIdsResponse:
    """Every offer ever addressed to the address."""
    offer_ids = await service.get_offers_to(address)
    offer_query_counter.labels(query="offers_to", status="success").inc()
    return OfferIdsResponse(offer_ids=offer_ids)


@router.get("/addresses/{address}/offers/from", response_model=OfferIdsResponse)
async def get_offers_from(
    address: str,
    service: OfferQueryService = Depends(get_query_service),
) -> OfferIdsResponse:
    """Every offer ever created by the address."""
    offer_ids = await service.get_offers_from(address)
    offer_query_counter.labels(query="offers_from", status="success").inc()
    return OfferIdsResponse(offer_ids=offer_ids)


@admin_router.post("/withdraw", response_model=WithdrawResponse)
async def withdraw_balance(
    caller: str = Depends(get_caller),
    service: AdminService = Depends(get_admin_service),
) -> WithdrawResponse:
    """Sweep the contract's native balance to the owner."""
    try:
        with offer_invocation_duration.labels(operation="withdraw").time():
            amount = await service.withdraw_balance(caller)
        balance_withdraw_counter.labels(status="success").inc()
        return WithdrawResponse(amount=amount)
    except DomainException as e:
        logger.warning(f"Withdrawal rejected: {e.message}")
        balance_withdraw_counter.labels(status=e.code.lower()).inc()
        raise _domain_error(e)
    except Exception as e:
        logger.exception(f"Unexpected error withdrawing balance: {e}")
        balance_withdraw_counter.labels(status="internal_error").inc()
        raise _internal_error()
