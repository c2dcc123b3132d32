"""Tests for OfferService."""
import pytest

from conftest import CONTRACT, NATIVE, NFT, NFT_NONCE
from middleman.domain.exceptions import (
    InsufficientFundsException,
    InvalidAmountException,
    InvalidOfferStateException,
    OfferNotFoundException,
    PaymentMismatchException,
    UnauthorizedException,
)
from middleman.domain.models import CallContext, OfferStatus, Payment
from middleman.infrastructure.ledger import InMemoryLedger
from middleman.infrastructure.repositories_inmemory import InMemoryOfferStore
from middleman.services.offer_service import OfferService, compute_payout


def nft(nonce: int = NFT_NONCE) -> Payment:
    return Payment(token_id=NFT, nonce=nonce, amount=1)


def egld(amount: int) -> Payment:
    return Payment(token_id=NATIVE, amount=amount)


async def _create(service: OfferService, holder: str, spender: str, amount: int = 100) -> int:
    return await service.create_offer(
        CallContext(caller=holder, payment=nft()), spender, amount
    )


@pytest.mark.asyncio
async def test_bootstrap_is_idempotent(
    offer_service: OfferService,
    store: InMemoryOfferStore,
    holder: str,
    spender: str,
) -> None:
    """Second bootstrap does not reset the counter."""
    await offer_service.bootstrap()
    assert await store.get_offers_count() == 1

    await _create(offer_service, holder, spender)
    await offer_service.bootstrap()

    assert await store.get_offers_count() == 2


@pytest.mark.asyncio
async def test_create_before_bootstrap_fails(
    offer_service: OfferService,
    store: InMemoryOfferStore,
    holder: str,
    spender: str,
) -> None:
    """Ids cannot be issued from an uninitialized counter."""
    with pytest.raises(RuntimeError):
        await _create(offer_service, holder, spender)

    assert await store.get_offers_count() == 0


@pytest.mark.asyncio
async def test_create_offer_ids_increase_by_one(
    bootstrapped: OfferService,
    ledger: InMemoryLedger,
    holder: str,
    spender: str,
) -> None:
    """Ids start at 1 and increase by exactly 1."""
    ledger.mint(holder, NFT, 1, 1)
    ledger.mint(holder, NFT, 2, 1)

    ids = [
        await bootstrapped.create_offer(
            CallContext(caller=holder, payment=nft(nonce)), spender, 10
        )
        for nonce in (NFT_NONCE, 1, 2)
    ]

    assert ids == [1, 2, 3]


@pytest.mark.asyncio
async def test_create_offer_escrows_asset_and_notifies(
    bootstrapped: OfferService,
    store: InMemoryOfferStore,
    ledger: InMemoryLedger,
    holder: str,
    spender: str,
) -> None:
    """Creation stores the offer, indexes both parties and moves the NFT."""
    offer_id = await _create(bootstrapped, holder, spender, amount=500)

    offer = await store.get_by_id(offer_id)
    assert offer is not None
    assert offer.holder == holder
    assert offer.spender == spender
    assert offer.amount == 500
    assert offer.asset_id == NFT
    assert offer.asset_subid == NFT_NONCE
    assert offer.status == OfferStatus.SUBMITTED

    assert await store.get_offers_from(holder) == [offer_id]
    assert await store.get_offers_to(spender) == [offer_id]

    assert await ledger.get_balance(holder, NFT, NFT_NONCE) == 0
    assert await ledger.get_balance(CONTRACT, NFT, NFT_NONCE) == 1
    assert await ledger.get_balance(spender, NATIVE) == 10_001
    assert ledger.messages_for(spender) == [
        "Someone sent you an offer on https://market.test"
    ]


@pytest.mark.asyncio
async def test_create_offer_accepts_zero_amount(
    bootstrapped: OfferService,
    holder: str,
    spender: str,
) -> None:
    """Only negative amounts are rejected; zero is a valid price."""
    offer_id = await _create(bootstrapped, holder, spender, amount=0)

    assert offer_id == 1


@pytest.mark.asyncio
async def test_create_offer_negative_amount(
    bootstrapped: OfferService,
    store: InMemoryOfferStore,
    holder: str,
    spender: str,
) -> None:
    """Negative amount is rejected before anything is allocated."""
    with pytest.raises(InvalidAmountException):
        await _create(bootstrapped, holder, spender, amount=-1)

    assert await store.get_offers_count() == 1


@pytest.mark.asyncio
async def test_create_offer_requires_single_unit(
    bootstrapped: OfferService,
    store: InMemoryOfferStore,
    holder: str,
    spender: str,
) -> None:
    """Attaching more than one unit, or nothing, is a payment mismatch."""
    with pytest.raises(PaymentMismatchException):
        await bootstrapped.create_offer(
            CallContext(caller=holder, payment=Payment(token_id=NFT, nonce=NFT_NONCE, amount=2)),
            spender,
            100,
        )
    with pytest.raises(PaymentMismatchException):
        await bootstrapped.create_offer(CallContext(caller=holder), spender, 100)

    assert await store.get_offers_count() == 1


@pytest.mark.asyncio
async def test_create_offer_without_asset_rolls_back(
    bootstrapped: OfferService,
    store: InMemoryOfferStore,
    ledger: InMemoryLedger,
    stranger: str,
    spender: str,
) -> None:
    """A caller who does not own the NFT leaves no trace."""
    with pytest.raises(InsufficientFundsException):
        await _create(bootstrapped, stranger, spender)

    assert await store.get_offers_count() == 1
    assert await store.get_by_id(1) is None
    assert await store.get_offers_from(stranger) == []
    assert await store.get_offers_to(spender) == []
    assert await ledger.get_balance(spender, NATIVE) == 10_000


@pytest.mark.asyncio
async def test_delete_offer_round_trip(
    bootstrapped: OfferService,
    store: InMemoryOfferStore,
    ledger: InMemoryLedger,
    holder: str,
    spender: str,
) -> None:
    """Deleting returns the NFT; a second delete fails."""
    offer_id = await _create(bootstrapped, holder, spender)

    result = await bootstrapped.delete_offer(CallContext(caller=holder), offer_id)

    assert result == offer_id
    offer = await store.get_by_id(offer_id)
    assert offer.status == OfferStatus.DELETED
    assert await ledger.get_balance(holder, NFT, NFT_NONCE) == 1
    assert await ledger.get_balance(CONTRACT, NFT, NFT_NONCE) == 0

    with pytest.raises(InvalidOfferStateException):
        await bootstrapped.delete_offer(CallContext(caller=holder), offer_id)


@pytest.mark.asyncio
async def test_delete_offer_only_by_holder(
    bootstrapped: OfferService,
    store: InMemoryOfferStore,
    holder: str,
    spender: str,
    stranger: str,
) -> None:
    """Spender and strangers cannot cancel."""
    offer_id = await _create(bootstrapped, holder, spender)

    for caller in (spender, stranger):
        with pytest.raises(UnauthorizedException) as exc_info:
            await bootstrapped.delete_offer(CallContext(caller=caller), offer_id)
        assert exc_info.value.message == "You are not the creator of this offer"

    offer = await store.get_by_id(offer_id)
    assert offer.status == OfferStatus.SUBMITTED


@pytest.mark.asyncio
async def test_delete_offer_not_found(
    bootstrapped: OfferService,
    holder: str,
) -> None:
    """Unknown id is fatal to the invocation."""
    with pytest.raises(OfferNotFoundException):
        await bootstrapped.delete_offer(CallContext(caller=holder), 42)


@pytest.mark.asyncio
async def test_accept_offer_round_trip(
    bootstrapped: OfferService,
    store: InMemoryOfferStore,
    ledger: InMemoryLedger,
    holder: str,
    spender: str,
) -> None:
    """Holder receives 98%, spender receives the NFT, contract keeps the fee."""
    offer_id = await _create(bootstrapped, holder, spender, amount=100)

    result = await bootstrapped.accept_offer(
        CallContext(caller=spender, payment=egld(100)), offer_id
    )

    assert result == offer_id
    offer = await store.get_by_id(offer_id)
    assert offer.status == OfferStatus.COMPLETED
    assert await ledger.get_balance(holder, NATIVE) == 98
    assert await ledger.get_balance(spender, NFT, NFT_NONCE) == 1
    assert await ledger.get_balance(spender, NATIVE) == 10_000 + 1 - 100
    # 100 seeded - 1 notification + 2 fee
    assert await ledger.get_balance(CONTRACT, NATIVE) == 101
    assert ledger.messages_for(holder) == [
        "Someone just accepted your offer on https://market.test"
    ]


@pytest.mark.asyncio
async def test_accept_offer_fee_truncates(
    bootstrapped: OfferService,
    ledger: InMemoryLedger,
    holder: str,
    spender: str,
) -> None:
    """99 pays out 97; the contract keeps 2."""
    offer_id = await _create(bootstrapped, holder, spender, amount=99)

    await bootstrapped.accept_offer(CallContext(caller=spender, payment=egld(99)), offer_id)

    assert await ledger.get_balance(holder, NATIVE) == 97
    assert await ledger.get_balance(CONTRACT, NATIVE) == 100 - 1 + 2


@pytest.mark.parametrize(
    "amount,payout",
    [(0, 0), (1, 0), (49, 48), (99, 97), (100, 98), (10**30, 98 * 10**28)],
)
def test_compute_payout(amount: int, payout: int) -> None:
    """Payout is floor(amount * 98 / 100)."""
    assert compute_payout(amount, 2) == payout


@pytest.mark.asyncio
async def test_accept_offer_only_by_spender(
    bootstrapped: OfferService,
    ledger: InMemoryLedger,
    holder: str,
    spender: str,
    stranger: str,
) -> None:
    """Holder and strangers cannot accept."""
    ledger.mint(stranger, NATIVE, 0, 1_000)
    offer_id = await _create(bootstrapped, holder, spender)

    for caller in (holder, stranger):
        with pytest.raises(UnauthorizedException):
            await bootstrapped.accept_offer(
                CallContext(caller=caller, payment=egld(100)), offer_id
            )

    assert await ledger.get_balance(stranger, NATIVE) == 1_000


@pytest.mark.asyncio
async def test_accept_offer_rejects_non_native_payment(
    bootstrapped: OfferService,
    ledger: InMemoryLedger,
    holder: str,
    spender: str,
) -> None:
    """Only the native asset settles an offer."""
    ledger.mint(spender, "USDC-123456", 0, 1_000)
    offer_id = await _create(bootstrapped, holder, spender)

    with pytest.raises(PaymentMismatchException) as exc_info:
        await bootstrapped.accept_offer(
            CallContext(caller=spender, payment=Payment(token_id="USDC-123456", amount=100)),
            offer_id,
        )
    assert exc_info.value.message == "Only pay with EGLD"

    with pytest.raises(PaymentMismatchException):
        await bootstrapped.accept_offer(CallContext(caller=spender), offer_id)


@pytest.mark.asyncio
@pytest.mark.parametrize("paid", [99, 101])
async def test_accept_offer_rejects_wrong_amount(
    bootstrapped: OfferService,
    store: InMemoryOfferStore,
    ledger: InMemoryLedger,
    holder: str,
    spender: str,
    paid: int,
) -> None:
    """Under- and overpayment are both rejected without moving funds."""
    offer_id = await _create(bootstrapped, holder, spender, amount=100)

    with pytest.raises(PaymentMismatchException) as exc_info:
        await bootstrapped.accept_offer(
            CallContext(caller=spender, payment=egld(paid)), offer_id
        )
    assert exc_info.value.message == "Incorrect EGLD amount"

    offer = await store.get_by_id(offer_id)
    assert offer.status == OfferStatus.SUBMITTED
    assert await ledger.get_balance(holder, NATIVE) == 0


@pytest.mark.asyncio
async def test_terminal_states_are_closed(
    bootstrapped: OfferService,
    ledger: InMemoryLedger,
    holder: str,
    spender: str,
) -> None:
    """Neither delete nor accept succeeds once an offer is terminal."""
    ledger.mint(holder, NFT, 1, 1)
    completed = await _create(bootstrapped, holder, spender)
    deleted = await bootstrapped.create_offer(
        CallContext(caller=holder, payment=nft(1)), spender, 100
    )

    await bootstrapped.accept_offer(CallContext(caller=spender, payment=egld(100)), completed)
    await bootstrapped.delete_offer(CallContext(caller=holder), deleted)

    for offer_id in (completed, deleted):
        with pytest.raises(InvalidOfferStateException):
            await bootstrapped.delete_offer(CallContext(caller=holder), offer_id)
        with pytest.raises(InvalidOfferStateException):
            await bootstrapped.accept_offer(
                CallContext(caller=spender, payment=egld(100)), offer_id
            )


@pytest.mark.asyncio
async def test_accept_offer_insufficient_funds_rolls_back(
    bootstrapped: OfferService,
    store: InMemoryOfferStore,
    ledger: InMemoryLedger,
    holder: str,
    spender: str,
) -> None:
    """A spender who cannot pay leaves the offer submitted."""
    offer_id = await _create(bootstrapped, holder, spender, amount=50_000)

    with pytest.raises(InsufficientFundsException):
        await bootstrapped.accept_offer(
            CallContext(caller=spender, payment=egld(50_000)), offer_id
        )

    offer = await store.get_by_id(offer_id)
    assert offer.status == OfferStatus.SUBMITTED
    assert await ledger.get_balance(CONTRACT, NFT, NFT_NONCE) == 1
    assert [e.event_type for e in await store.get_audit_events(offer_id)] == ["CREATED"]
