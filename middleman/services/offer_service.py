"""Offer lifecycle service: create, delete and accept offers."""
import logging

from middleman.config import settings
from middleman.domain.exceptions import (
    InvalidAmountException,
    InvalidOfferStateException,
    OfferNotFoundException,
    PaymentMismatchException,
    UnauthorizedException,
)
from middleman.domain.models import CallContext, Offer, OfferStatus, PartyRole
from middleman.infrastructure.repositories import OfferStore
from middleman.services.invocation import InvocationRunner

logger = logging.getLogger(__name__)


def compute_payout(amount: int, fee_percent: int = settings.fee_percent) -> int:
    """Amount forwarded to the holder; the truncated remainder is the fee."""
    return amount * (100 - fee_percent) // 100


class OfferService:
    """Service driving the offer state machine.

    Offers move SUBMITTED -> COMPLETED or SUBMITTED -> DELETED and never leave
    a terminal state. Every check runs before any transfer is queued.
    """

    def __init__(
        self,
        runner: InvocationRunner,
        contract_address: str = settings.contract_address,
        native_token: str = settings.native_token,
        fee_percent: int = settings.fee_percent,
        notification_amount: int = settings.notification_amount,
        marketplace_url: str = settings.marketplace_url,
    ):
        self.runner = runner
        self.contract_address = contract_address
        self.native_token = native_token
        self.fee_percent = fee_percent
        self.notification_amount = notification_amount
        self.marketplace_url = marketplace_url

    @property
    def store(self) -> OfferStore:
        return self.runner.store

    async def bootstrap(self) -> None:
        """Initialize the offer counter to 1 unless it is already set."""
        async with self.runner.invoke():
            initialized = await self.store.init_counter_if_empty(1)

        if initialized:
            logger.info("Offer counter initialized")
        else:
            logger.info("Offer counter already initialized, leaving it unchanged")

    async def _get_offer(self, offer_id: int) -> Offer:
        offer = await self.store.get_by_id(offer_id)
        if offer is None:
            raise OfferNotFoundException(offer_id)
        return offer

    async def create_offer(self, ctx: CallContext, spender: str, amount: int) -> int:
        """Escrow the attached asset and open an offer to `spender`."""
        logger.info(f"Creating offer from {ctx.caller} to {spender} for {amount}")

        # NOTE: zero is accepted; only negative amounts are rejected
        if amount < 0:
            raise InvalidAmountException()

        payment = ctx.payment
        if payment is None or payment.amount != 1:
            raise PaymentMismatchException(
                "Exactly one unit of the offered asset must be attached"
            )

        async with self.runner.invoke() as batch:
            batch.add(
                ctx.caller,
                self.contract_address,
                payment.token_id,
                1,
                nonce=payment.nonce,
            )

            offer_id = await self.store.allocate_next_id()
            await self.store.append_to_index(ctx.caller, PartyRole.HOLDER, offer_id)
            await self.store.append_to_index(spender, PartyRole.SPENDER, offer_id)

            offer = Offer(
                id=offer_id,
                holder=ctx.caller,
                spender=spender,
                amount=amount,
                asset_id=payment.token_id,
                asset_subid=payment.nonce,
                status=OfferStatus.SUBMITTED,
            )

            batch.add(
                self.contract_address,
                spender,
                self.native_token,
                self.notification_amount,
                message=f"Someone sent you an offer on {self.marketplace_url}",
            )

            await self.store.create(offer)

        logger.info(f"Created offer {offer_id}")
        return offer_id

    async def delete_offer(self, ctx: CallContext, offer_id: int) -> int:
        """Cancel a submitted offer and return the escrowed asset to its holder."""
        logger.info(f"Deleting offer {offer_id} for {ctx.caller}")

        async with self.runner.invoke() as batch:
            offer = await self._get_offer(offer_id)

            if offer.holder != ctx.caller:
                raise UnauthorizedException("You are not the creator of this offer")
            if offer.status != OfferStatus.SUBMITTED:
                raise InvalidOfferStateException()

            batch.add(
                self.contract_address,
                ctx.caller,
                offer.asset_id,
                1,
                nonce=offer.asset_subid,
            )

            await self.store.update_status(offer_id, OfferStatus.DELETED)

        logger.info(f"Offer {offer_id} deleted")
        return offer_id

    async def accept_offer(self, ctx: CallContext, offer_id: int) -> int:
        """Pay for a submitted offer and receive the escrowed asset.

        The holder gets the payment minus the fee; the fee stays with the contract.
        """
        logger.info(f"Accepting offer {offer_id} for {ctx.caller}")

        async with self.runner.invoke() as batch:
            offer = await self._get_offer(offer_id)
            payment = ctx.payment

            if offer.spender != ctx.caller:
                raise UnauthorizedException(
                    "You are not the spender designated for this offer"
                )
            if (
                payment is None
                or payment.token_id != self.native_token
                or payment.nonce != 0
            ):
                raise PaymentMismatchException(f"Only pay with {self.native_token}")
            if offer.status != OfferStatus.SUBMITTED:
                raise InvalidOfferStateException()
            if payment.amount != offer.amount:
                raise PaymentMismatchException(f"Incorrect {self.native_token} amount")

            payout = compute_payout(payment.amount, self.fee_percent)

            batch.add(ctx.caller, self.contract_address, self.native_token, payment.amount)
            batch.add(
                self.contract_address,
                offer.holder,
                self.native_token,
                payout,
                message=f"Someone just accepted your offer on {self.marketplace_url}",
            )
            batch.add(
                self.contract_address,
                ctx.caller,
                offer.asset_id,
                1,
                nonce=offer.asset_subid,
            )

            await self.store.update_status(offer_id, OfferStatus.COMPLETED)

        logger.info(
            f"Offer {offer_id} completed: {payout} to {offer.holder}, "
            f"fee {payment.amount - payout}"
        )
        return offer_id
