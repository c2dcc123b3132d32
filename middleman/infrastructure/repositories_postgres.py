"""PostgreSQL store implementation."""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from middleman.domain.models import AuditEvent, Offer, OfferStatus, PartyRole
from middleman.infrastructure.models import (
    ContractStateModel,
    OfferAuditModel,
    OfferModel,
    PartyIndexModel,
)
from middleman.infrastructure.repositories import OfferStore

logger = logging.getLogger(__name__)

OFFERS_COUNT_KEY = "offers_count"


class PostgresOfferStore(OfferStore):
    """PostgreSQL implementation of the offer store.

    Each transaction() opens its own session; callers serialize transactions,
    so a single current session is enough.
    """

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory
        self._session: Optional[AsyncSession] = None

    @property
    def session(self) -> AsyncSession:
        if self._session is None:
            raise RuntimeError("No active transaction")
        return self._session

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Open a session and commit it when the block succeeds."""
        async with self.session_factory() as session:
            self._session = session
            try:
                yield
                await session.commit()
            except BaseException:
                await session.rollback()
                raise
            finally:
                self._session = None

    def _to_domain(self, model: OfferModel) -> Offer:
        """Convert SQLAlchemy model to domain model."""
        return Offer(
            id=model.id,
            holder=model.holder,
            spender=model.spender,
            amount=int(model.amount),
            asset_id=model.asset_id,
            asset_subid=model.asset_subid,
            status=model.status,
        )

    def _to_model(self, offer: Offer) -> OfferModel:
        """Convert domain model to SQLAlchemy model."""
        return OfferModel(
            id=offer.id,
            holder=offer.holder,
            spender=offer.spender,
            amount=str(offer.amount),
            asset_id=offer.asset_id,
            asset_subid=offer.asset_subid,
            status=offer.status,
        )

    async def get_offers_count(self) -> int:
        """Get the counter value."""
        state = await self.session.get(ContractStateModel, OFFERS_COUNT_KEY)
        return state.value if state else 0

    async def set_offers_count(self, value: int) -> None:
        """Set the counter value."""
        state = await self.session.get(ContractStateModel, OFFERS_COUNT_KEY)
        if state is None:
            self.session.add(ContractStateModel(key=OFFERS_COUNT_KEY, value=value))
        else:
            state.value = value
        await self.session.flush()

    async def create(self, offer: Offer) -> Offer:
        """Store a new offer."""
        model = self._to_model(offer)
        self.session.add(model)
        await self.session.flush()

        await self.log_audit_event(
            offer.id,
            "CREATED",
            {
                "holder": offer.holder,
                "spender": offer.spender,
                "amount": str(offer.amount),
                "asset_id": offer.asset_id,
                "asset_subid": offer.asset_subid,
            },
        )

        logger.info(f"Created offer {offer.id} in database")
        return self._to_domain(model)

    async def get_by_id(self, offer_id: int) -> Optional[Offer]:
        """Get offer by ID."""
        stmt = select(OfferModel).where(OfferModel.id == offer_id)
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()

        if model is None:
            return None

        return self._to_domain(model)

    async def update_status(self, offer_id: int, status: OfferStatus) -> None:
        """Update offer status."""
        stmt = select(OfferModel).where(OfferModel.id == offer_id)
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()

        if model:
            old_status = model.status
            model.status = status
            await self.session.flush()

            await self.log_audit_event(
                offer_id,
                "STATUS_CHANGED",
                {"old_status": old_status.value, "new_status": status.value},
            )

            logger.info(f"Updated offer {offer_id} status: {old_status} -> {status}")

    async def append_to_index(
        self, address: str, role: PartyRole, offer_id: int
    ) -> None:
        """Append an offer id to an address's list."""
        self.session.add(PartyIndexModel(address=address, role=role, offer_id=offer_id))
        await self.session.flush()

    async def get_index(self, address: str, role: PartyRole) -> List[int]:
        """Get the ordered offer ids for an address and role."""
        stmt = (
            select(PartyIndexModel.offer_id)
            .where(PartyIndexModel.address == address, PartyIndexModel.role == role)
            .order_by(PartyIndexModel.seq)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def log_audit_event(
        self, offer_id: int, event_type: str, payload: dict
    ) -> None:
        """Log audit event."""
        audit = OfferAuditModel(
            offer_id=offer_id,
            event_type=event_type,
            ts=datetime.now(timezone.utc),
            payload_json=payload,
        )
        self.session.add(audit)
        await self.session.flush()

        logger.debug(f"Logged audit event {event_type} for offer {offer_id}")

    async def get_audit_events(self, offer_id: int) -> List[AuditEvent]:
        """Get audit events for an offer."""
        stmt = (
            select(OfferAuditModel)
            .where(OfferAuditModel.offer_id == offer_id)
            .order_by(OfferAuditModel.id)
        )
        result = await self.session.execute(stmt)
        return [
            AuditEvent(
                offer_id=model.offer_id,
                event_type=model.event_type,
                ts=model.ts,
                payload=model.payload_json or {},
            )
            for model in result.scalars().all()
        ]
