"""In-memory store implementation for development/testing."""
import copy
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Dict, List, Optional, Tuple

from middleman.domain.models import AuditEvent, Offer, OfferStatus, PartyRole
from middleman.infrastructure.repositories import OfferStore


class InMemoryOfferStore(OfferStore):
    """In-memory implementation of the offer store.

    A transaction snapshots the whole state and restores it if the block raises.
    """

    def __init__(self) -> None:
        self._offers_count: int = 0
        self._offers: Dict[int, Offer] = {}
        self._index: Dict[Tuple[PartyRole, str], List[int]] = {}
        self._audit_events: List[AuditEvent] = []

    def _snapshot(self) -> tuple:
        return (
            self._offers_count,
            {k: v.model_copy() for k, v in self._offers.items()},
            copy.deepcopy(self._index),
            list(self._audit_events),
        )

    def _restore(self, snapshot: tuple) -> None:
        (
            self._offers_count,
            self._offers,
            self._index,
            self._audit_events,
        ) = snapshot

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Open a unit of work."""
        snapshot = self._snapshot()
        try:
            yield
        except BaseException:
            self._restore(snapshot)
            raise

    async def get_offers_count(self) -> int:
        """Get the counter value."""
        return self._offers_count

    async def set_offers_count(self, value: int) -> None:
        """Set the counter value."""
        self._offers_count = value

    async def create(self, offer: Offer) -> Offer:
        """Store a new offer."""
        self._offers[offer.id] = offer.model_copy()

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

        return offer

    async def get_by_id(self, offer_id: int) -> Optional[Offer]:
        """Get offer by ID."""
        offer = self._offers.get(offer_id)
        return offer.model_copy() if offer else None

    async def update_status(self, offer_id: int, status: OfferStatus) -> None:
        """Update offer status."""
        offer = self._offers.get(offer_id)

        if offer:
            old_status = offer.status
            offer.status = status

            await self.log_audit_event(
                offer_id,
                "STATUS_CHANGED",
                {"old_status": old_status.value, "new_status": status.value},
            )

    async def append_to_index(
        self, address: str, role: PartyRole, offer_id: int
    ) -> None:
        """Append an offer id to an address's list."""
        self._index.setdefault((role, address), []).append(offer_id)

    async def get_index(self, address: str, role: PartyRole) -> List[int]:
        """Get the ordered offer ids for an address and role."""
        return list(self._index.get((role, address), []))

    async def log_audit_event(
        self, offer_id: int, event_type: str, payload: dict
    ) -> None:
        """Log audit event."""
        self._audit_events.append(
            AuditEvent(
                offer_id=offer_id,
                event_type=event_type,
                ts=datetime.now(timezone.utc),
                payload=payload,
            )
        )

    async def get_audit_events(self, offer_id: int) -> List[AuditEvent]:
        """Get audit events for an offer."""
        return [e for e in self._audit_events if e.offer_id == offer_id]

    def clear(self) -> None:
        """Clear all data (for testing)."""
        self._offers_count = 0
        self._offers.clear()
        self._index.clear()
        self._audit_events.clear()
