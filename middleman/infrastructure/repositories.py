"""Abstract offer store interface."""
from abc import ABC, abstractmethod
from typing import AsyncContextManager, List, Optional

from middleman.domain.models import U64_MAX, AuditEvent, Offer, OfferStatus, PartyRole


class OfferStore(ABC):
    """Counter, offer records and party index behind one transactional boundary.

    Entries are never removed: offers change status only, index lists only grow.
    """

    @abstractmethod
    def transaction(self) -> AsyncContextManager[None]:
        """Open a unit of work; every change inside it commits or rolls back together."""
        pass

    @abstractmethod
    async def get_offers_count(self) -> int:
        """Get the counter value (0 when not yet initialized)."""
        pass

    @abstractmethod
    async def set_offers_count(self, value: int) -> None:
        """Set the counter value."""
        pass

    @abstractmethod
    async def create(self, offer: Offer) -> Offer:
        """Store a new offer."""
        pass

    @abstractmethod
    async def get_by_id(self, offer_id: int) -> Optional[Offer]:
        """Get offer by ID."""
        pass

    @abstractmethod
    async def update_status(self, offer_id: int, status: OfferStatus) -> None:
        """Update offer status."""
        pass

    @abstractmethod
    async def append_to_index(
        self, address: str, role: PartyRole, offer_id: int
    ) -> None:
        """Append an offer id to an address's holder or spender list."""
        pass

    @abstractmethod
    async def get_index(self, address: str, role: PartyRole) -> List[int]:
        """Get the ordered offer ids an address takes part in under a role."""
        pass

    @abstractmethod
    async def log_audit_event(
        self, offer_id: int, event_type: str, payload: dict
    ) -> None:
        """Log audit event."""
        pass

    @abstractmethod
    async def get_audit_events(self, offer_id: int) -> List[AuditEvent]:
        """Get audit events for an offer, oldest first."""
        pass

    async def init_counter_if_empty(self, value: int = 1) -> bool:
        """Set the counter only if it has never been set.

        Returns True when the value was written.
        """
        if await self.get_offers_count() != 0:
            return False
        await self.set_offers_count(value)
        return True

    async def allocate_next_id(self) -> int:
        """Return the next offer id and advance the counter by one."""
        offer_id = await self.get_offers_count()
        if offer_id == 0:
            raise RuntimeError("Offer counter is not initialized")
        if offer_id >= U64_MAX:
            raise OverflowError("Offer id space exhausted")
        await self.set_offers_count(offer_id + 1)
        return offer_id

    async def get_offers_from(self, address: str) -> List[int]:
        """Offers where the address is the holder."""
        return await self.get_index(address, PartyRole.HOLDER)

    async def get_offers_to(self, address: str) -> List[int]:
        """Offers where the address is the spender."""
        return await self.get_index(address, PartyRole.SPENDER)
