"""Read-only offer queries."""
import logging
from typing import List

from middleman.domain.exceptions import OfferNotFoundException
from middleman.domain.models import AuditEvent, Offer, OfferStatus
from middleman.infrastructure.repositories import OfferStore
from middleman.services.invocation import InvocationRunner

logger = logging.getLogger(__name__)


class OfferQueryService:
    """Aggregations over the offer store and party index.

    Index lists keep terminated offers; status is filtered here at read time.
    """

    def __init__(self, runner: InvocationRunner):
        self.runner = runner

    @staticmethod
    async def _get_offer(store: OfferStore, offer_id: int) -> Offer:
        offer = await store.get_by_id(offer_id)
        if offer is None:
            raise OfferNotFoundException(offer_id)
        return offer

    async def _filter_by_status(
        self, store: OfferStore, offer_ids: List[int], status: OfferStatus
    ) -> List[int]:
        result = []
        for offer_id in offer_ids:
            offer = await self._get_offer(store, offer_id)
            if offer.status == status:
                result.append(offer_id)
        return result

    async def count_submitted_for(self, address: str) -> int:
        """Count submitted offers where the address is spender or holder."""
        async with self.runner.read() as store:
            offer_ids = await store.get_offers_to(address)
            offer_ids.extend(await store.get_offers_from(address))
            submitted = await self._filter_by_status(
                store, offer_ids, OfferStatus.SUBMITTED
            )
        return len(submitted)

    async def offers_submitted_to(self, address: str) -> List[int]:
        """Submitted offers where the address is the spender."""
        async with self.runner.read() as store:
            offer_ids = await store.get_offers_to(address)
            return await self._filter_by_status(store, offer_ids, OfferStatus.SUBMITTED)

    async def offers_submitted_from(self, address: str) -> List[int]:
        """Submitted offers where the address is the holder."""
        async with self.runner.read() as store:
            offer_ids = await store.get_offers_from(address)
            return await self._filter_by_status(store, offer_ids, OfferStatus.SUBMITTED)

    async def last_completed_offers(self, limit: int) -> List[int]:
        """Most recent completed offer ids, newest first, at most `limit`."""
        result: List[int] = []
        async with self.runner.read() as store:
            next_id = await store.get_offers_count()
            for offer_id in range(next_id - 1, 0, -1):
                if len(result) >= limit:
                    break
                offer = await self._get_offer(store, offer_id)
                if offer.status == OfferStatus.COMPLETED:
                    result.append(offer_id)
        return result

    async def get_offers_count(self) -> int:
        """Current counter value (the next id to be issued)."""
        async with self.runner.read() as store:
            return await store.get_offers_count()

    async def get_offer(self, offer_id: int) -> Offer:
        """Get offer by ID."""
        async with self.runner.read() as store:
            return await self._get_offer(store, offer_id)

    async def get_offers_to(self, address: str) -> List[int]:
        """Every offer id ever addressed to the address, in creation order."""
        async with self.runner.read() as store:
            return await store.get_offers_to(address)

    async def get_offers_from(self, address: str) -> List[int]:
        """Every offer id ever created by the address, in creation order."""
        async with self.runner.read() as store:
            return await store.get_offers_from(address)

    async def get_offer_history(self, offer_id: int) -> List[AuditEvent]:
        """Audit trail of an offer."""
        async with self.runner.read() as store:
            await self._get_offer(store, offer_id)
            return await store.get_audit_events(offer_id)
