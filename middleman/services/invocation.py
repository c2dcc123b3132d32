"""Serialized, all-or-nothing invocations over the store and the ledger."""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional

from middleman.domain.models import Transfer
from middleman.infrastructure.ledger import Ledger
from middleman.infrastructure.repositories import OfferStore

logger = logging.getLogger(__name__)


class TransferBatch:
    """Transfers queued by one invocation, executed only when it succeeds."""

    def __init__(self) -> None:
        self.transfers: List[Transfer] = []

    def add(
        self,
        sender: str,
        receiver: str,
        token_id: str,
        amount: int,
        nonce: int = 0,
        message: Optional[str] = None,
    ) -> None:
        self.transfers.append(
            Transfer(
                sender=sender,
                receiver=receiver,
                token_id=token_id,
                nonce=nonce,
                amount=amount,
                message=message,
            )
        )


class InvocationRunner:
    """Single serialization point shared by every service.

    Inside invoke() the store transaction is open and transfers are queued;
    on exit the ledger executes the batch and then the store commits. Any
    exception before that point discards both.
    """

    def __init__(self, store: OfferStore, ledger: Ledger):
        self.store = store
        self.ledger = ledger
        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def invoke(self) -> AsyncIterator[TransferBatch]:
        """Run a mutating invocation."""
        async with self._lock:
            async with self.store.transaction():
                batch = TransferBatch()
                yield batch
                if batch.transfers:
                    logger.debug(f"Executing {len(batch.transfers)} ledger transfers")
                    await self.ledger.execute(batch.transfers)

    @asynccontextmanager
    async def read(self) -> AsyncIterator[OfferStore]:
        """Run a read-only invocation."""
        async with self._lock:
            async with self.store.transaction():
                yield self.store
