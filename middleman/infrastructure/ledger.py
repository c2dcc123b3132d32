"""Ledger interface and in-memory implementation."""
import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Tuple

from middleman.domain.exceptions import InsufficientFundsException
from middleman.domain.models import Transfer

logger = logging.getLogger(__name__)

BalanceKey = Tuple[str, str, int]


class Ledger(ABC):
    """System of record for balances."""

    @abstractmethod
    async def execute(self, transfers: List[Transfer]) -> None:
        """Apply an ordered batch of transfers; all of them or none."""
        pass

    @abstractmethod
    async def get_balance(self, address: str, token_id: str, nonce: int = 0) -> int:
        """Get balance of one asset for an address."""
        pass


class InMemoryLedger(Ledger):
    """In-memory ledger for development/testing."""

    def __init__(self) -> None:
        self._balances: Dict[BalanceKey, int] = {}
        self._messages: List[Transfer] = []

    async def execute(self, transfers: List[Transfer]) -> None:
        """Apply transfers on a copy and swap it in only if every one succeeds."""
        balances = dict(self._balances)
        for transfer in transfers:
            source = (transfer.sender, transfer.token_id, transfer.nonce)
            if balances.get(source, 0) < transfer.amount:
                logger.warning(
                    f"Rejecting batch: {transfer.sender} cannot send "
                    f"{transfer.amount} {transfer.token_id}/{transfer.nonce}"
                )
                raise InsufficientFundsException(
                    transfer.sender, transfer.token_id, transfer.nonce
                )
            target = (transfer.receiver, transfer.token_id, transfer.nonce)
            balances[source] = balances.get(source, 0) - transfer.amount
            balances[target] = balances.get(target, 0) + transfer.amount

        self._balances = balances
        self._messages.extend(t for t in transfers if t.message)

    async def get_balance(self, address: str, token_id: str, nonce: int = 0) -> int:
        """Get balance of one asset for an address."""
        return self._balances.get((address, token_id, nonce), 0)

    def mint(self, address: str, token_id: str, nonce: int = 0, amount: int = 1) -> None:
        """Credit an address out of thin air (for development/testing)."""
        key = (address, token_id, nonce)
        self._balances[key] = self._balances.get(key, 0) + amount

    def messages_for(self, address: str) -> List[str]:
        """Messages delivered to an address, oldest first."""
        return [t.message for t in self._messages if t.receiver == address]

    def clear(self) -> None:
        """Clear all data (for testing)."""
        self._balances.clear()
        self._messages.clear()
