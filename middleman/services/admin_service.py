"""Owner-only balance sweep."""
import logging

from middleman.config import settings
from middleman.domain.exceptions import UnauthorizedException
from middleman.services.invocation import InvocationRunner

logger = logging.getLogger(__name__)


class AdminService:
    """Recovers fee residue held by the contract."""

    def __init__(
        self,
        runner: InvocationRunner,
        owner_address: str = settings.owner_address,
        contract_address: str = settings.contract_address,
        native_token: str = settings.native_token,
    ):
        self.runner = runner
        self.owner_address = owner_address
        self.contract_address = contract_address
        self.native_token = native_token

    async def withdraw_balance(self, caller: str) -> int:
        """Send the contract's whole native balance to the owner."""
        if caller != self.owner_address:
            logger.warning(f"Withdrawal attempt by non-owner {caller}")
            raise UnauthorizedException("Endpoint can only be called by owner")

        async with self.runner.invoke() as batch:
            balance = await self.runner.ledger.get_balance(
                self.contract_address, self.native_token
            )
            if balance > 0:
                batch.add(
                    self.contract_address,
                    self.owner_address,
                    self.native_token,
                    balance,
                )

        logger.info(f"Withdrew {balance} {self.native_token} to owner")
        return balance
