"""Ledger Service client."""
import logging
from typing import Any, Dict, List
from uuid import uuid4

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_fixed

from middleman.config import settings
from middleman.domain.exceptions import (
    InsufficientFundsException,
    LedgerUnavailableException,
)
from middleman.domain.models import Transfer
from middleman.infrastructure.clients.base import BaseHTTPClient
from middleman.infrastructure.ledger import Ledger

logger = logging.getLogger(__name__)


class HttpLedgerClient(Ledger):
    """Client for the Ledger Service.

    A batch is posted as one request under an idempotency key, so a retried
    post is applied at most once by the ledger.
    """

    def __init__(
        self,
        base_url: str = settings.ledger_service_url,
        timeout: float = settings.ledger_service_timeout,
    ):
        self.http_client = BaseHTTPClient(base_url, timeout)

    async def close(self) -> None:
        """Close the client."""
        await self.http_client.close()

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(settings.ledger_retries),
        wait=wait_fixed(1),
        reraise=True,
    )
    async def _post_batch(self, batch_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self.http_client.post(
            "/api/v1/transfers/batch",
            data=payload,
            headers={"Idempotency-Key": batch_id},
        )

    async def execute(self, transfers: List[Transfer]) -> None:
        """Post the batch to the ledger."""
        if not transfers:
            return

        batch_id = str(uuid4())
        payload = {
            "batch_id": batch_id,
            "transfers": [t.model_dump() for t in transfers],
        }
        try:
            logger.info(f"Submitting ledger batch {batch_id} ({len(transfers)} transfers)")
            await self._post_batch(batch_id, payload)
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 409:
                detail = e.response.json().get("detail", {})
                raise InsufficientFundsException(
                    detail.get("address", "unknown"),
                    detail.get("token_id", "unknown"),
                    detail.get("nonce", 0),
                )
            logger.error(f"Ledger rejected batch {batch_id}: {e.response.status_code}")
            raise LedgerUnavailableException()
        except httpx.HTTPError as e:
            logger.error(f"Failed to submit ledger batch {batch_id}: {e}")
            raise LedgerUnavailableException()

    async def get_balance(self, address: str, token_id: str, nonce: int = 0) -> int:
        """Get balance of one asset for an address."""
        try:
            response = await self.http_client.get(
                f"/api/v1/balances/{address}",
                params={"token_id": token_id, "nonce": nonce},
            )
        except httpx.HTTPError as e:
            logger.error(f"Failed to fetch balance for {address}: {e}")
            raise LedgerUnavailableException()

        return int(response["balance"])
