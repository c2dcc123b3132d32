"""Base client class."""
import logging
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)


class BaseHTTPClient:
    """JSON-over-HTTP client bound to one base URL.

    Transport and status errors are logged and re-raised unchanged so callers
    can decide which ones to retry.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        default_headers: Optional[Dict[str, str]] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.client = httpx.AsyncClient(timeout=timeout, headers=default_headers)

    async def close(self) -> None:
        """Close the client."""
        await self.client.aclose()

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """Send a request and return the decoded JSON body."""
        url = f"{self.base_url}{path}"
        try:
            response = await self.client.request(
                method, url, params=params, json=data, headers=headers
            )
            response.raise_for_status()
        except httpx.TimeoutException as e:
            logger.error(f"Timeout on {method} {url}: {e}")
            raise
        except httpx.HTTPStatusError as e:
            logger.error(f"{method} {url} returned {e.response.status_code}")
            raise
        except httpx.TransportError as e:
            logger.error(f"Transport error on {method} {url}: {e}")
            raise

        if not response.content:
            return {}
        return response.json()

    async def get(
        self, path: str, params: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Make GET request."""
        return await self.request("GET", path, params=params)

    async def post(
        self,
        path: str,
        data: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """Make POST request."""
        return await self.request("POST", path, data=data, headers=headers)
