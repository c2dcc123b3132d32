"""External service clients."""
from middleman.infrastructure.clients.ledger_client import HttpLedgerClient

__all__ = ["HttpLedgerClient"]
