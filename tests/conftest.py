"""Pytest configuration and fixtures.

Service tests run against the in-memory store and ledger; store tests also
run against the SQLAlchemy store on SQLite in-memory.
"""
import pytest

from middleman.infrastructure.database import build_engine, build_session_factory, create_schema
from middleman.infrastructure.ledger import InMemoryLedger
from middleman.infrastructure.repositories_inmemory import InMemoryOfferStore
from middleman.infrastructure.repositories_postgres import PostgresOfferStore
from middleman.services.admin_service import AdminService
from middleman.services.invocation import InvocationRunner
from middleman.services.offer_service import OfferService
from middleman.services.query_service import OfferQueryService

CONTRACT = "contract-addr"
OWNER = "owner-addr"
NATIVE = "EGLD"
NFT = "MIDNFT-0a1b2c"
NFT_NONCE = 7


@pytest.fixture
def holder() -> str:
    """Address that escrows the NFT."""
    return "holder-addr"


@pytest.fixture
def spender() -> str:
    """Address designated to pay."""
    return "spender-addr"


@pytest.fixture
def stranger() -> str:
    """Address unrelated to any offer."""
    return "stranger-addr"


@pytest.fixture
def ledger(holder: str, spender: str) -> InMemoryLedger:
    """Ledger seeded with an NFT for the holder and funds for the spender."""
    ledger = InMemoryLedger()
    ledger.mint(holder, NFT, NFT_NONCE, 1)
    ledger.mint(spender, NATIVE, 0, 10_000)
    # Covers the one-unit notification sent on each creation
    ledger.mint(CONTRACT, NATIVE, 0, 100)
    yield ledger
    ledger.clear()


@pytest.fixture
def store() -> InMemoryOfferStore:
    """In-memory offer store."""
    store = InMemoryOfferStore()
    yield store
    store.clear()


@pytest.fixture
def runner(store: InMemoryOfferStore, ledger: InMemoryLedger) -> InvocationRunner:
    """Invocation runner over the in-memory store and ledger."""
    return InvocationRunner(store, ledger)


@pytest.fixture
def offer_service(runner: InvocationRunner) -> OfferService:
    """Offer service with test addresses."""
    return OfferService(
        runner,
        contract_address=CONTRACT,
        native_token=NATIVE,
        fee_percent=2,
        notification_amount=1,
        marketplace_url="https://market.test",
    )


@pytest.fixture
def query_service(runner: InvocationRunner) -> OfferQueryService:
    """Query service sharing the runner."""
    return OfferQueryService(runner)


@pytest.fixture
def admin_service(runner: InvocationRunner) -> AdminService:
    """Admin service with test addresses."""
    return AdminService(
        runner,
        owner_address=OWNER,
        contract_address=CONTRACT,
        native_token=NATIVE,
    )


@pytest.fixture
async def bootstrapped(offer_service: OfferService) -> OfferService:
    """Offer service with the counter initialized."""
    await offer_service.bootstrap()
    return offer_service


@pytest.fixture
async def sql_store():
    """SQLAlchemy store with SQLite in-memory backend."""
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    await create_schema(engine)

    yield PostgresOfferStore(build_session_factory(engine))

    await engine.dispose()
