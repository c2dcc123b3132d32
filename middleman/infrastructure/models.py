"""SQLAlchemy ORM models for database tables."""
from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Enum, Index, Integer, String
from sqlalchemy.types import TypeDecorator

from middleman.domain.models import OfferStatus, PartyRole
from middleman.infrastructure.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class U64(TypeDecorator):
    """Unsigned 64-bit integer kept as a decimal string.

    BIGINT is signed and stops at 2**63 - 1.
    """

    impl = String
    cache_ok = True

    def __init__(self) -> None:
        super().__init__(length=20)

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else int(value)


class ContractStateModel(Base):
    """Single-value entries such as offers_count."""

    __tablename__ = "contract_state"

    key = Column(String(64), primary_key=True)
    value = Column(U64(), nullable=False)


class OfferModel(Base):
    """SQLAlchemy model for offers table."""

    __tablename__ = "offers"

    id = Column(U64(), primary_key=True, autoincrement=False)
    holder = Column(String(255), nullable=False, index=True)
    spender = Column(String(255), nullable=False, index=True)
    # Decimal string: amounts are unbounded integers
    amount = Column(String(80), nullable=False)
    asset_id = Column(String(255), nullable=False)
    asset_subid = Column(U64(), nullable=False)
    status = Column(
        Enum(OfferStatus, name="offer_status"),
        nullable=False,
        default=OfferStatus.SUBMITTED,
        index=True,
    )


class PartyIndexModel(Base):
    """Append-only address -> offer id lists, ordered by seq."""

    __tablename__ = "offer_party_index"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    address = Column(String(255), nullable=False)
    role = Column(Enum(PartyRole, name="party_role"), nullable=False)
    offer_id = Column(U64(), nullable=False)

    __table_args__ = (Index("idx_party_index_address_role", "address", "role", "seq"),)


class OfferAuditModel(Base):
    """SQLAlchemy model for offer audit log."""

    __tablename__ = "offer_audit"

    id = Column(Integer, primary_key=True, autoincrement=True)
    offer_id = Column(U64(), nullable=False, index=True)
    event_type = Column(String(50), nullable=False)
    ts = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    payload_json = Column(JSON, nullable=True)

    __table_args__ = (Index("idx_audit_offer_ts", "offer_id", "ts"),)
