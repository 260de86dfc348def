"""SQLAlchemy ORM models for the access registry.

Contains: RegistryState, Identity, Verifier, AccessRequest, RegistryEvent.

All timestamps are integer epoch seconds supplied by the registry clock, not
database defaults, so that every stored time comes from the same trusted
source.
"""

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
)

from accessreg.core.db import Base


# ---------------------------------------------------------------------------
# RegistryState  (singleton row)
# ---------------------------------------------------------------------------

class RegistryState(Base):
    __tablename__ = "registry_state"

    id = Column(Integer, primary_key=True, default=1)
    owner = Column(Text, nullable=False)
    total_users = Column(Integer, default=0, nullable=False)
    total_access_requests = Column(Integer, default=0, nullable=False)
    next_event_sequence = Column(Integer, default=0, nullable=False)
    deployed_at = Column(BigInteger, nullable=False)


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------

class Identity(Base):
    __tablename__ = "identities"

    principal = Column(Text, primary_key=True)
    name = Column(Text, nullable=False)
    email = Column(Text, nullable=False)
    is_verified = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    registration_time = Column(BigInteger, nullable=False)
    identity_hash = Column(String(128), nullable=False)


# ---------------------------------------------------------------------------
# Verifier
# ---------------------------------------------------------------------------

class Verifier(Base):
    __tablename__ = "verifiers"

    principal = Column(Text, primary_key=True)
    is_verifier = Column(Boolean, default=False, nullable=False)
    updated_at = Column(BigInteger, nullable=False)


# ---------------------------------------------------------------------------
# AccessRequest
# ---------------------------------------------------------------------------

class AccessRequest(Base):
    __tablename__ = "access_requests"

    # Allocated by the registry from ``RegistryState.total_access_requests``.
    id = Column(Integer, primary_key=True, autoincrement=False)
    requester = Column(
        Text,
        ForeignKey("identities.principal"),
        nullable=False,
    )
    target = Column(Text, nullable=False)
    resource_id = Column(Text, nullable=False)
    is_approved = Column(Boolean, default=False, nullable=False)
    is_processed = Column(Boolean, default=False, nullable=False)
    request_time = Column(BigInteger, nullable=False)
    expiry_time = Column(BigInteger, nullable=False)

    __table_args__ = (
        Index("ix_access_request_requester", "requester", "id"),
    )


# ---------------------------------------------------------------------------
# RegistryEvent  (append-only)
# ---------------------------------------------------------------------------

class RegistryEvent(Base):
    __tablename__ = "registry_events"

    sequence = Column(Integer, primary_key=True, autoincrement=False)
    name = Column(String(64), nullable=False)
    payload = Column(JSON, nullable=False, default=dict)
    emitted_at = Column(BigInteger, nullable=False)
