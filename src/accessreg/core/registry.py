"""The access registry state machine.

Identities move unregistered -> registered -> verified.  Access requests move
created -> approved | denied, and become unusable once their expiry time has
passed.  Every public operation:

* runs under one registry-wide lock and one database transaction,
* checks all of its preconditions before mutating anything,
* raises a :class:`~accessreg.core.errors.RegistryError` on the first
  violated precondition, rolling the transaction back,
* records its events in the same transaction and hands them to subscribers
  only after commit.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator

from sqlalchemy.orm import Session, sessionmaker

from accessreg.core import errors, events
from accessreg.core.clock import MonotonicClock
from accessreg.core.db import SessionLocal
from accessreg.core.events import EventLog, EventView
from accessreg.core.hashing import identity_hash
from accessreg.core.models import AccessRequest, Identity, RegistryState, Verifier
from accessreg.util.logging import get_logger

logger = get_logger(__name__)

ZERO_PRINCIPAL = "0x" + "0" * 40
MAX_EXPIRY_DURATION = 365 * 24 * 60 * 60  # seconds
_STATE_ID = 1


def is_encodable(text: str) -> bool:
    """Return True if *text* survives UTF-8 encoding (no lone surrogates)."""
    try:
        text.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def is_valid_principal(principal: object) -> bool:
    """Return True if *principal* can name a party in the registry."""
    return (
        isinstance(principal, str)
        and principal != ""
        and principal == principal.strip()
        and principal.lower() != ZERO_PRINCIPAL
        and is_encodable(principal)
    )


# ---------------------------------------------------------------------------
# Read models
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class IdentityInfo:
    """Public view of an identity.  Plaintext name and email are withheld."""

    is_verified: bool
    is_active: bool
    registration_time: int
    identity_hash: str


@dataclass(frozen=True)
class AccessRequestView:
    request_id: int
    requester: str
    target: str
    resource_id: str
    is_approved: bool
    is_processed: bool
    request_time: int
    expiry_time: int
    is_expired: bool


@dataclass(frozen=True)
class RegistryStats:
    owner: str
    total_users: int
    total_access_requests: int


_UNREGISTERED = IdentityInfo(
    is_verified=False,
    is_active=False,
    registration_time=0,
    identity_hash="",
)


class _Transaction:
    """State handed to an operation body by :meth:`AccessRegistry._transaction`."""

    def __init__(self, db: Session, now: int) -> None:
        self.db = db
        self.now = now
        self.emitted: list[EventView] = []


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class AccessRegistry:
    """Authoritative store of identities, verifier roles and access requests.

    Parameters
    ----------
    session_factory:
        Callable returning a new SQLAlchemy ``Session``.  Defaults to the
        application's ``SessionLocal``.
    clock:
        Callable returning the current time as integer epoch seconds.  It is
        wrapped in a :class:`MonotonicClock` unless it already is one.
    event_log:
        Event writer / subscriber hub.  A fresh one is created if omitted.
    """

    def __init__(
        self,
        session_factory: sessionmaker | Callable[[], Session] = SessionLocal,
        clock: Callable[[], int] | None = None,
        event_log: EventLog | None = None,
    ) -> None:
        self._session_factory = session_factory
        if clock is None:
            clock = MonotonicClock()
        elif not isinstance(clock, MonotonicClock):
            clock = MonotonicClock(clock)
        self._clock = clock
        self.events = event_log if event_log is not None else EventLog()
        self._lock = threading.RLock()

    # -- plumbing -------------------------------------------------------------

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[_Transaction]:
        with self._lock:
            db = self._session_factory()
            txn = _Transaction(db, self._clock())
            try:
                yield txn
                db.commit()
            except errors.RegistryError as exc:
                db.rollback()
                logger.info("%s rejected: %s (%s)", operation, exc.code, exc.message)
                raise
            except Exception:
                db.rollback()
                logger.exception("%s failed unexpectedly", operation)
                raise
            finally:
                db.close()
            # Still under the lock so subscribers see events in sequence order.
            self.events.dispatch(txn.emitted)

    @contextmanager
    def _read(self) -> Iterator[Session]:
        with self._lock:
            db = self._session_factory()
            try:
                yield db
            finally:
                db.rollback()
                db.close()

    @staticmethod
    def _state(db: Session, for_update: bool = False) -> RegistryState:
        state = db.get(RegistryState, _STATE_ID, with_for_update=for_update)
        if state is None:
            raise errors.NotDeployed()
        return state

    def _emit(
        self,
        txn: _Transaction,
        state: RegistryState,
        name: str,
        payload: dict,
    ) -> None:
        txn.emitted.append(self.events.record(txn.db, state, name, payload, txn.now))

    @staticmethod
    def _is_verifier(db: Session, state: RegistryState, principal: str) -> bool:
        if principal == state.owner:
            return True
        if not is_valid_principal(principal):
            return False
        row = db.get(Verifier, principal)
        return bool(row is not None and row.is_verifier)

    def now(self) -> int:
        """Current registry time in epoch seconds."""
        return self._clock()

    # -- deployment -----------------------------------------------------------

    def deploy(self, owner: str) -> RegistryStats:
        """Create the registry state with *owner* as its permanent owner."""
        with self._transaction("deploy") as txn:
            if not is_valid_principal(owner):
                raise errors.InvalidAddress(owner)
            existing = txn.db.get(RegistryState, _STATE_ID)
            if existing is not None:
                raise errors.AlreadyDeployed(existing.owner)

            state = RegistryState(
                id=_STATE_ID,
                owner=owner,
                total_users=0,
                total_access_requests=0,
                next_event_sequence=0,
                deployed_at=txn.now,
            )
            txn.db.add(state)
            self._emit(txn, state, events.REGISTRY_DEPLOYED, {
                "owner": owner,
                "timestamp": txn.now,
            })
            logger.info("Registry deployed with owner %s", owner)
        return RegistryStats(owner=owner, total_users=0, total_access_requests=0)

    def is_deployed(self) -> bool:
        with self._read() as db:
            return db.get(RegistryState, _STATE_ID) is not None

    # -- identities -----------------------------------------------------------

    def register_identity(self, caller: str, name: str, email: str) -> IdentityInfo:
        """Bind a new, unverified identity to *caller*.

        Not idempotent: a second call for the same principal fails with
        ``AlreadyRegistered`` whatever the arguments.
        """
        with self._transaction("register_identity") as txn:
            state = self._state(txn.db, for_update=True)
            if not is_valid_principal(caller):
                raise errors.InvalidAddress(caller)
            if not name:
                raise errors.EmptyField("name")
            if not email:
                raise errors.EmptyField("email")
            for field_name, value in (("name", name), ("email", email)):
                if not is_encodable(value):
                    raise errors.InvalidText(field_name)
            existing = txn.db.get(Identity, caller)
            if existing is not None and existing.name:
                raise errors.AlreadyRegistered(caller)

            identity = Identity(
                principal=caller,
                name=name,
                email=email,
                is_verified=False,
                is_active=True,
                registration_time=txn.now,
                identity_hash=identity_hash(name, email, caller, txn.now),
            )
            txn.db.add(identity)
            state.total_users += 1

            self._emit(txn, state, events.IDENTITY_REGISTERED, {
                "user": caller,
                "name": name,
                "timestamp": txn.now,
            })
            logger.info("Identity registered for %s", caller)
            info = IdentityInfo(
                is_verified=False,
                is_active=True,
                registration_time=txn.now,
                identity_hash=identity.identity_hash,
            )
        return info

    def verify_identity(self, caller: str, target: str) -> IdentityInfo:
        """Mark *target*'s identity verified.  Caller must be owner or verifier."""
        with self._transaction("verify_identity") as txn:
            state = self._state(txn.db, for_update=True)
            if not self._is_verifier(txn.db, state, caller):
                raise errors.Unauthorized(f"{caller} is not a verifier")
            if not is_valid_principal(target):
                raise errors.InvalidAddress(target)
            identity = txn.db.get(Identity, target)
            if identity is None or not identity.name:
                raise errors.NotRegistered(target)
            if identity.is_verified:
                raise errors.AlreadyVerified(target)

            identity.is_verified = True

            self._emit(txn, state, events.IDENTITY_VERIFIED, {
                "user": target,
                "verifier": caller,
                "timestamp": txn.now,
            })
            logger.info("Identity of %s verified by %s", target, caller)
            info = IdentityInfo(
                is_verified=True,
                is_active=identity.is_active,
                registration_time=identity.registration_time,
                identity_hash=identity.identity_hash,
            )
        return info

    def set_verifier(self, caller: str, principal: str, status: bool) -> None:
        """Grant or withdraw the verifier role (owner only)."""
        with self._transaction("set_verifier") as txn:
            state = self._state(txn.db, for_update=True)
            if caller != state.owner:
                raise errors.Unauthorized(f"{caller} is not the registry owner")
            if not is_valid_principal(principal):
                raise errors.InvalidAddress(principal)

            row = txn.db.get(Verifier, principal)
            if row is None:
                row = Verifier(principal=principal)
                txn.db.add(row)
            row.is_verifier = bool(status)
            row.updated_at = txn.now

            self._emit(txn, state, events.VERIFIER_UPDATED, {
                "verifier": principal,
                "status": bool(status),
                "updated_by": caller,
                "timestamp": txn.now,
            })
            logger.info("Verifier role of %s set to %s", principal, bool(status))

    # -- access requests ------------------------------------------------------

    def request_access(
        self,
        caller: str,
        target: str,
        resource_id: str,
        expiry_duration: int,
    ) -> int:
        """Open an access request adjudicated by *target*; return its id.

        *target* is trusted to be the right adjudicator for *resource_id*;
        nothing ties it to an owner of the resource.
        """
        with self._transaction("request_access") as txn:
            state = self._state(txn.db, for_update=True)
            identity = txn.db.get(Identity, caller) if is_valid_principal(caller) else None
            if identity is None or not identity.is_active:
                raise errors.IdentityInactive(caller)
            if not is_valid_principal(target):
                raise errors.InvalidAddress(target)
            if not resource_id:
                raise errors.EmptyResourceId()
            if not is_encodable(resource_id):
                raise errors.InvalidText("resource_id")
            if not identity.is_verified:
                raise errors.NotVerified(caller)
            if (
                isinstance(expiry_duration, bool)
                or not isinstance(expiry_duration, int)
                or not 0 < expiry_duration <= MAX_EXPIRY_DURATION
            ):
                raise errors.InvalidDuration(expiry_duration, MAX_EXPIRY_DURATION)

            request_id = state.total_access_requests
            txn.db.add(
                AccessRequest(
                    id=request_id,
                    requester=caller,
                    target=target,
                    resource_id=resource_id,
                    is_approved=False,
                    is_processed=False,
                    request_time=txn.now,
                    expiry_time=txn.now + expiry_duration,
                )
            )
            state.total_access_requests = request_id + 1

            self._emit(txn, state, events.ACCESS_REQUESTED, {
                "request_id": request_id,
                "requester": caller,
                "target": target,
                "resource_id": resource_id,
            })
            logger.info(
                "Access request %d: %s -> %s for %r", request_id, caller, target, resource_id
            )
        return request_id

    def process_access_request(self, caller: str, request_id: int, approve: bool) -> AccessRequestView:
        """Approve or deny a pending request.  Only its target may decide, once."""
        with self._transaction("process_access_request") as txn:
            state = self._state(txn.db, for_update=True)
            if not 0 <= request_id < state.total_access_requests:
                raise errors.InvalidRequestId(request_id)
            request = txn.db.get(AccessRequest, request_id)
            if request is None:
                raise errors.InvalidRequestId(request_id)
            if caller != request.target:
                raise errors.Unauthorized(f"{caller} is not the target of request {request_id}")
            if request.is_processed:
                raise errors.AlreadyProcessed(request_id)
            if txn.now >= request.expiry_time:
                raise errors.Expired(request_id, request.expiry_time)

            request.is_approved = bool(approve)
            request.is_processed = True

            name = events.ACCESS_GRANTED if approve else events.ACCESS_DENIED
            self._emit(txn, state, name, {
                "request_id": request_id,
                "approver": caller,
                "timestamp": txn.now,
            })
            logger.info(
                "Access request %d %s by %s",
                request_id,
                "granted" if approve else "denied",
                caller,
            )
            view = self._view(request, txn.now)
        return view

    # -- queries --------------------------------------------------------------

    @staticmethod
    def _view(request: AccessRequest, now: int) -> AccessRequestView:
        return AccessRequestView(
            request_id=request.id,
            requester=request.requester,
            target=request.target,
            resource_id=request.resource_id,
            is_approved=request.is_approved,
            is_processed=request.is_processed,
            request_time=request.request_time,
            expiry_time=request.expiry_time,
            is_expired=now >= request.expiry_time,
        )

    def has_valid_access(self, user: str, request_id: int) -> bool:
        """True iff *user*'s request was approved and has not expired yet."""
        with self._read() as db:
            state = db.get(RegistryState, _STATE_ID)
            if state is None or not 0 <= request_id < state.total_access_requests:
                return False
            request = db.get(AccessRequest, request_id)
            if request is None:
                return False
            return (
                request.requester == user
                and request.is_processed
                and request.is_approved
                and self._clock() < request.expiry_time
            )

    def get_identity_info(self, user: str) -> IdentityInfo:
        """Return the public identity record of *user* (zero record if none)."""
        if not is_valid_principal(user):
            return _UNREGISTERED
        with self._read() as db:
            identity = db.get(Identity, user)
            if identity is None:
                return _UNREGISTERED
            return IdentityInfo(
                is_verified=identity.is_verified,
                is_active=identity.is_active,
                registration_time=identity.registration_time,
                identity_hash=identity.identity_hash,
            )

    def get_user_access_requests(self, user: str) -> list[int]:
        """Ids of the requests *user* opened, in creation order."""
        if not is_valid_principal(user):
            return []
        with self._read() as db:
            rows = (
                db.query(AccessRequest.id)
                .filter(AccessRequest.requester == user)
                .order_by(AccessRequest.id)
                .all()
            )
            return [row.id for row in rows]

    def get_access_request(self, request_id: int) -> AccessRequestView:
        with self._read() as db:
            state = db.get(RegistryState, _STATE_ID)
            if state is None or not 0 <= request_id < state.total_access_requests:
                raise errors.InvalidRequestId(request_id)
            request = db.get(AccessRequest, request_id)
            if request is None:
                raise errors.InvalidRequestId(request_id)
            return self._view(request, self._clock())

    def is_verifier(self, principal: str) -> bool:
        with self._read() as db:
            state = db.get(RegistryState, _STATE_ID)
            if state is not None and principal == state.owner:
                return True
            if not is_valid_principal(principal):
                return False
            row = db.get(Verifier, principal)
            return bool(row is not None and row.is_verifier)

    def get_owner(self) -> str:
        with self._read() as db:
            return self._state(db).owner

    def get_stats(self) -> RegistryStats:
        with self._read() as db:
            state = self._state(db)
            return RegistryStats(
                owner=state.owner,
                total_users=state.total_users,
                total_access_requests=state.total_access_requests,
            )

    def list_events(self, after: int | None = None, limit: int = 100) -> list[EventView]:
        """Committed events in sequence order, for log consumers."""
        with self._read() as db:
            return self.events.list_events(db, after=after, limit=limit)
