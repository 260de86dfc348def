"""Append-only event log for registry transitions.

Events are written in the same transaction as the state change that produced
them, so a rolled-back operation leaves no trace in the log.  In-process
subscribers are notified only after the transaction has committed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from sqlalchemy.orm import Session

from accessreg.core.models import RegistryEvent, RegistryState
from accessreg.util.logging import get_logger

logger = get_logger(__name__)

# Largest value an INTEGER sequence column can hold.
MAX_SEQUENCE = 2**63 - 1

REGISTRY_DEPLOYED = "RegistryDeployed"
IDENTITY_REGISTERED = "IdentityRegistered"
IDENTITY_VERIFIED = "IdentityVerified"
VERIFIER_UPDATED = "VerifierUpdated"
ACCESS_REQUESTED = "AccessRequested"
ACCESS_GRANTED = "AccessGranted"
ACCESS_DENIED = "AccessDenied"


@dataclass(frozen=True)
class EventView:
    sequence: int
    name: str
    payload: dict[str, Any] = field(default_factory=dict)
    emitted_at: int = 0

    @classmethod
    def from_row(cls, row: RegistryEvent) -> "EventView":
        return cls(
            sequence=row.sequence,
            name=row.name,
            payload=dict(row.payload or {}),
            emitted_at=row.emitted_at,
        )


Subscriber = Callable[[EventView], None]


class EventLog:
    """Writes events to ``registry_events`` and fans them out to subscribers."""

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register *callback* for every committed event.

        Returns a function that removes the subscription again.
        """
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    def record(
        self,
        db: Session,
        state: RegistryState,
        name: str,
        payload: dict[str, Any],
        timestamp: int,
    ) -> EventView:
        """Append an event row inside the caller's transaction.

        The sequence number is taken from the registry state row, which the
        caller already holds under the registry lock.
        """
        sequence = state.next_event_sequence
        state.next_event_sequence = sequence + 1
        row = RegistryEvent(
            sequence=sequence,
            name=name,
            payload=payload,
            emitted_at=timestamp,
        )
        db.add(row)
        return EventView(sequence=sequence, name=name, payload=dict(payload), emitted_at=timestamp)

    def dispatch(self, events: list[EventView]) -> None:
        """Deliver committed *events* to every subscriber, in order."""
        for event in events:
            logger.debug("event #%d %s %s", event.sequence, event.name, event.payload)
            for callback in list(self._subscribers):
                try:
                    callback(event)
                except Exception:
                    # The transition is already committed.
                    logger.exception(
                        "Event subscriber %r failed on event #%d", callback, event.sequence
                    )

    def list_events(
        self,
        db: Session,
        after: int | None = None,
        limit: int = 100,
    ) -> list[EventView]:
        """Return events in sequence order, optionally only those after *after*."""
        if after is not None and after >= MAX_SEQUENCE:
            return []
        query = db.query(RegistryEvent)
        if after is not None:
            query = query.filter(RegistryEvent.sequence > after)
        rows = query.order_by(RegistryEvent.sequence).limit(limit).all()
        return [EventView.from_row(row) for row in rows]
