"""Registry-wide read endpoints: counters and the event log."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from accessreg.auth.deps import get_registry
from accessreg.core.events import MAX_SEQUENCE
from accessreg.core.registry import AccessRegistry
from accessreg.registry.schemas import EventOut, RegistryStatsOut

router = APIRouter(prefix="/api/v1/registry", tags=["registry"])


@router.get("", response_model=RegistryStatsOut)
def get_stats(registry: AccessRegistry = Depends(get_registry)) -> RegistryStatsOut:
    return RegistryStatsOut.model_validate(registry.get_stats())


@router.get("/events", response_model=list[EventOut])
def list_events(
    after: int | None = Query(default=None, ge=-1, le=MAX_SEQUENCE),
    limit: int = Query(default=100, ge=1, le=1000),
    registry: AccessRegistry = Depends(get_registry),
) -> list[EventOut]:
    """Committed events in sequence order.

    Consumers poll with ``after`` set to the last sequence they processed.
    """
    return [EventOut.model_validate(e) for e in registry.list_events(after=after, limit=limit)]
