"""Access request endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from accessreg.access_requests.schemas import (
    AccessDecision,
    AccessRequestCreate,
    AccessRequestCreated,
    AccessRequestOut,
    AccessValidityOut,
)
from accessreg.auth.deps import get_current_principal, get_registry
from accessreg.core.registry import AccessRegistry

router = APIRouter(prefix="/api/v1/access-requests", tags=["access-requests"])


@router.post("/", response_model=AccessRequestCreated, status_code=status.HTTP_201_CREATED)
def request_access(
    body: AccessRequestCreate,
    caller: str = Depends(get_current_principal),
    registry: AccessRegistry = Depends(get_registry),
) -> AccessRequestCreated:
    """Open a time-limited request for *resource_id*, decided by *target*.

    The caller must hold a verified, active identity.
    """
    request_id = registry.request_access(
        caller,
        body.target,
        body.resource_id,
        body.expiry_duration,
    )
    return AccessRequestCreated(request_id=request_id)


@router.get("/{request_id}", response_model=AccessRequestOut)
def get_access_request(
    request_id: int,
    registry: AccessRegistry = Depends(get_registry),
) -> AccessRequestOut:
    return AccessRequestOut.model_validate(registry.get_access_request(request_id))


@router.post("/{request_id}/decision", response_model=AccessRequestOut)
def process_access_request(
    request_id: int,
    body: AccessDecision,
    caller: str = Depends(get_current_principal),
    registry: AccessRegistry = Depends(get_registry),
) -> AccessRequestOut:
    """Approve or deny a pending request.  Only the named target may decide."""
    view = registry.process_access_request(caller, request_id, body.approve)
    return AccessRequestOut.model_validate(view)


@router.get("/{request_id}/validity", response_model=AccessValidityOut)
def check_access(
    request_id: int,
    user: str = Query(...),
    registry: AccessRegistry = Depends(get_registry),
) -> AccessValidityOut:
    valid = registry.has_valid_access(user, request_id)
    return AccessValidityOut(request_id=request_id, user=user, valid=valid)
