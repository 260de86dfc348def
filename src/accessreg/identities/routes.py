"""Identity endpoints: registration, verification and public lookups.

Name and email are accepted at registration but never returned.
"""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, status

from accessreg.auth.deps import get_current_principal, get_registry
from accessreg.core.registry import AccessRegistry, IdentityInfo
from accessreg.identities.schemas import IdentityInfoOut, IdentityRegister

router = APIRouter(prefix="/api/v1/identities", tags=["identities"])


def _out(principal: str, info: IdentityInfo) -> IdentityInfoOut:
    return IdentityInfoOut(principal=principal, **asdict(info))


@router.post("/", response_model=IdentityInfoOut, status_code=status.HTTP_201_CREATED)
def register_identity(
    body: IdentityRegister,
    caller: str = Depends(get_current_principal),
    registry: AccessRegistry = Depends(get_registry),
) -> IdentityInfoOut:
    """Register the caller's identity.  Fails if one already exists."""
    info = registry.register_identity(caller, body.name, body.email)
    return _out(caller, info)


@router.get("/{principal}", response_model=IdentityInfoOut)
def get_identity_info(
    principal: str,
    registry: AccessRegistry = Depends(get_registry),
) -> IdentityInfoOut:
    """Public identity record; unregistered principals get the zero record."""
    return _out(principal, registry.get_identity_info(principal))


@router.post("/{principal}/verify", response_model=IdentityInfoOut)
def verify_identity(
    principal: str,
    caller: str = Depends(get_current_principal),
    registry: AccessRegistry = Depends(get_registry),
) -> IdentityInfoOut:
    """Mark an identity verified (owner or verifier only)."""
    info = registry.verify_identity(caller, principal)
    return _out(principal, info)


@router.get("/{principal}/access-requests", response_model=list[int])
def list_access_requests(
    principal: str,
    registry: AccessRegistry = Depends(get_registry),
) -> list[int]:
    """Ids of the requests opened by *principal*, oldest first."""
    return registry.get_user_access_requests(principal)
