"""Verifier role endpoints (owner managed)."""

from fastapi import APIRouter, Depends

from accessreg.auth.deps import get_current_principal, get_registry
from accessreg.core.registry import AccessRegistry
from accessreg.verifiers.schemas import VerifierOut, VerifierUpdate

router = APIRouter(prefix="/api/v1/verifiers", tags=["verifiers"])


@router.get("/{principal}", response_model=VerifierOut)
def get_verifier(
    principal: str,
    registry: AccessRegistry = Depends(get_registry),
) -> VerifierOut:
    """Whether *principal* may verify identities (the owner always may)."""
    return VerifierOut(principal=principal, is_verifier=registry.is_verifier(principal))


@router.put("/{principal}", response_model=VerifierOut)
def set_verifier(
    principal: str,
    body: VerifierUpdate,
    caller: str = Depends(get_current_principal),
    registry: AccessRegistry = Depends(get_registry),
) -> VerifierOut:
    """Grant or withdraw the verifier role (owner only)."""
    registry.set_verifier(caller, principal, body.status)
    return VerifierOut(principal=principal, is_verifier=registry.is_verifier(principal))
