"""Failure taxonomy for registry operations.

Every registry operation checks all of its preconditions before touching
state and raises exactly one of the exceptions below on the first violation.

Hierarchy::

    RegistryError
      validation      EmptyField, InvalidText, InvalidAddress, EmptyResourceId,
                      InvalidDuration
      conflict        AlreadyRegistered, AlreadyVerified, AlreadyProcessed,
                      AlreadyDeployed, IdentityInactive, NotVerified
      authorization   Unauthorized
      temporal        Expired
      not_found       NotRegistered, InvalidRequestId, NotDeployed
"""

from __future__ import annotations

VALIDATION = "validation"
CONFLICT = "conflict"
AUTHORIZATION = "authorization"
TEMPORAL = "temporal"
NOT_FOUND = "not_found"


class RegistryError(Exception):
    """Base class for all registry failures.  Never raised directly.

    Attributes:
        code:      Stable machine-readable name of the failure (the class name).
        category:  One of the module-level category constants.
        message:   Human-readable description, always non-empty.
    """

    category: str = ""

    def __init__(self, message: str) -> None:
        if not message:
            raise ValueError("RegistryError: message must be a non-empty string")
        super().__init__(message)
        self.message = message

    @property
    def code(self) -> str:
        return type(self).__name__

    def __repr__(self) -> str:
        return f"{self.code}({self.message!r})"


# -- validation ---------------------------------------------------------------

class EmptyField(RegistryError):
    category = VALIDATION

    def __init__(self, field_name: str) -> None:
        super().__init__(f"{field_name} must not be empty")
        self.field_name = field_name


class InvalidAddress(RegistryError):
    category = VALIDATION

    def __init__(self, principal: str) -> None:
        super().__init__(f"invalid principal: {principal!r}")
        self.principal = principal


class InvalidText(RegistryError):
    category = VALIDATION

    def __init__(self, field_name: str) -> None:
        super().__init__(f"{field_name} is not valid UTF-8 text")
        self.field_name = field_name


class EmptyResourceId(RegistryError):
    category = VALIDATION

    def __init__(self) -> None:
        super().__init__("resource_id must not be empty")


class InvalidDuration(RegistryError):
    category = VALIDATION

    def __init__(self, duration: int, maximum: int) -> None:
        super().__init__(
            f"expiry duration must be in (0, {maximum}] seconds, got {duration}"
        )
        self.duration = duration


# -- conflict -----------------------------------------------------------------

class AlreadyRegistered(RegistryError):
    category = CONFLICT

    def __init__(self, principal: str) -> None:
        super().__init__(f"identity already registered for {principal}")


class AlreadyVerified(RegistryError):
    category = CONFLICT

    def __init__(self, principal: str) -> None:
        super().__init__(f"identity of {principal} is already verified")


class AlreadyProcessed(RegistryError):
    category = CONFLICT

    def __init__(self, request_id: int) -> None:
        super().__init__(f"access request {request_id} was already processed")


class AlreadyDeployed(RegistryError):
    category = CONFLICT

    def __init__(self, owner: str) -> None:
        super().__init__(f"registry is already deployed with owner {owner}")


class IdentityInactive(RegistryError):
    category = CONFLICT

    def __init__(self, principal: str) -> None:
        super().__init__(f"{principal} has no active identity")


class NotVerified(RegistryError):
    category = CONFLICT

    def __init__(self, principal: str) -> None:
        super().__init__(f"identity of {principal} is not verified")


# -- authorization ------------------------------------------------------------

class Unauthorized(RegistryError):
    category = AUTHORIZATION


# -- temporal -----------------------------------------------------------------

class Expired(RegistryError):
    category = TEMPORAL

    def __init__(self, request_id: int, expiry_time: int) -> None:
        super().__init__(f"access request {request_id} expired at {expiry_time}")


# -- not found ----------------------------------------------------------------

class NotRegistered(RegistryError):
    category = NOT_FOUND

    def __init__(self, principal: str) -> None:
        super().__init__(f"no identity registered for {principal}")


class InvalidRequestId(RegistryError):
    category = NOT_FOUND

    def __init__(self, request_id: int) -> None:
        super().__init__(f"unknown access request id {request_id}")


class NotDeployed(RegistryError):
    category = NOT_FOUND

    def __init__(self) -> None:
        super().__init__("registry has not been deployed")
