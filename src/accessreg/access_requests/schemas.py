"""Pydantic v2 schemas for access request endpoints."""

from pydantic import BaseModel, ConfigDict


class AccessRequestCreate(BaseModel):
    target: str
    resource_id: str
    expiry_duration: int


class AccessRequestCreated(BaseModel):
    request_id: int


class AccessDecision(BaseModel):
    approve: bool


class AccessRequestOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    request_id: int
    requester: str
    target: str
    resource_id: str
    is_approved: bool
    is_processed: bool
    request_time: int
    expiry_time: int
    is_expired: bool


class AccessValidityOut(BaseModel):
    request_id: int
    user: str
    valid: bool
