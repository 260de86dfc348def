"""Pydantic v2 schemas for identity endpoints."""

from pydantic import BaseModel


class IdentityRegister(BaseModel):
    name: str
    email: str


class IdentityInfoOut(BaseModel):
    principal: str
    is_verified: bool
    is_active: bool
    registration_time: int
    identity_hash: str
