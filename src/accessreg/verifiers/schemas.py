"""Pydantic v2 schemas for verifier role endpoints."""

from pydantic import BaseModel


class VerifierUpdate(BaseModel):
    status: bool


class VerifierOut(BaseModel):
    principal: str
    is_verifier: bool
