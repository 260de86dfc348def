"""Pydantic v2 schemas for registry-wide endpoints."""

from typing import Any

from pydantic import BaseModel, ConfigDict


class RegistryStatsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    owner: str
    total_users: int
    total_access_requests: int


class EventOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    sequence: int
    name: str
    payload: dict[str, Any]
    emitted_at: int
