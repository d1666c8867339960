"""HTTP request and response models."""
from typing import Any

from pydantic import BaseModel, Field

from randkit.config import settings
from randkit.logic.models import DrawOp


# === Request Models ===


class ChoiceRequest(BaseModel):
    """POST /random/choice request body."""

    items: list[Any] = Field(..., description="Collection to choose from")
    count: int = Field(default=1)


class CreateStreamRequest(BaseModel):
    """POST /streams request body.

    Omitting `seeds` seeds the stream from the current time; an explicit
    empty list is rejected with NO_SEEDS.
    """

    seeds: list[str | int | float | bool] | None = Field(default=None)


class DrawRequest(BaseModel):
    """POST /streams/{streamId}/draw request body."""

    clientRequestId: str = Field(..., description="Idempotency key")
    op: DrawOp = Field(default=DrawOp.FRACTION)
    count: int = Field(default=1)
    length: int | None = Field(default=None, description="Characters for hex/id/secret")
    items: list[Any] | None = Field(default=None, description="Collection for choice")


# === Response Models ===


class InfoResponse(BaseModel):
    """GET /info response."""

    protocolVersion: str = settings.protocol_version
    provider: str
    isSecure: bool
    insecureProvider: str | None = None
    aleaVersion: str
    mashVersion: str
    configHash: str


class ValuesResponse(BaseModel):
    """One-shot draw response."""

    protocolVersion: str = settings.protocol_version
    provider: str
    isSecure: bool
    values: list[Any] = Field(default_factory=list)


class StreamResponse(BaseModel):
    """Stream description returned on create and GET."""

    protocolVersion: str = settings.protocol_version
    streamId: str
    seeds: list[str]
    position: int
    configHash: str


class DrawResponse(BaseModel):
    """POST /streams/{streamId}/draw response."""

    protocolVersion: str = settings.protocol_version
    streamId: str
    op: DrawOp
    values: list[Any] = Field(default_factory=list)
    position: int
    configHash: str
