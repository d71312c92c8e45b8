"""Data contracts for the token endpoint."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class CreateTokenRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    identity: str = Field(..., min_length=1, description="Identity of the participant joining the room")
    room_name: str = Field(..., min_length=1, alias="roomName", description="Room the token is scoped to")


class CreateTokenResponse(BaseModel):
    token: str = Field(..., description="Signed video access token")
