from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class HeartbeatPlayer(BaseModel):
    model_config = ConfigDict(strict=True, extra="ignore")

    id: int
    name: str
    identifiers: list[Any] = Field(min_length=1)
    ping: int | float | None = None


class HeartbeatSubmitRequest(BaseModel):
    players: list[Any]


class HeartbeatAccepted(BaseModel):
    queued: bool
    queue_size: int
