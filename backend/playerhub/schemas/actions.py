from pydantic import BaseModel, Field


class ActionRevocationRead(BaseModel):
    timestamp: int | None = None
    author: str | None = None


class ActionRead(BaseModel):
    id: str
    type: str
    author: str
    reason: str
    timestamp: int
    expiration: int | None = None
    identifiers: list[str]
    revocation: ActionRevocationRead


class ActionCreateRequest(BaseModel):
    type: str = Field(pattern=r"^(ban|warn|whitelist)$")
    identifiers: list[str] | None = Field(default=None, max_length=32)
    player_id: int | None = None
    author: str = Field(min_length=1, max_length=60)
    reason: str = Field(default="", max_length=500)
    expiration: int | None = None


class ActionCreated(BaseModel):
    id: str


class ActionRevokeRequest(BaseModel):
    author: str = Field(min_length=1, max_length=60)
