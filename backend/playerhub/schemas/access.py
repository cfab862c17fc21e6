from pydantic import BaseModel, Field


class AccessCheckRequest(BaseModel):
    identifiers: list[str] = Field(default_factory=list, max_length=32)
    name: str = Field(max_length=120)


class AccessCheckRead(BaseModel):
    allow: bool
    reason: str | None = None
