from pydantic import BaseModel, Field


class PlayerNotesRead(BaseModel):
    text: str = ""
    last_admin: str | None = None
    ts_last_edit: int | None = None


class PlayerRead(BaseModel):
    license: str
    name: str
    play_time: int
    ts_joined: int
    ts_last_connection: int
    notes: PlayerNotesRead


class ActivePlayerRead(BaseModel):
    license: str
    id: int
    name: str
    ping: int | float | None = None
    identifiers: list[str]


class PlayerNoteUpdateRequest(BaseModel):
    note: str = Field(max_length=2000)
    author: str = Field(min_length=1, max_length=60)
