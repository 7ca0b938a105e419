from __future__ import annotations

from pydantic import BaseModel


class TriggerModel(BaseModel):
    word: str


class SetUrlRequest(BaseModel):
    url: str | None = None


class StartRequest(BaseModel):
    url: str | None = None
    triggers: list[TriggerModel] | None = None


class StatusResponse(BaseModel):
    running: bool
    url: str
