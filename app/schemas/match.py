from pydantic import Field, field_validator, model_validator
from typing import List, Literal, Optional
from datetime import datetime

from app.models.court import CourtType
from app.models.match import MatchKind, MatchStatus
from app.schemas.common import CamelModel, strip_timezone


class MatchCreate(CamelModel):
    title: str = Field(..., min_length=2)
    date: datetime  # ISO, inicio del partido
    type: CourtType = CourtType.FUT7
    court_id: int
    max_players: int = Field(14, ge=2, le=40)
    min_players: int = Field(0, ge=0, le=40)
    price_per_player: int = Field(30, ge=0, le=9999)
    kind: MatchKind = MatchKind.BOOKING

    @field_validator("date")
    @classmethod
    def naive_date(cls, value: datetime) -> datetime:
        return strip_timezone(value)

    @model_validator(mode="after")
    def check_player_limits(self):
        if self.min_players > self.max_players:
            raise ValueError("minPlayers cannot be greater than maxPlayers")
        return self


class PresenceResponse(CamelModel):
    user_id: int
    created_at: datetime


class MatchResponse(CamelModel):
    id: int
    title: str
    date: datetime
    type: CourtType
    kind: MatchKind
    status: MatchStatus
    court_id: int
    organizer_id: int
    max_players: int
    min_players: int
    price_per_player: int
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    canceled_at: Optional[datetime] = None
    created_at: datetime
    presence_count: int = 0
    presences: List[PresenceResponse] = []


class StatEvent(CamelModel):
    user_id: int
    type: Literal["goal", "assist"]
    mode: Literal["official", "unofficial"]
    delta: Literal[-1, 1]


class PlayerStatResponse(CamelModel):
    match_id: int
    user_id: int
    goals_official: int = 0
    assists_official: int = 0
    goals_unofficial: int = 0
    assists_unofficial: int = 0
