from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime

class ParticipantCreate(BaseModel):
    nickname: str = Field(..., min_length=1, max_length=255)
    avatar: str = Field(default="", max_length=1024)

class ParticipantResponse(BaseModel):
    id: int
    nickname: str
    avatar: str = ""
    is_archived: bool = False
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class LeagueStandingResponse(BaseModel):
    participant_id: int
    nickname: str
    total_wins: int = 0
    total_points: int = 0
    total_league_points: int = 0
    total_spin: int = 0
    total_burst: int = 0
    total_over: int = 0
    total_xtreme: int = 0
    tournaments_played: int = 0
