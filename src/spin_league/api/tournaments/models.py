from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime
from spin_league.api.matches.models import MatchDetailResponse
from spin_league.api.participants.models import ParticipantResponse
from spin_league.models import TournamentStatus

class TournamentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    date: Optional[datetime] = None

class JoinRequest(BaseModel):
    participant_id: int = Field(..., ge=0)

class TournamentResponse(BaseModel):
    id: int
    name: str
    date: datetime
    status: TournamentStatus
    is_archived: bool = False

    model_config = ConfigDict(from_attributes=True)

class TournamentParticipantResponse(BaseModel):
    id: int
    tournament_id: int
    participant_id: int
    group_label: str = ""
    wins: int = 0
    losses: int = 0
    draws: int = 0
    points: int = 0
    spin_finishes: int = 0
    burst_finishes: int = 0
    over_finishes: int = 0
    xtreme_finishes: int = 0
    league_points: int = 0

    model_config = ConfigDict(from_attributes=True)

class TournamentEntryResponse(TournamentParticipantResponse):
    participant: ParticipantResponse

class TournamentDetailResponse(TournamentResponse):
    participants: List[TournamentEntryResponse] = []
    matches: List[MatchDetailResponse] = []

class StatusResponse(BaseModel):
    status: str
