from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from spin_league.api.participants.models import ParticipantResponse

class ScoreRequest(BaseModel):
    winner_id: int = Field(..., ge=0)  # player who took the round
    win_type: str  # Spin, Over, Burst, Out, Xtreme

class ManualScoreRequest(BaseModel):
    score_p1: int = Field(..., ge=0)
    score_p2: int = Field(..., ge=0)

class MatchResponse(BaseModel):
    id: int
    tournament_id: int
    phase: str
    round: int
    player1_id: Optional[int] = None
    player2_id: Optional[int] = None
    score_p1: int = 0
    score_p2: int = 0
    winner_id: Optional[int] = None
    next_match_id: Optional[int] = None
    next_match_slot: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)

class MatchDetailResponse(MatchResponse):
    player1: Optional[ParticipantResponse] = None
    player2: Optional[ParticipantResponse] = None
