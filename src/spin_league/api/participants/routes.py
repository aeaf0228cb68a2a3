from fastapi import APIRouter, Depends, Query, status
from typing import List
from spin_league.api.dependencies import get_tournament_manager
from spin_league.api.participants.models import (
    ParticipantCreate, ParticipantResponse, LeagueStandingResponse
)
from spin_league.competition import TournamentManager

router = APIRouter()

@router.get("/participants", response_model=List[ParticipantResponse])
async def list_participants(
    include_archived: bool = Query(False),
    manager: TournamentManager = Depends(get_tournament_manager)
):
    """List registered participants"""
    return await manager.list_participants(include_archived=include_archived)

@router.post("/participants", response_model=ParticipantResponse, status_code=status.HTTP_201_CREATED)
async def create_participant(
    participant_data: ParticipantCreate,
    manager: TournamentManager = Depends(get_tournament_manager)
):
    """Register a new participant"""
    return await manager.create_participant(participant_data.nickname, participant_data.avatar)

@router.post("/participants/{participant_id}/archive", response_model=ParticipantResponse)
async def archive_participant(
    participant_id: int,
    manager: TournamentManager = Depends(get_tournament_manager)
):
    return await manager.archive_participant(participant_id)

@router.get("/stats", response_model=List[LeagueStandingResponse])
async def league_standings(manager: TournamentManager = Depends(get_tournament_manager)):
    """League table across all tournaments"""
    return await manager.league_standings()
