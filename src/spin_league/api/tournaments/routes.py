from fastapi import APIRouter, Depends, Query, status
from typing import List
from spin_league.api.dependencies import get_phase_controller, get_tournament_manager
from spin_league.api.tournaments.models import (
    TournamentCreate, TournamentResponse, TournamentDetailResponse,
    TournamentParticipantResponse, JoinRequest, StatusResponse
)
from spin_league.competition import PhaseController, TournamentManager

router = APIRouter()

@router.get("/tournaments", response_model=List[TournamentResponse])
async def list_tournaments(
    include_archived: bool = Query(False),
    manager: TournamentManager = Depends(get_tournament_manager)
):
    """List tournaments, most recent first"""
    return await manager.list_tournaments(include_archived=include_archived)

@router.post("/tournaments", response_model=TournamentResponse, status_code=status.HTTP_201_CREATED)
async def create_tournament(
    tournament_data: TournamentCreate,
    manager: TournamentManager = Depends(get_tournament_manager)
):
    """Create a tournament in status Created"""
    return await manager.create_tournament(tournament_data.name, tournament_data.date)

@router.get("/tournaments/{tournament_id}", response_model=TournamentDetailResponse)
async def get_tournament(
    tournament_id: int,
    manager: TournamentManager = Depends(get_tournament_manager)
):
    """Tournament with its participants, groups, stats and matches"""
    return await manager.get_tournament(tournament_id)

@router.post("/tournaments/{tournament_id}/archive", response_model=TournamentResponse)
async def archive_tournament(
    tournament_id: int,
    manager: TournamentManager = Depends(get_tournament_manager)
):
    return await manager.set_archived(tournament_id, True)

@router.post("/tournaments/{tournament_id}/unarchive", response_model=TournamentResponse)
async def unarchive_tournament(
    tournament_id: int,
    manager: TournamentManager = Depends(get_tournament_manager)
):
    return await manager.set_archived(tournament_id, False)

@router.post("/tournaments/{tournament_id}/participants", response_model=TournamentParticipantResponse)
async def join_tournament(
    tournament_id: int,
    join_data: JoinRequest,
    manager: TournamentManager = Depends(get_tournament_manager)
):
    """Add a participant; joining twice returns the existing entry"""
    return await manager.add_participant(tournament_id, join_data.participant_id)

@router.delete("/tournaments/{tournament_id}/participants/{participant_id}", response_model=StatusResponse)
async def leave_tournament(
    tournament_id: int,
    participant_id: int,
    manager: TournamentManager = Depends(get_tournament_manager)
):
    await manager.remove_participant(tournament_id, participant_id)
    return {"status": "removed"}

@router.post("/tournaments/{tournament_id}/groups", response_model=TournamentResponse)
async def generate_groups(
    tournament_id: int,
    controller: PhaseController = Depends(get_phase_controller)
):
    """Split participants into groups of at most ten"""
    return await controller.generate_groups(tournament_id)

@router.post("/tournaments/{tournament_id}/matches", response_model=TournamentResponse)
async def generate_matches(
    tournament_id: int,
    controller: PhaseController = Depends(get_phase_controller)
):
    """Schedule the round-robin of every group and start the group stage"""
    return await controller.generate_matches(tournament_id)

@router.post("/tournaments/{tournament_id}/advance", response_model=TournamentResponse)
async def advance_tournament(
    tournament_id: int,
    controller: PhaseController = Depends(get_phase_controller)
):
    """Close the current phase and open the next one"""
    return await controller.advance(tournament_id)

@router.post("/tournaments/{tournament_id}/reset", response_model=TournamentResponse)
async def reset_tournament(
    tournament_id: int,
    controller: PhaseController = Depends(get_phase_controller)
):
    return await controller.reset(tournament_id)
