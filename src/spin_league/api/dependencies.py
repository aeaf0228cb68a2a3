"""FastAPI dependencies that hand request-scoped engine services to the routes."""

from typing import AsyncGenerator
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from spin_league.competition import PhaseController, ScoreKeeper, TournamentManager
from spin_league.config import config

async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """One session per request from the application's database"""
    async with request.app.state.database.get_session() as session:
        yield session

def get_tournament_manager(db: AsyncSession = Depends(get_db_session)) -> TournamentManager:
    return TournamentManager(db)

def get_phase_controller(db: AsyncSession = Depends(get_db_session)) -> PhaseController:
    return PhaseController(db)

def get_score_keeper(db: AsyncSession = Depends(get_db_session)) -> ScoreKeeper:
    return ScoreKeeper(db, award_bracket_wins=config.award_bracket_wins)
