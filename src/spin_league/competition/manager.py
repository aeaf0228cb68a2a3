from typing import List, Optional
from contextlib import asynccontextmanager
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import select, and_
from spin_league.exceptions import LeagueError, InternalError, NotFoundError
from spin_league.models.tournament import Match, Tournament, TournamentParticipant
import logging

logger = logging.getLogger(__name__)

class CompetitionManager:
    """Base for engine services bound to one async database session"""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    @asynccontextmanager
    async def atomic(self, action: str):
        """Run one engine operation as a single commit, rolling back on any error"""
        try:
            yield
            await self.db.commit()
        except LeagueError as e:
            await self.db.rollback()
            logger.warning(f"{action} rejected: {e.message}")
            raise
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"{action} failed: {e}")
            raise InternalError(f"{action} failed: {e.__class__.__name__}") from e
        except Exception:
            await self.db.rollback()
            raise

    async def get_tournament_record(self, tournament_id: int, lock: bool = False) -> Tournament:
        """Load a tournament or raise NotFoundError"""
        query = select(Tournament).where(Tournament.id == tournament_id)
        if lock:
            query = query.with_for_update()

        tournament = await self.db.scalar(query)
        if not tournament:
            raise NotFoundError(f"Tournament {tournament_id} not found")
        return tournament

    async def get_match_record(self, match_id: int, lock: bool = False) -> Match:
        """Load a match or raise NotFoundError"""
        query = select(Match).where(Match.id == match_id)
        if lock:
            query = query.with_for_update()

        match = await self.db.scalar(query)
        if not match:
            raise NotFoundError(f"Match {match_id} not found")
        return match

    async def get_links(self, tournament_id: int) -> List[TournamentParticipant]:
        """Participant links of a tournament in join order"""
        result = await self.db.execute(
            select(TournamentParticipant)
            .where(TournamentParticipant.tournament_id == tournament_id)
            .order_by(TournamentParticipant.id)
        )
        return list(result.scalars().all())

    async def get_link(self, tournament_id: int, participant_id: int) -> Optional[TournamentParticipant]:
        """Participant link for one player, if joined"""
        return await self.db.scalar(
            select(TournamentParticipant)
            .where(and_(
                TournamentParticipant.tournament_id == tournament_id,
                TournamentParticipant.participant_id == participant_id
            ))
        )

    async def get_matches(self, tournament_id: int, phase: Optional[str] = None) -> List[Match]:
        """Matches of a tournament in creation order, optionally for one phase"""
        query = select(Match).where(Match.tournament_id == tournament_id)
        if phase is not None:
            query = query.where(Match.phase == phase)

        result = await self.db.execute(query.order_by(Match.id))
        return list(result.scalars().all())
