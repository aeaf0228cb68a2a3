"""
Tournament and participant record management.

Covers everything around the progression engine that is plain record
keeping: registering and archiving participants, creating and listing
tournaments, joining and leaving them, and the cross-tournament league table.
"""

from typing import Dict, List, Optional
from datetime import datetime
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
from spin_league.competition.manager import CompetitionManager
from spin_league.exceptions import (
    ConflictError,
    InvalidInputError,
    NotFoundError,
    PreconditionFailedError,
)
from spin_league.models.participant import Participant
from spin_league.models.tournament import Match, Tournament, TournamentParticipant, TournamentStatus
import logging

logger = logging.getLogger(__name__)


class TournamentManager(CompetitionManager):
    """Record management for participants, tournaments and memberships"""

    async def create_participant(self, nickname: str, avatar: str = "") -> Participant:
        """Register a new participant; nicknames are unique"""
        nickname = (nickname or "").strip()
        if not nickname:
            raise InvalidInputError("Nickname must not be empty")

        async with self.atomic(f"Creating participant {nickname!r}"):
            existing = await self.db.scalar(
                select(Participant).where(Participant.nickname == nickname)
            )
            if existing:
                raise ConflictError(f"Participant {nickname!r} already exists")

            participant = Participant(nickname=nickname, avatar=avatar or "")
            self.db.add(participant)
            try:
                await self.db.flush()
            except IntegrityError as e:
                # registered concurrently after the check above
                raise ConflictError(f"Participant {nickname!r} already exists") from e

        logger.info(f"Created participant {nickname} ({participant.id})")
        return participant

    async def list_participants(self, include_archived: bool = False) -> List[Participant]:
        query = select(Participant)
        if not include_archived:
            query = query.where(Participant.is_archived.is_(False))

        result = await self.db.execute(query.order_by(Participant.id))
        return list(result.scalars().all())

    async def archive_participant(self, participant_id: int) -> Participant:
        """Soft-delete a participant"""
        async with self.atomic(f"Archiving participant {participant_id}"):
            participant = await self._get_participant(participant_id)
            participant.is_archived = True

        logger.info(f"Archived participant {participant_id}")
        return participant

    async def create_tournament(self, name: str, date: Optional[datetime] = None) -> Tournament:
        """Create a tournament in status Created"""
        name = (name or "").strip()
        if not name:
            raise InvalidInputError("Tournament name must not be empty")

        async with self.atomic(f"Creating tournament {name!r}"):
            tournament = Tournament(
                name=name,
                date=date,
                status=TournamentStatus.CREATED.value
            )
            self.db.add(tournament)
            await self.db.flush()

        logger.info(f"Created tournament: {name} ({tournament.id})")
        return tournament

    async def list_tournaments(self, include_archived: bool = False) -> List[Tournament]:
        query = select(Tournament)
        if not include_archived:
            query = query.where(Tournament.is_archived.is_(False))

        result = await self.db.execute(query.order_by(Tournament.date.desc(), Tournament.id.desc()))
        return list(result.scalars().all())

    async def get_tournament(self, tournament_id: int) -> Tournament:
        """Load a tournament with its participants and matches"""
        tournament = await self.db.scalar(
            select(Tournament)
            .where(Tournament.id == tournament_id)
            .options(
                selectinload(Tournament.participants).selectinload(TournamentParticipant.participant),
                selectinload(Tournament.matches).selectinload(Match.player1),
                selectinload(Tournament.matches).selectinload(Match.player2),
            )
            .execution_options(populate_existing=True)
        )
        if not tournament:
            raise NotFoundError(f"Tournament {tournament_id} not found")
        return tournament

    async def set_archived(self, tournament_id: int, archived: bool) -> Tournament:
        """Archive or restore a tournament"""
        async with self.atomic(f"Updating archive flag of tournament {tournament_id}"):
            tournament = await self.get_tournament_record(tournament_id)
            tournament.is_archived = archived

        logger.info(f"Tournament {tournament_id} {'archived' if archived else 'restored'}")
        return tournament

    async def add_participant(self, tournament_id: int, participant_id: int) -> TournamentParticipant:
        """
        Join a participant to a tournament.

        Joining twice is a no-op and returns the existing link.
        """
        async with self.atomic(f"Adding participant {participant_id} to tournament {tournament_id}"):
            await self.get_tournament_record(tournament_id)
            await self._get_participant(participant_id)

            link = await self.get_link(tournament_id, participant_id)
            if link:
                logger.debug(f"Participant {participant_id} already in tournament {tournament_id}")
                return link

            link = TournamentParticipant(
                tournament_id=tournament_id,
                participant_id=participant_id
            )
            self.db.add(link)
            await self.db.flush()

        logger.info(f"Participant {participant_id} joined tournament {tournament_id}")
        return link

    async def remove_participant(self, tournament_id: int, participant_id: int) -> None:
        """Remove a participant from a tournament that has not started yet"""
        async with self.atomic(f"Removing participant {participant_id} from tournament {tournament_id}"):
            tournament = await self.get_tournament_record(tournament_id)
            if tournament.phase_status != TournamentStatus.CREATED:
                raise PreconditionFailedError(
                    "Cannot remove participant after tournament has started"
                )

            link = await self.get_link(tournament_id, participant_id)
            if link:
                await self.db.delete(link)

        logger.info(f"Participant {participant_id} removed from tournament {tournament_id}")

    async def league_standings(self) -> List[Dict]:
        """
        Aggregate per-tournament stats into the league table.

        Archived participants are left out. Ordered by league points, then wins.

        Returns:
            One dictionary per participant with summed counters and the
            number of tournaments played
        """
        total_wins = func.sum(TournamentParticipant.wins).label("total_wins")
        total_league_points = func.sum(TournamentParticipant.league_points).label("total_league_points")

        result = await self.db.execute(
            select(
                TournamentParticipant.participant_id,
                Participant.nickname,
                total_wins,
                func.sum(TournamentParticipant.points).label("total_points"),
                total_league_points,
                func.sum(TournamentParticipant.spin_finishes).label("total_spin"),
                func.sum(TournamentParticipant.burst_finishes).label("total_burst"),
                func.sum(TournamentParticipant.over_finishes).label("total_over"),
                func.sum(TournamentParticipant.xtreme_finishes).label("total_xtreme"),
                func.count(TournamentParticipant.tournament_id).label("tournaments_played"),
            )
            .join(Participant, Participant.id == TournamentParticipant.participant_id)
            .where(Participant.is_archived.is_(False))
            .group_by(TournamentParticipant.participant_id, Participant.nickname)
            .order_by(total_league_points.desc(), total_wins.desc(), TournamentParticipant.participant_id)
        )

        return [dict(row._mapping) for row in result.all()]

    async def _get_participant(self, participant_id: int) -> Participant:
        participant = await self.db.get(Participant, participant_id)
        if not participant:
            raise NotFoundError(f"Participant {participant_id} not found")
        return participant
