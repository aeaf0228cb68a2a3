"""
Tournament phase state machine.

    Created -> GroupsGenerated -> InProgress -> BracketInProgress -> Finished

with reset available from every state back to Created. Each transition runs
as one transaction: the tournament row is locked, the precondition is checked
inside the transaction, and every match, stat and league point written by the
transition is committed together or not at all.
"""

from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Sequence
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from spin_league.competition.bracket import BracketBuilder
from spin_league.competition.grouping import members_by_group, partition
from spin_league.competition.league import LeaguePointsLedger
from spin_league.competition.manager import CompetitionManager
from spin_league.competition.round_robin import schedule_groups
from spin_league.exceptions import PreconditionFailedError
from spin_league.models.tournament import (
    BRACKET_PHASE,
    Match,
    Tournament,
    TournamentParticipant,
    TournamentStatus,
)
import logging

logger = logging.getLogger(__name__)

QUALIFIERS_PER_GROUP = 4

AdvanceHandler = Callable[[Tournament], Awaitable[None]]


def select_qualifiers(
    links: Sequence[TournamentParticipant],
    per_group: int = QUALIFIERS_PER_GROUP
) -> List[TournamentParticipant]:
    """
    Pick the players advancing from the group stage.

    Groups are visited in label order. Within a group players are ranked by
    group-stage points, then wins, then join order, and the top ``per_group``
    advance.

    Args:
        links: Participant links in join order

    Returns:
        Qualifiers in bracket seeding order
    """
    qualifiers = []
    for members in members_by_group(links).values():
        ranked = sorted(members, key=lambda m: (-m.points, -m.wins))
        qualifiers.extend(ranked[:per_group])
    return qualifiers


def _require_finished(matches: Iterable[Match], what: str) -> None:
    open_matches = [m.id for m in matches if not m.is_finished]
    if open_matches:
        raise PreconditionFailedError(
            f"{what} are not all finished ({len(open_matches)} open, e.g. match {open_matches[0]})"
        )


class PhaseController(CompetitionManager):
    """
    Drives a tournament through its phases.

    Groups and the round-robin schedule are generated by explicit requests;
    everything after that happens through ``advance``, which dispatches to
    the handler registered for the tournament's current status.
    """

    def __init__(
        self,
        db_session: AsyncSession,
        ledger: Optional[LeaguePointsLedger] = None,
        bracket_builder: Optional[BracketBuilder] = None
    ):
        super().__init__(db_session)
        self.ledger = ledger or LeaguePointsLedger()
        self.bracket_builder = bracket_builder or BracketBuilder(db_session)
        self._advance_handlers: Dict[TournamentStatus, AdvanceHandler] = {
            TournamentStatus.IN_PROGRESS: self._close_group_stage,
            TournamentStatus.BRACKET_IN_PROGRESS: self._close_bracket,
        }

    async def generate_groups(self, tournament_id: int) -> Tournament:
        """
        Assign every participant to a group.

        Allowed while the tournament is Created or GroupsGenerated, so groups
        can be reshuffled after late joins.
        """
        async with self.atomic(f"Generating groups for tournament {tournament_id}"):
            tournament = await self.get_tournament_record(tournament_id, lock=True)
            if tournament.phase_status not in (TournamentStatus.CREATED, TournamentStatus.GROUPS_GENERATED):
                raise PreconditionFailedError(
                    f"Tournament {tournament_id} already started or finished ({tournament.status})"
                )

            links = await self.get_links(tournament_id)
            groups = partition(links)
            for label, members in groups.items():
                for link in members:
                    link.group_label = label

            tournament.status = TournamentStatus.GROUPS_GENERATED.value

        logger.info(f"Tournament {tournament_id}: {len(links)} participants in "
                    f"{len(groups)} group(s) {', '.join(groups)}")
        return tournament

    async def generate_matches(self, tournament_id: int) -> Tournament:
        """Create the round-robin schedule of every group and open the group stage"""
        async with self.atomic(f"Generating matches for tournament {tournament_id}"):
            tournament = await self.get_tournament_record(tournament_id, lock=True)
            if tournament.phase_status != TournamentStatus.GROUPS_GENERATED:
                raise PreconditionFailedError(
                    f"Groups must be generated first (tournament {tournament_id} is {tournament.status})"
                )

            links = await self.get_links(tournament_id)
            schedules = schedule_groups(tournament_id, links)
            matches = [match for group in schedules.values() for match in group]
            self.db.add_all(matches)

            for link in links:
                self.ledger.award_participation(link)

            tournament.status = TournamentStatus.IN_PROGRESS.value
            await self.db.flush()

        logger.info(f"Tournament {tournament_id}: {len(matches)} group matches scheduled, "
                    f"participation awarded to {len(links)} players")
        return tournament

    async def advance(self, tournament_id: int) -> Tournament:
        """Move the tournament to its next phase once the current one is complete"""
        async with self.atomic(f"Advancing tournament {tournament_id}"):
            tournament = await self.get_tournament_record(tournament_id, lock=True)
            previous = tournament.status

            handler = self._advance_handlers.get(tournament.phase_status, self._finish_without_awards)
            await handler(tournament)

        logger.info(f"Tournament {tournament_id}: {previous} -> {tournament.status}")
        return tournament

    async def reset(self, tournament_id: int) -> Tournament:
        """
        Return a tournament to Created.

        Deletes all its matches and clears groups and per-tournament stats.
        League points are kept.
        """
        async with self.atomic(f"Resetting tournament {tournament_id}"):
            tournament = await self.get_tournament_record(tournament_id, lock=True)

            await self.db.execute(
                delete(Match).where(Match.tournament_id == tournament_id)
            )
            for link in await self.get_links(tournament_id):
                link.reset_stats()

            tournament.status = TournamentStatus.CREATED.value

        logger.info(f"Tournament {tournament_id} reset")
        return tournament

    async def _close_group_stage(self, tournament: Tournament) -> None:
        _require_finished(await self.get_matches(tournament.id), "Group stage matches")

        qualifiers = select_qualifiers(await self.get_links(tournament.id))
        if len(qualifiers) < 2:
            logger.info(f"Tournament {tournament.id}: {len(qualifiers)} qualifier(s), finishing without bracket")
            tournament.status = TournamentStatus.FINISHED.value
            return

        await self.bracket_builder.build(
            tournament.id,
            [q.participant_id for q in qualifiers],
            start_round=1
        )
        for qualifier in qualifiers:
            self.ledger.award_qualification(qualifier)

        tournament.status = TournamentStatus.BRACKET_IN_PROGRESS.value

    async def _close_bracket(self, tournament: Tournament) -> None:
        bracket = await self.get_matches(tournament.id, BRACKET_PHASE)
        _require_finished(bracket, "Bracket matches")

        if bracket:
            await self._award_podium(tournament, bracket)

        tournament.status = TournamentStatus.FINISHED.value

    async def _finish_without_awards(self, tournament: Tournament) -> None:
        _require_finished(await self.get_matches(tournament.id), "Matches")
        tournament.status = TournamentStatus.FINISHED.value

    async def _award_podium(self, tournament: Tournament, bracket: List[Match]) -> None:
        final_round = max(m.round for m in bracket)
        finals = [m for m in bracket if m.round == final_round]
        _require_finished(finals, "Final matches")
        final = finals[0]

        champion = await self.get_link(tournament.id, final.winner_id)
        if champion:
            self.ledger.award_podium(champion, 1)

        if final.loser_id is not None:
            runner_up = await self.get_link(tournament.id, final.loser_id)
            if runner_up:
                self.ledger.award_podium(runner_up, 2)

        first_round = min(m.round for m in bracket)
        if final_round == first_round:
            return

        # third place: best record among the players beaten by the finalists
        semifinal_losers = [
            m.loser_id for m in bracket
            if m.next_match_id == final.id and m.loser_id is not None
        ]
        candidates = [
            link for link in await self.get_links(tournament.id)
            if link.participant_id in semifinal_losers
        ]
        if candidates:
            third = min(candidates, key=lambda link: (-link.wins, -link.points, link.id))
            self.ledger.award_podium(third, 3)
            logger.info(f"Tournament {tournament.id} podium: {final.winner_id}, "
                        f"{final.loser_id}, {third.participant_id}")
