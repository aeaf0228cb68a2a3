"""
Match scoring with automatic win detection.

Each scoring event names the player who took the round and how the round
finished. Finish types carry different point values; the first player to
reach the phase's threshold wins the match, collects the win in their
tournament stats and is moved into the parent bracket match when there is
one.
"""

from enum import Enum
from typing import Dict, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from spin_league.competition.league import LeaguePointsLedger
from spin_league.competition.manager import CompetitionManager
from spin_league.exceptions import InvalidInputError, PreconditionFailedError
from spin_league.models.slots import Player
from spin_league.models.tournament import Match
import logging

logger = logging.getLogger(__name__)


class FinishType(str, Enum):
    SPIN = "Spin"
    OVER = "Over"
    BURST = "Burst"
    OUT = "Out"
    XTREME = "Xtreme"


FINISH_POINTS: Dict[FinishType, int] = {
    FinishType.SPIN: 1,
    FinishType.OVER: 2,
    FinishType.BURST: 2,
    FinishType.OUT: 2,
    FinishType.XTREME: 3,
}

# Over and Out share one counter
FINISH_COUNTERS: Dict[FinishType, str] = {
    FinishType.SPIN: "spin_finishes",
    FinishType.BURST: "burst_finishes",
    FinishType.OVER: "over_finishes",
    FinishType.OUT: "over_finishes",
    FinishType.XTREME: "xtreme_finishes",
}

GROUP_WIN_THRESHOLD = 7
BRACKET_WIN_THRESHOLD = 10
GROUP_POINTS_PER_WIN = 3


def parse_finish_type(value) -> FinishType:
    """Validate a finish type name such as "Spin" or "Xtreme"."""
    try:
        return FinishType(value)
    except ValueError:
        valid = ", ".join(f.value for f in FinishType)
        raise InvalidInputError(f"Invalid win type {value!r}; expected one of {valid}")


def win_threshold(match: Match) -> int:
    """Points needed to take the match"""
    return BRACKET_WIN_THRESHOLD if match.is_bracket else GROUP_WIN_THRESHOLD


def decide_winner(match: Match) -> Optional[int]:
    """Winner implied by the current score, player one checked first"""
    threshold = win_threshold(match)
    if match.score_p1 >= threshold and match.player1_id is not None:
        return match.player1_id
    if match.score_p2 >= threshold and match.player2_id is not None:
        return match.player2_id
    return None


class ScoreKeeper(CompetitionManager):
    """
    Applies scoring events to matches.

    This is the only component that changes match scores and winners
    outside of phase transitions. Each operation commits once; any rejection
    leaves the match untouched.
    """

    def __init__(
        self,
        db_session: AsyncSession,
        ledger: Optional[LeaguePointsLedger] = None,
        award_bracket_wins: bool = False
    ):
        super().__init__(db_session)
        self.ledger = ledger or LeaguePointsLedger()
        self.award_bracket_wins = award_bracket_wins

    async def record_win(self, match_id: int, winner_id: int, finish_type) -> Match:
        """
        Record one round won by ``winner_id``.

        Args:
            match_id: Match identifier
            winner_id: Participant id of the player who took the round
            finish_type: How the round finished (Spin, Over, Burst, Out, Xtreme)

        Returns:
            The updated match
        """
        finish = parse_finish_type(finish_type)

        async with self.atomic(f"Scoring match {match_id}"):
            match = await self.get_match_record(match_id, lock=True)

            if match.is_finished:
                raise PreconditionFailedError(f"Match {match_id} already finished")

            if winner_id is not None and winner_id == match.player1_id:
                match.score_p1 += FINISH_POINTS[finish]
            elif winner_id is not None and winner_id == match.player2_id:
                match.score_p2 += FINISH_POINTS[finish]
            else:
                raise PreconditionFailedError(
                    f"Participant {winner_id} is not playing in match {match_id}"
                )

            winner = decide_winner(match)
            if winner is not None:
                match.winner_id = winner
                await self._credit_win(match, finish)
                await self._advance_winner(match)
                logger.info(f"Match {match_id} won by {winner} "
                            f"({match.score_p1}-{match.score_p2}, {finish.value} finish)")

        return match

    async def record_manual_score(self, match_id: int, score_p1: int, score_p2: int) -> Match:
        """
        Overwrite both scores.

        The winner is recomputed from the threshold alone, so lowering a
        score can clear it. Stats are not touched, and a winner already
        moved into the parent match stays there.
        """
        for value in (score_p1, score_p2):
            if not isinstance(value, int) or value < 0:
                raise InvalidInputError(f"Scores must be non-negative integers, got {value!r}")

        async with self.atomic(f"Manual score for match {match_id}"):
            match = await self.get_match_record(match_id, lock=True)
            match.score_p1 = score_p1
            match.score_p2 = score_p2
            match.winner_id = decide_winner(match)

            if match.winner_id is not None:
                await self._advance_winner(match)

            logger.info(f"Match {match_id} manually set to {score_p1}-{score_p2}, "
                        f"winner {match.winner_id}")

        return match

    async def reset(self, match_id: int) -> Match:
        """Zero the scores and clear the winner"""
        async with self.atomic(f"Resetting match {match_id}"):
            match = await self.get_match_record(match_id, lock=True)
            match.score_p1 = 0
            match.score_p2 = 0
            match.winner_id = None

            logger.info(f"Match {match_id} reset")

        return match

    async def _credit_win(self, match: Match, finish: FinishType) -> None:
        winner = await self.get_link(match.tournament_id, match.winner_id)
        if winner:
            winner.wins += 1
            counter = FINISH_COUNTERS[finish]
            setattr(winner, counter, getattr(winner, counter) + 1)
            winner.points += GROUP_POINTS_PER_WIN

            if self.award_bracket_wins and match.is_bracket:
                self.ledger.award_bracket_win(winner)
        else:
            logger.warning(f"Match {match.id}: winner {match.winner_id} has no link "
                           f"to tournament {match.tournament_id}")

        if match.loser_id is not None:
            loser = await self.get_link(match.tournament_id, match.loser_id)
            if loser:
                loser.losses += 1

    async def _advance_winner(self, match: Match) -> None:
        if match.next_match_id is None:
            return

        # sibling matches feeding the same parent serialise on this row lock
        parent = await self.get_match_record(match.next_match_id, lock=True)
        parent.assign_slot(match.next_match_slot, Player(match.winner_id))
        logger.info(f"Participant {match.winner_id} advances to match {parent.id} "
                    f"slot {match.next_match_slot}")
