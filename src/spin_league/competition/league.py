"""
League points rules.

League points are the cross-tournament ranking currency. They accumulate on
each TournamentParticipant link and survive tournament resets; the league
table sums them per participant.
"""

import logging
from typing import Dict

from spin_league.models.tournament import TournamentParticipant

logger = logging.getLogger(__name__)


class LeaguePointsLedger:
    """
    Stateless award rules applied to a participant link.

    Every award is additive and returns the number of points granted. The
    ledger does not deduplicate: callers invoke each award once per event.
    """

    PARTICIPATION_POINTS = 5
    QUALIFICATION_POINTS = 8
    BRACKET_WIN_POINTS = 3
    PODIUM_POINTS: Dict[int, int] = {
        1: 35,
        2: 19,
        3: 12,
    }

    def award_participation(self, link: TournamentParticipant) -> int:
        """Points for playing the group stage"""
        return self._award(link, self.PARTICIPATION_POINTS, "participation")

    def award_qualification(self, link: TournamentParticipant) -> int:
        """Points for advancing into the bracket"""
        return self._award(link, self.QUALIFICATION_POINTS, "qualification")

    def award_bracket_win(self, link: TournamentParticipant) -> int:
        """Points for winning a single bracket match"""
        return self._award(link, self.BRACKET_WIN_POINTS, "bracket win")

    def award_podium(self, link: TournamentParticipant, rank: int) -> int:
        """
        Points for a final placing.

        Args:
            link: Participant link to credit
            rank: Final placing; only 1, 2 and 3 score

        Returns:
            Points awarded (0 for ranks off the podium)
        """
        points = self.PODIUM_POINTS.get(rank)
        if points is None:
            logger.debug(f"No podium points for rank {rank}")
            return 0
        return self._award(link, points, f"podium #{rank}")

    def _award(self, link: TournamentParticipant, points: int, reason: str) -> int:
        link.league_points = (link.league_points or 0) + points
        logger.debug(f"+{points} league points ({reason}) to participant "
                     f"{link.participant_id} in tournament {link.tournament_id}")
        return points
