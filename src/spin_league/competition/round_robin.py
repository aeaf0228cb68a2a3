"""
Round-robin schedule generation using the circle method.

Player one stays fixed while everyone else rotates one seat per round, so a
group of ``n`` players (plus a bye for odd ``n``) meets every opponent exactly
once over ``n - 1`` rounds.
"""

from typing import Dict, List, Sequence, Tuple, Union

from spin_league.competition.grouping import members_by_group
from spin_league.models.slots import UNASSIGNED, Unassigned
from spin_league.models.tournament import Match, TournamentParticipant

Seat = Union[int, Unassigned]
Pairing = Tuple[int, int]


def circle_rounds(player_ids: Sequence[int]) -> List[List[Pairing]]:
    """
    Generate all pairings round by round.

    Args:
        player_ids: Participant ids in seating order

    Returns:
        One list of ``(player1, player2)`` pairings per round. Odd groups
        sit one player out each round, so their rounds hold one fewer match.
    """
    seats: List[Seat] = list(player_ids)
    if len(seats) < 2:
        return []

    if len(seats) % 2 != 0:
        seats.append(UNASSIGNED)

    n = len(seats)
    half = n // 2
    rounds: List[List[Pairing]] = []

    for _ in range(n - 1):
        pairings: List[Pairing] = []
        for i in range(half):
            home = seats[i]
            away = seats[n - 1 - i]
            if isinstance(home, Unassigned) or isinstance(away, Unassigned):
                continue
            pairings.append((home, away))
        rounds.append(pairings)

        # rotate everyone but the first seat
        seats = [seats[0], seats[-1]] + seats[1:-1]

    return rounds


def schedule_group(
    tournament_id: int,
    label: str,
    members: Sequence[TournamentParticipant],
) -> List[Match]:
    """
    Build the round-robin matches for one group.

    Matches are returned unsaved, 0-0 with no winner, phase set to the
    group label and rounds numbered from 1.
    """
    player_ids = [member.participant_id for member in members]
    matches = []
    for round_no, pairings in enumerate(circle_rounds(player_ids), start=1):
        for player1_id, player2_id in pairings:
            matches.append(Match(
                tournament_id=tournament_id,
                phase=label,
                round=round_no,
                player1_id=player1_id,
                player2_id=player2_id,
                score_p1=0,
                score_p2=0,
            ))
    return matches


def schedule_groups(
    tournament_id: int,
    links: Sequence[TournamentParticipant],
) -> Dict[str, List[Match]]:
    """Build the schedules of every group, keyed and ordered by group label"""
    return {
        label: schedule_group(tournament_id, label, members)
        for label, members in members_by_group(links).items()
    }
