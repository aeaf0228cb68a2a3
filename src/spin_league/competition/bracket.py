"""
Single-elimination bracket construction.

The bracket is planned in memory first and then persisted root-first: the
final is saved before the semifinals, the semifinals before the quarterfinals
and so on, so every match is created with its parent's id already known.

Qualifiers fill the first round in pairs. When the field is not a power of
two the empty first-round positions are collapsed instead of becoming bye
matches: a lone player moves straight into the next round, and a lone
feeding match is wired directly to the position above. A field of ``n``
qualifiers therefore always produces ``n - 1`` matches, each with two real
sources.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple, Union, cast
from sqlalchemy.ext.asyncio import AsyncSession
from spin_league.models.slots import Player
from spin_league.models.tournament import BRACKET_PHASE, Match
import logging

logger = logging.getLogger(__name__)


@dataclass
class BracketNode:
    """Planned bracket match; sources[0] feeds slot 1 and sources[1] feeds slot 2"""

    round: int
    sources: List[Union[Player, "BracketNode"]] = field(default_factory=list)

    def size(self) -> int:
        """Number of matches in this subtree"""
        return 1 + sum(
            source.size() for source in self.sources if isinstance(source, BracketNode)
        )


Source = Union[Player, BracketNode]


def bracket_rounds(qualifier_count: int) -> int:
    """Smallest k such that 2**k >= qualifier_count"""
    rounds = 0
    while (1 << rounds) < qualifier_count:
        rounds += 1
    return rounds


def _join(left: Optional[Source], right: Optional[Source], round_no: int) -> Optional[Source]:
    if left is not None and right is not None:
        return BracketNode(round=round_no, sources=[left, right])
    # single source: nobody to play, pass it up unchanged
    return left if left is not None else right


def plan_bracket(qualifier_ids: Sequence[int]) -> Optional[BracketNode]:
    """
    Plan the bracket tree for the given qualifiers.

    Args:
        qualifier_ids: Participant ids in seeding order

    Returns:
        The final as the root of the tree, or None for fewer than two qualifiers
    """
    if len(qualifier_ids) < 2:
        return None

    rounds = bracket_rounds(len(qualifier_ids))
    positions: List[Optional[Source]] = [Player(pid) for pid in qualifier_ids]
    positions += [None] * ((1 << rounds) - len(qualifier_ids))

    for round_no in range(1, rounds + 1):
        positions = [
            _join(positions[i], positions[i + 1], round_no)
            for i in range(0, len(positions), 2)
        ]

    # n >= 2 always leaves two sources at the top
    return cast(BracketNode, positions[0])


class BracketBuilder:
    """Persists planned brackets as linked Match records"""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    async def build(
        self,
        tournament_id: int,
        qualifier_ids: Sequence[int],
        start_round: int = 1
    ) -> List[Match]:
        """
        Create the full bracket for a tournament.

        Args:
            tournament_id: Owning tournament
            qualifier_ids: Qualifiers in seeding order
            start_round: Round number given to the bracket's first round

        Returns:
            Created matches, final first. Empty when fewer than two qualifiers.
        """
        root = plan_bracket(qualifier_ids)
        if root is None:
            logger.info(f"Tournament {tournament_id}: {len(qualifier_ids)} qualifier(s), no bracket built")
            return []

        created: List[Match] = []
        level: List[Tuple[BracketNode, Optional[Match], Optional[int]]] = [(root, None, None)]

        while level:
            matches = []
            next_level = []
            for node, parent, slot in level:
                match = Match(
                    tournament_id=tournament_id,
                    phase=BRACKET_PHASE,
                    round=node.round + start_round - 1,
                    score_p1=0,
                    score_p2=0,
                )
                if parent is not None:
                    match.next_match_id = parent.id
                    match.next_match_slot = slot

                for number, source in enumerate(node.sources, start=1):
                    if isinstance(source, Player):
                        match.assign_slot(number, source)
                    else:
                        next_level.append((source, match, number))
                matches.append(match)

            # parents need ids before their children reference them
            self.db.add_all(matches)
            await self.db.flush()
            created.extend(matches)
            level = next_level

        logger.info(f"Tournament {tournament_id}: bracket of {len(created)} matches over "
                    f"{bracket_rounds(len(qualifier_ids))} rounds for {len(qualifier_ids)} qualifiers")
        return created
