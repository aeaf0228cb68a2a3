"""
Group stage partitioning.

Participants are dealt into groups of roughly ten, round-robin by join order:
participant ``i`` goes to group ``i mod group_count``. No seeding by skill.
"""

import logging
import math
from typing import Dict, List, Sequence

from spin_league.exceptions import PreconditionFailedError
from spin_league.models.tournament import TournamentParticipant

logger = logging.getLogger(__name__)

GROUP_TARGET_SIZE = 10
GROUP_LETTERS = ("A", "B", "C", "D", "E", "F", "G", "H")
MIN_PARTICIPANTS = 2


def group_count(participant_count: int) -> int:
    """Number of groups needed for a field of the given size."""
    if participant_count <= GROUP_TARGET_SIZE:
        return 1
    return math.ceil(participant_count / GROUP_TARGET_SIZE)


def group_label(index: int, count: int) -> str:
    """
    Label for the group at ``index``.

    A single group is just "A"; several groups read "Group A", "Group B"...
    Past eight groups the letters wrap around.
    """
    letter = GROUP_LETTERS[index % len(GROUP_LETTERS)]
    if count > 1:
        return f"Group {letter}"
    return letter


def partition(
    links: Sequence[TournamentParticipant],
) -> Dict[str, List[TournamentParticipant]]:
    """
    Split tournament participants into labeled groups.

    Args:
        links: Participant links in join order

    Returns:
        Mapping of group label to members, ordered by label

    Raises:
        PreconditionFailedError: fewer than two participants
    """
    n = len(links)
    if n < MIN_PARTICIPANTS:
        raise PreconditionFailedError(
            f"Not enough participants: {n} joined, at least {MIN_PARTICIPANTS} required"
        )

    count = group_count(n)
    if count > len(GROUP_LETTERS):
        logger.warning(f"{n} participants need {count} groups; group labels will wrap "
                       f"past {len(GROUP_LETTERS)} and merge groups")

    groups: Dict[str, List[TournamentParticipant]] = {}
    for i, link in enumerate(links):
        label = group_label(i % count, count)
        groups.setdefault(label, []).append(link)

    return {label: groups[label] for label in sorted(groups)}


def members_by_group(
    links: Sequence[TournamentParticipant],
) -> Dict[str, List[TournamentParticipant]]:
    """Collect already-labeled links by group, ordered by label; unlabeled links are skipped"""
    grouped: Dict[str, List[TournamentParticipant]] = {}
    for link in links:
        if link.group_label:
            grouped.setdefault(link.group_label, []).append(link)
    return {label: grouped[label] for label in sorted(grouped)}
