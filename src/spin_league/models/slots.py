"""
Player slot values for matches.

A match has two player positions. Each one is either ``Unassigned`` (a bye,
or a bracket position still waiting for a feeding match) or a ``Player``
holding a participant id. The nullable foreign key columns on ``Match`` are
only the storage form of these values.
"""

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class Unassigned:
    """Empty player position."""

    def __bool__(self) -> bool:
        return False


@dataclass(frozen=True)
class Player:
    """Player position held by a participant."""

    participant_id: int


Slot = Union[Unassigned, Player]

UNASSIGNED = Unassigned()


def slot_of(participant_id: Optional[int]) -> Slot:
    """Convert a stored participant reference into a slot value."""
    if participant_id is None:
        return UNASSIGNED
    return Player(participant_id)


def participant_of(slot: Slot) -> Optional[int]:
    """Convert a slot value back into its stored participant reference."""
    if isinstance(slot, Player):
        return slot.participant_id
    return None
