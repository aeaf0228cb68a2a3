"""
Spin League Database Models

This package contains all SQLAlchemy models for the league:
- Participant: Registered players
- Tournament: League events and their phase status
- TournamentParticipant: Per-tournament stats and league points
- Match: Group-stage and bracket battles
"""

from .base import Base
from .participant import Participant
from .tournament import (
    BRACKET_PHASE,
    Match,
    Tournament,
    TournamentParticipant,
    TournamentStatus,
)
from .slots import Player, Slot, UNASSIGNED, Unassigned

__all__ = [
    "Base",
    "BRACKET_PHASE",
    "Match",
    "Participant",
    "Player",
    "Slot",
    "Tournament",
    "TournamentParticipant",
    "TournamentStatus",
    "UNASSIGNED",
    "Unassigned",
]
