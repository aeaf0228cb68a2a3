"""
Tournament models: events, their participant links and their matches.

A tournament owns its participant links (carrying per-tournament stats and
the cross-tournament league points accumulator) and its matches (group-stage
round-robin games and the single-elimination bracket tree).
"""

from enum import Enum
from typing import Optional
from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey, Index
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from .base import Base
from .slots import Slot, slot_of, participant_of

BRACKET_PHASE = "Bracket"


class TournamentStatus(str, Enum):
    CREATED = "Created"
    GROUPS_GENERATED = "GroupsGenerated"
    IN_PROGRESS = "InProgress"
    BRACKET_IN_PROGRESS = "BracketInProgress"
    FINISHED = "Finished"


class Tournament(Base):
    """
    A single league event.

    Status moves Created -> GroupsGenerated -> InProgress ->
    BracketInProgress -> Finished and only changes through the
    PhaseController. Reset returns it to Created.
    """
    __tablename__ = "tournaments"

    # Primary fields
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    date = Column(DateTime, nullable=False)

    # Tournament Status
    status = Column(String(50), default=TournamentStatus.CREATED.value, nullable=False)
    is_archived = Column(Boolean, default=False, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc), nullable=False)

    # Relationships
    participants = relationship(
        "TournamentParticipant",
        back_populates="tournament",
        cascade="all, delete-orphan",
        order_by="TournamentParticipant.id",
    )
    matches = relationship(
        "Match",
        back_populates="tournament",
        cascade="all, delete-orphan",
        order_by="Match.id",
    )

    def __init__(self, **kwargs):
        now = datetime.now(timezone.utc)
        kwargs.setdefault('status', TournamentStatus.CREATED.value)
        kwargs.setdefault('is_archived', False)
        if kwargs.get('date') is None:
            kwargs['date'] = now
        kwargs.setdefault('created_at', now)
        kwargs.setdefault('updated_at', now)

        super().__init__(**kwargs)

    @property
    def phase_status(self) -> TournamentStatus:
        """Status as an enum member"""
        return TournamentStatus(self.status)

    def __repr__(self):
        return f"<Tournament(id={self.id}, name='{self.name}', status='{self.status}')>"


class TournamentParticipant(Base):
    """
    Participation of one player in one tournament.

    Holds the group assignment and every per-tournament counter, plus
    ``league_points``, which survives tournament resets.
    """
    __tablename__ = "tournament_participants"

    # Primary fields
    id = Column(Integer, primary_key=True, index=True)
    tournament_id = Column(Integer, ForeignKey("tournaments.id"), nullable=False, index=True)
    participant_id = Column(Integer, ForeignKey("participants.id"), nullable=False, index=True)

    # Group stage
    group_label = Column(String(50), default="", nullable=False)

    # Results
    wins = Column(Integer, default=0, nullable=False)
    losses = Column(Integer, default=0, nullable=False)
    draws = Column(Integer, default=0, nullable=False)
    points = Column(Integer, default=0, nullable=False)  # 3 per win

    # Finish Stats
    spin_finishes = Column(Integer, default=0, nullable=False)
    burst_finishes = Column(Integer, default=0, nullable=False)
    over_finishes = Column(Integer, default=0, nullable=False)  # Over and Out
    xtreme_finishes = Column(Integer, default=0, nullable=False)

    # Cross-tournament ranking currency
    league_points = Column(Integer, default=0, nullable=False)

    # Timestamps
    joined_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)

    # Relationships
    tournament = relationship("Tournament", back_populates="participants")
    participant = relationship("Participant", back_populates="tournament_entries")

    STAT_FIELDS = (
        'wins', 'losses', 'draws', 'points',
        'spin_finishes', 'burst_finishes', 'over_finishes', 'xtreme_finishes',
    )

    def __init__(self, **kwargs):
        kwargs.setdefault('group_label', '')
        for field in self.STAT_FIELDS:
            kwargs.setdefault(field, 0)
        kwargs.setdefault('league_points', 0)
        kwargs.setdefault('joined_at', datetime.now(timezone.utc))

        super().__init__(**kwargs)

    __table_args__ = (
        Index('idx_tournament_participant', 'tournament_id', 'participant_id', unique=True),
    )

    def reset_stats(self) -> None:
        """Clear the group and every per-tournament counter, keeping league points"""
        self.group_label = ''
        for field in self.STAT_FIELDS:
            setattr(self, field, 0)

    def __repr__(self):
        return (f"<TournamentParticipant(id={self.id}, tournament_id={self.tournament_id}, "
                f"participant_id={self.participant_id}, group='{self.group_label}')>")


class Match(Base):
    """
    A battle between two players.

    ``phase`` is the group label for round-robin matches and ``"Bracket"`` for
    elimination matches. Bracket matches may point at a parent match through
    ``next_match_id``; ``next_match_slot`` (1 or 2) says which of the parent's
    player positions the winner takes.
    """
    __tablename__ = "matches"

    # Primary fields
    id = Column(Integer, primary_key=True, index=True)
    tournament_id = Column(Integer, ForeignKey("tournaments.id"), nullable=False, index=True)
    phase = Column(String(50), nullable=False)
    round = Column(Integer, nullable=False)

    # Player positions, read through player_slot()
    player1_id = Column(Integer, ForeignKey("participants.id"))
    player2_id = Column(Integer, ForeignKey("participants.id"))

    # Score
    score_p1 = Column(Integer, default=0, nullable=False)
    score_p2 = Column(Integer, default=0, nullable=False)
    winner_id = Column(Integer, ForeignKey("participants.id"))

    # Bracket tree
    next_match_id = Column(Integer, ForeignKey("matches.id"), index=True)
    next_match_slot = Column(Integer)

    # Timestamps
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc), nullable=False)

    # Relationships
    tournament = relationship("Tournament", back_populates="matches")
    # read-only views, loaded only for tournament details; slots are written through the id columns
    player1 = relationship("Participant", foreign_keys=[player1_id], viewonly=True)
    player2 = relationship("Participant", foreign_keys=[player2_id], viewonly=True)

    def __init__(self, **kwargs):
        kwargs.setdefault('score_p1', 0)
        kwargs.setdefault('score_p2', 0)

        now = datetime.now(timezone.utc)
        kwargs.setdefault('created_at', now)
        kwargs.setdefault('updated_at', now)

        super().__init__(**kwargs)

    __table_args__ = (
        Index('idx_match_tournament_phase', 'tournament_id', 'phase', 'round'),
    )

    def player_slot(self, number: int) -> Slot:
        """Get player position 1 or 2"""
        if number == 1:
            return slot_of(self.player1_id)
        if number == 2:
            return slot_of(self.player2_id)
        raise ValueError(f"Invalid player slot: {number}")

    def assign_slot(self, number: int, slot: Slot) -> None:
        """Set player position 1 or 2"""
        if number == 1:
            self.player1_id = participant_of(slot)
        elif number == 2:
            self.player2_id = participant_of(slot)
        else:
            raise ValueError(f"Invalid player slot: {number}")

    @property
    def is_bracket(self) -> bool:
        return self.phase == BRACKET_PHASE

    @property
    def is_finished(self) -> bool:
        return self.winner_id is not None

    @property
    def loser_id(self) -> Optional[int]:
        """Participant id of the beaten player, if the match is decided"""
        if self.winner_id is None:
            return None
        if self.winner_id == self.player1_id:
            return self.player2_id
        return self.player1_id

    def __repr__(self):
        return (f"<Match(id={self.id}, phase='{self.phase}', round={self.round}, "
                f"p1={self.player1_id}, p2={self.player2_id}, "
                f"score={self.score_p1}-{self.score_p2}, winner={self.winner_id})>")
