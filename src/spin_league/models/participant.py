"""
Participant model for registered league players.

Participants are never hard-deleted while tournaments reference them;
archiving hides them from listings and from the league table.
"""

from sqlalchemy import Column, Integer, String, DateTime, Boolean
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from .base import Base


class Participant(Base):
    """
    A player registered with the league.

    The nickname is the public display name and must be unique.
    """
    __tablename__ = "participants"

    # Primary fields
    id = Column(Integer, primary_key=True, index=True)
    nickname = Column(String(255), unique=True, nullable=False, index=True)
    avatar = Column(String(1024), default="")

    # Soft delete
    is_archived = Column(Boolean, default=False, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc), nullable=False)

    # Relationships
    tournament_entries = relationship("TournamentParticipant", back_populates="participant")

    def __init__(self, **kwargs):
        kwargs.setdefault('avatar', '')
        kwargs.setdefault('is_archived', False)

        now = datetime.now(timezone.utc)
        kwargs.setdefault('created_at', now)
        kwargs.setdefault('updated_at', now)

        super().__init__(**kwargs)

    def __repr__(self):
        return f"<Participant(id={self.id}, nickname='{self.nickname}', archived={self.is_archived})>"
