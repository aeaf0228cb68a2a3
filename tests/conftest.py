"""Shared fixtures: an in-memory league database and tournament builders."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from spin_league.competition import PhaseController, ScoreKeeper, TournamentManager
from spin_league.db import Database


@pytest.fixture
async def database():
    """Fresh in-memory database with the schema created."""
    db = Database("sqlite+aiosqlite:///:memory:")
    await db.initialize(max_retries=1)
    await db.create_tables()
    yield db
    await db.close()


@pytest.fixture
async def db(database: Database):
    """Session used by every engine service in a test."""
    async with database.async_session() as session:
        yield session


@pytest.fixture
def manager(db: AsyncSession):
    return TournamentManager(db)


@pytest.fixture
def controller(db: AsyncSession):
    return PhaseController(db)


@pytest.fixture
def keeper(db: AsyncSession):
    return ScoreKeeper(db)


@pytest.fixture
def make_tournament(manager: TournamentManager):
    """Create a tournament and join ``size`` freshly registered participants."""
    counter = {"next": 0}

    async def _make(size: int, name: str = "Weekly Cup"):
        tournament = await manager.create_tournament(name)
        participant_ids = []
        for _ in range(size):
            counter["next"] += 1
            participant = await manager.create_participant(f"blader-{counter['next']}")
            await manager.add_participant(tournament.id, participant.id)
            participant_ids.append(participant.id)
        return tournament.id, participant_ids

    return _make


async def play_out(keeper: ScoreKeeper, match, slot: int = 1, finish: str = "Over"):
    """Score rounds for one side until the match is decided."""
    winner_id = match.player1_id if slot == 1 else match.player2_id
    while match.winner_id is None:
        match = await keeper.record_win(match.id, winner_id, finish)
    return match
