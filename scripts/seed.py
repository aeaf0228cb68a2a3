#!/usr/bin/env python3
"""
Seed the league database with mock data.

Usage:
    python scripts/seed.py [--fresh]

Registers Blader_1 .. Blader_32 (nicknames already taken are skipped),
creates a mock tournament and joins every active participant to it.
``--fresh`` drops and recreates the schema first.

Uses DATABASE_URL like the API does.
"""

import asyncio
import sys
from datetime import datetime
from typing import Dict, Optional

from spin_league.competition import TournamentManager
from spin_league.config import config
from spin_league.db import Database

MOCK_PARTICIPANTS = 32
MIN_PARTICIPANTS = 4
AVATAR_URL = "https://api.dicebear.com/7.x/avataaars/svg?seed={nickname}"


async def seed(database: Database, count: int = MOCK_PARTICIPANTS, fresh: bool = False,
               now: Optional[datetime] = None) -> Dict:
    """
    Create the mock participants and one mock tournament.

    Returns:
        Summary with the number of participants created and the tournament id
    """
    now = now or datetime.now()
    if fresh:
        await database.drop_tables()
    await database.create_tables()

    async with database.get_session() as session:
        manager = TournamentManager(session)

        taken = {p.nickname for p in await manager.list_participants(include_archived=True)}
        created = 0
        for i in range(1, count + 1):
            nickname = f"Blader_{i}"
            if nickname in taken:
                continue
            await manager.create_participant(nickname, AVATAR_URL.format(nickname=nickname))
            print(f"Created Participant: {nickname}")
            created += 1

        participants = await manager.list_participants()
        if len(participants) < MIN_PARTICIPANTS:
            raise RuntimeError(
                f"Not enough participants to seed tournament (need at least {MIN_PARTICIPANTS})"
            )

        tournament = await manager.create_tournament(f"Mock Blade Battle {now:%H:%M}", date=now)
        print(f"Created Tournament: {tournament.name}")

        for participant in participants:
            await manager.add_participant(tournament.id, participant.id)

    print(f"Added {len(participants)} participants to tournament {tournament.id}.")
    return {
        "created": created,
        "participants": len(participants),
        "tournament_id": tournament.id,
    }


async def run(fresh: bool) -> None:
    database = Database(config.get_database_url(), echo=config.db_echo, pool_size=config.db_pool_size)
    try:
        await database.initialize()
        await seed(database, fresh=fresh)
    finally:
        await database.close()


def main():
    print("Seeding Mock Data...")
    try:
        asyncio.run(run(fresh="--fresh" in sys.argv[1:]))
    except Exception as e:
        print(f"\nSeeding failed: {e}")
        return 1

    print("Seeding Complete. Restart the API if it is running.")
    return 0


if __name__ == "__main__":
    exit(main())
