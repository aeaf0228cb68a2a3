"""Tests for the tournament phase state machine."""

import pytest

from sqlalchemy.exc import IntegrityError

from spin_league.competition import LeaguePointsLedger, PhaseController
from spin_league.competition.phases import select_qualifiers
from spin_league.exceptions import InternalError, NotFoundError, PreconditionFailedError
from spin_league.models import BRACKET_PHASE, TournamentParticipant, TournamentStatus

from conftest import play_out


async def play_group_stage(controller, keeper, tournament_id):
    for match in await controller.get_matches(tournament_id):
        await play_out(keeper, match)


async def play_bracket(controller, keeper, tournament_id):
    bracket = await controller.get_matches(tournament_id, BRACKET_PHASE)
    for match in sorted(bracket, key=lambda m: (m.round, m.id)):
        await play_out(keeper, match)
    return bracket


async def league_points(controller, tournament_id):
    return {link.participant_id: link.league_points for link in await controller.get_links(tournament_id)}


class TestSelectQualifiers:
    def test_top_four_per_group_by_points_then_wins(self):
        links = [
            TournamentParticipant(id=i, participant_id=i, group_label="A", points=p, wins=w)
            for i, (p, w) in enumerate([(3, 1), (9, 3), (6, 2), (6, 3), (0, 0), (9, 3)], start=1)
        ]
        qualifiers = select_qualifiers(links)
        assert [q.participant_id for q in qualifiers] == [2, 6, 4, 3]

    def test_groups_in_label_order(self):
        links = [
            TournamentParticipant(id=1, participant_id=1, group_label="Group B", points=3),
            TournamentParticipant(id=2, participant_id=2, group_label="Group A", points=0),
            TournamentParticipant(id=3, participant_id=3, group_label="Group A", points=6),
        ]
        assert [q.participant_id for q in select_qualifiers(links, per_group=1)] == [3, 1]


class TestGroupGeneration:
    @pytest.mark.asyncio
    async def test_assigns_every_participant(self, controller, make_tournament):
        tournament_id, _ = await make_tournament(12)
        tournament = await controller.generate_groups(tournament_id)

        assert tournament.status == TournamentStatus.GROUPS_GENERATED.value
        labels = [link.group_label for link in await controller.get_links(tournament_id)]
        assert labels.count("Group A") == 6
        assert labels.count("Group B") == 6

    @pytest.mark.asyncio
    async def test_regenerating_groups_is_allowed(self, controller, manager, make_tournament):
        tournament_id, _ = await make_tournament(10)
        await controller.generate_groups(tournament_id)
        late = await manager.create_participant("latecomer")
        await manager.add_participant(tournament_id, late.id)

        await controller.generate_groups(tournament_id)
        labels = {link.group_label for link in await controller.get_links(tournament_id)}
        assert labels == {"Group A", "Group B"}

    @pytest.mark.asyncio
    async def test_needs_two_participants(self, controller, make_tournament):
        tournament_id, _ = await make_tournament(1)
        with pytest.raises(PreconditionFailedError):
            await controller.generate_groups(tournament_id)

        tournament = await controller.get_tournament_record(tournament_id)
        assert tournament.status == TournamentStatus.CREATED.value

    @pytest.mark.asyncio
    async def test_unknown_tournament(self, controller):
        with pytest.raises(NotFoundError):
            await controller.generate_groups(404)


class TestMatchGeneration:
    @pytest.mark.asyncio
    async def test_requires_groups(self, controller, make_tournament):
        tournament_id, _ = await make_tournament(4)
        with pytest.raises(PreconditionFailedError):
            await controller.generate_matches(tournament_id)

        assert await controller.get_matches(tournament_id) == []

    @pytest.mark.asyncio
    async def test_schedules_and_awards_participation(self, controller, make_tournament):
        tournament_id, ids = await make_tournament(9)
        await controller.generate_groups(tournament_id)
        tournament = await controller.generate_matches(tournament_id)

        assert tournament.status == TournamentStatus.IN_PROGRESS.value
        matches = await controller.get_matches(tournament_id)
        assert len(matches) == 36
        assert {m.phase for m in matches} == {"A"}
        assert max(m.round for m in matches) == 9
        assert await league_points(controller, tournament_id) == {pid: 5 for pid in ids}

    @pytest.mark.asyncio
    async def test_cannot_schedule_twice(self, controller, make_tournament):
        tournament_id, _ = await make_tournament(3)
        await controller.generate_groups(tournament_id)
        await controller.generate_matches(tournament_id)

        with pytest.raises(PreconditionFailedError):
            await controller.generate_matches(tournament_id)
        with pytest.raises(PreconditionFailedError):
            await controller.generate_groups(tournament_id)

        assert len(await controller.get_matches(tournament_id)) == 3


class TestAdvance:
    @pytest.mark.asyncio
    async def test_open_matches_block_advance(self, controller, make_tournament):
        tournament_id, _ = await make_tournament(4)
        await controller.generate_groups(tournament_id)
        await controller.generate_matches(tournament_id)

        with pytest.raises(PreconditionFailedError):
            await controller.advance(tournament_id)

        tournament = await controller.get_tournament_record(tournament_id)
        assert tournament.status == TournamentStatus.IN_PROGRESS.value
        assert await controller.get_matches(tournament_id, BRACKET_PHASE) == []

    @pytest.mark.asyncio
    async def test_created_tournament_finishes_without_awards(self, controller, make_tournament):
        tournament_id, ids = await make_tournament(3)
        tournament = await controller.advance(tournament_id)

        assert tournament.status == TournamentStatus.FINISHED.value
        assert await league_points(controller, tournament_id) == {pid: 0 for pid in ids}

    @pytest.mark.asyncio
    async def test_full_tournament(self, controller, keeper, make_tournament):
        tournament_id, ids = await make_tournament(9)
        await controller.generate_groups(tournament_id)
        await controller.generate_matches(tournament_id)
        await play_group_stage(controller, keeper, tournament_id)

        tournament = await controller.advance(tournament_id)
        assert tournament.status == TournamentStatus.BRACKET_IN_PROGRESS.value

        bracket = await controller.get_matches(tournament_id, BRACKET_PHASE)
        assert len(bracket) == 3
        qualifiers = {m.player1_id for m in bracket} | {m.player2_id for m in bracket}
        qualifiers.discard(None)
        assert len(qualifiers) == 4
        points = await league_points(controller, tournament_id)
        assert sorted(points.values()) == [5, 5, 5, 5, 5, 13, 13, 13, 13]

        await play_bracket(controller, keeper, tournament_id)
        tournament = await controller.advance(tournament_id)
        assert tournament.status == TournamentStatus.FINISHED.value

        final = next(m for m in bracket if m.next_match_id is None)
        points = await league_points(controller, tournament_id)
        assert points[final.winner_id] == 13 + 35
        assert points[final.loser_id] == 13 + 19
        assert sorted(points.values()) == [5, 5, 5, 5, 5, 13, 13 + 12, 13 + 19, 13 + 35]

    @pytest.mark.asyncio
    async def test_two_player_final_has_no_third_place(self, controller, keeper, make_tournament):
        tournament_id, ids = await make_tournament(2)
        await controller.generate_groups(tournament_id)
        await controller.generate_matches(tournament_id)
        await play_group_stage(controller, keeper, tournament_id)
        await controller.advance(tournament_id)

        (final,) = await play_bracket(controller, keeper, tournament_id)
        await controller.advance(tournament_id)

        points = await league_points(controller, tournament_id)
        assert points[final.winner_id] == 5 + 8 + 35
        assert points[final.loser_id] == 5 + 8 + 19

    @pytest.mark.asyncio
    async def test_open_bracket_blocks_finish(self, controller, keeper, make_tournament):
        tournament_id, _ = await make_tournament(4)
        await controller.generate_groups(tournament_id)
        await controller.generate_matches(tournament_id)
        await play_group_stage(controller, keeper, tournament_id)
        await controller.advance(tournament_id)

        with pytest.raises(PreconditionFailedError):
            await controller.advance(tournament_id)

        tournament = await controller.get_tournament_record(tournament_id)
        assert tournament.status == TournamentStatus.BRACKET_IN_PROGRESS.value

    @pytest.mark.asyncio
    async def test_single_qualifier_finishes_after_groups(self, db, controller, keeper, make_tournament):
        tournament_id, ids = await make_tournament(2)
        await controller.generate_groups(tournament_id)
        await controller.generate_matches(tournament_id)
        await play_group_stage(controller, keeper, tournament_id)

        link = await controller.get_link(tournament_id, ids[1])
        link.group_label = ""
        await db.commit()

        tournament = await controller.advance(tournament_id)
        assert tournament.status == TournamentStatus.FINISHED.value
        assert await controller.get_matches(tournament_id, BRACKET_PHASE) == []


class TestUnevenBrackets:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("size,groups,qualifier_count,feeder_rounds", [
        (11, 2, 8, {2}),
        (21, 3, 12, {2, 3}),
    ])
    async def test_full_tournament_then_reset(
        self, controller, keeper, make_tournament, size, groups, qualifier_count, feeder_rounds
    ):
        tournament_id, ids = await make_tournament(size)
        await controller.generate_groups(tournament_id)
        await controller.generate_matches(tournament_id)
        labels = {link.group_label for link in await controller.get_links(tournament_id)}
        assert len(labels) == groups

        await play_group_stage(controller, keeper, tournament_id)
        await controller.advance(tournament_id)
        bracket = await play_bracket(controller, keeper, tournament_id)
        assert len(bracket) == qualifier_count - 1

        tournament = await controller.advance(tournament_id)
        assert tournament.status == TournamentStatus.FINISHED.value

        points = await league_points(controller, tournament_id)
        values = sorted(points.values())
        assert values.count(5 + 8 + 35) == 1
        assert values.count(5 + 8 + 19) == 1
        assert values.count(5 + 8 + 12) == 1
        assert values.count(5 + 8) == qualifier_count - 3
        assert values.count(5) == size - qualifier_count

        # third place comes from the matches feeding the final, whatever their round
        final = next(m for m in bracket if m.next_match_id is None)
        feeders = [m for m in bracket if m.next_match_id == final.id]
        assert {m.round for m in feeders} == feeder_rounds
        third = next(pid for pid, p in points.items() if p == 5 + 8 + 12)
        assert third in {m.loser_id for m in feeders}

        tournament = await controller.reset(tournament_id)
        assert tournament.status == TournamentStatus.CREATED.value
        assert await controller.get_matches(tournament_id) == []
        assert await league_points(controller, tournament_id) == points


class FailingLedger(LeaguePointsLedger):
    """Ledger whose writes fail the way a database constraint would."""

    def __init__(self, fail_on):
        self.fail_on = fail_on

    def _award(self, link, points, reason):
        if reason == self.fail_on:
            raise IntegrityError("UPDATE tournament_participants SET league_points=?", {}, Exception("constraint failed"))
        return super()._award(link, points, reason)


class TestRollback:
    @pytest.mark.asyncio
    async def test_failed_match_generation_changes_nothing(self, db, make_tournament):
        tournament_id, _ = await make_tournament(4)
        controller = PhaseController(db, ledger=FailingLedger("participation"))
        await controller.generate_groups(tournament_id)

        with pytest.raises(InternalError):
            await controller.generate_matches(tournament_id)

        tournament = await controller.get_tournament_record(tournament_id)
        assert tournament.status == TournamentStatus.GROUPS_GENERATED.value
        assert await controller.get_matches(tournament_id) == []
        assert set((await league_points(controller, tournament_id)).values()) == {0}

    @pytest.mark.asyncio
    async def test_failed_bracket_opening_discards_flushed_matches(self, db, controller, keeper, make_tournament):
        tournament_id, _ = await make_tournament(4)
        await controller.generate_groups(tournament_id)
        await controller.generate_matches(tournament_id)
        await play_group_stage(controller, keeper, tournament_id)

        failing = PhaseController(db, ledger=FailingLedger("qualification"))
        with pytest.raises(InternalError):
            await failing.advance(tournament_id)

        tournament = await controller.get_tournament_record(tournament_id)
        assert tournament.status == TournamentStatus.IN_PROGRESS.value
        assert await controller.get_matches(tournament_id, BRACKET_PHASE) == []
        assert len(await controller.get_matches(tournament_id)) == 6
        assert set((await league_points(controller, tournament_id)).values()) == {5}


class TestReset:
    @pytest.mark.asyncio
    async def test_reset_keeps_league_points(self, controller, keeper, make_tournament):
        tournament_id, ids = await make_tournament(4)
        await controller.generate_groups(tournament_id)
        await controller.generate_matches(tournament_id)
        await play_group_stage(controller, keeper, tournament_id)
        await controller.advance(tournament_id)

        tournament = await controller.reset(tournament_id)
        assert tournament.status == TournamentStatus.CREATED.value
        assert await controller.get_matches(tournament_id) == []

        for link in await controller.get_links(tournament_id):
            assert link.group_label == ""
            assert (link.wins, link.losses, link.points, link.over_finishes) == (0, 0, 0, 0)
            assert link.league_points == 13

    @pytest.mark.asyncio
    async def test_tournament_replays_after_reset(self, controller, make_tournament):
        tournament_id, _ = await make_tournament(5)
        await controller.generate_groups(tournament_id)
        await controller.generate_matches(tournament_id)
        await controller.reset(tournament_id)

        await controller.generate_groups(tournament_id)
        await controller.generate_matches(tournament_id)
        assert len(await controller.get_matches(tournament_id)) == 10
