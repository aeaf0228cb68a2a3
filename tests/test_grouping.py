"""Tests for group stage partitioning."""

import pytest

from spin_league.competition.grouping import (
    group_count,
    group_label,
    members_by_group,
    partition,
)
from spin_league.exceptions import PreconditionFailedError
from spin_league.models import TournamentParticipant


def links(n, tournament_id=1):
    return [
        TournamentParticipant(id=i + 1, tournament_id=tournament_id, participant_id=100 + i)
        for i in range(n)
    ]


class TestGroupCount:
    @pytest.mark.parametrize("n,expected", [
        (2, 1), (9, 1), (10, 1), (11, 2), (20, 2), (21, 3), (80, 8), (81, 9),
    ])
    def test_groups_of_at_most_ten(self, n, expected):
        assert group_count(n) == expected


class TestGroupLabel:
    def test_single_group_is_bare_letter(self):
        assert group_label(0, 1) == "A"

    def test_several_groups_are_prefixed(self):
        assert [group_label(i, 3) for i in range(3)] == ["Group A", "Group B", "Group C"]

    def test_labels_wrap_after_eight_groups(self):
        assert group_label(8, 9) == "Group A"


class TestPartition:
    def test_rejects_fewer_than_two(self):
        with pytest.raises(PreconditionFailedError):
            partition(links(1))
        with pytest.raises(PreconditionFailedError):
            partition([])

    def test_nine_players_share_one_group(self):
        groups = partition(links(9))
        assert list(groups) == ["A"]
        assert len(groups["A"]) == 9

    def test_members_dealt_by_join_order(self):
        members = links(23)
        groups = partition(members)

        assert list(groups) == ["Group A", "Group B", "Group C"]
        assert [len(g) for g in groups.values()] == [8, 8, 7]
        assert groups["Group A"][:3] == [members[0], members[3], members[6]]
        assert groups["Group B"][0] is members[1]

    def test_every_participant_in_exactly_one_group(self):
        members = links(37)
        groups = partition(members)
        placed = [link for group in groups.values() for link in group]
        assert sorted(link.id for link in placed) == [link.id for link in members]

    def test_oversized_field_merges_wrapped_groups(self):
        groups = partition(links(90))
        assert len(groups) == 8
        assert sum(len(g) for g in groups.values()) == 90


class TestMembersByGroup:
    def test_skips_unlabeled_and_orders_by_label(self):
        members = links(4)
        members[0].group_label = "Group B"
        members[1].group_label = "Group A"
        members[3].group_label = "Group B"

        grouped = members_by_group(members)
        assert list(grouped) == ["Group A", "Group B"]
        assert grouped["Group B"] == [members[0], members[3]]
