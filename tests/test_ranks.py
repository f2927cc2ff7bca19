"""Tests for the rank ladder."""

from __future__ import annotations

import pytest

from morningquest import ranks


class TestRankTable:
    def test_thirty_five_ranks(self) -> None:
        assert ranks.TOTAL_RANKS == 35
        assert ranks.MAX_RANK == 34

    def test_first_rank(self) -> None:
        assert ranks.rank_title_short(0) == "Rookie Chick"
        assert ranks.rank_title(0) == "🐣 Rookie Chick"
        assert ranks.class_for(0).stars == 1

    def test_class_advances_before_grade(self) -> None:
        assert ranks.rank_title_short(4) == "Master Chick"
        assert ranks.rank_title_short(5) == "Rookie Bunny"

    def test_last_rank(self) -> None:
        assert ranks.rank_title_short(34) == "Master King"
        assert ranks.class_for(34).stars == 5

    def test_rank_formula(self) -> None:
        rank = 3 * 5 + 2
        assert ranks.grade_for(rank).name == "Lion"
        assert ranks.class_for(rank).name == "Ace"


class TestClampRank:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [(-3, 0), (99, 34), ("7", 7), (12.9, 12), ("junk", 0), (None, 0)],
    )
    def test_clamp(self, raw: object, expected: int) -> None:
        assert ranks.clamp_rank(raw) == expected

    def test_out_of_range_lookup_is_clamped(self) -> None:
        assert ranks.grade_for(500).name == "King"
        assert ranks.grade_for(-1).name == "Chick"


class TestRankFlags:
    def test_grade_up_on_class_wrap(self) -> None:
        assert ranks.is_grade_up(5)
        assert ranks.is_grade_up(30)

    def test_not_grade_up(self) -> None:
        assert not ranks.is_grade_up(0)
        assert not ranks.is_grade_up(6)

    def test_max_rank(self) -> None:
        assert ranks.is_max_rank(34)
        assert not ranks.is_max_rank(33)
