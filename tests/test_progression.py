"""Tests for stamp card progression."""

from __future__ import annotations

import datetime as dt

from morningquest.models import MissionLog, StampCard
from morningquest.progression import OverflowPolicy, ProgressionLedger

TODAY = dt.date(2024, 5, 13)


def _log(success: bool = True, bonus: bool = False) -> MissionLog:
    return MissionLog(
        date=TODAY,
        completed_at=dt.datetime(2024, 5, 13, 7, 50),
        total_duration_seconds=3000,
        is_success=success,
        is_bonus=bonus,
    )


class TestApplyOutcome:
    def test_success_adds_one(self) -> None:
        card = StampCard(current_stamps=3)
        assert ProgressionLedger(card).apply_outcome(_log()) == 1
        assert card.current_stamps == 4

    def test_bonus_adds_two(self) -> None:
        card = StampCard(current_stamps=3)
        assert ProgressionLedger(card).apply_outcome(_log(bonus=True)) == 2
        assert card.current_stamps == 5

    def test_late_adds_nothing(self) -> None:
        card = StampCard(current_stamps=3)
        assert ProgressionLedger(card).apply_outcome(_log(success=False, bonus=True)) == 0
        assert card.current_stamps == 3

    def test_ninth_to_tenth_makes_reward_pending(self) -> None:
        card = StampCard(current_stamps=9)
        ledger = ProgressionLedger(card)
        ledger.apply_outcome(_log())
        assert card.current_stamps == 10
        assert ledger.reward_pending
        assert ledger.stamps_until_reward == 0

    def test_stamps_until_reward(self) -> None:
        assert ProgressionLedger(StampCard(current_stamps=6)).stamps_until_reward == 4


class TestAcknowledgeReward:
    def test_nothing_pending(self) -> None:
        card = StampCard(current_stamps=9)
        assert ProgressionLedger(card).acknowledge_reward("hi", TODAY) is None
        assert card.rank == 0
        assert card.medals == []

    def test_reward_resets_and_ranks_up(self) -> None:
        card = StampCard(current_stamps=10, rank=3)
        medal = ProgressionLedger(card).acknowledge_reward("Great job!", TODAY)
        assert medal is not None
        assert card.current_stamps == 0
        assert card.total_rewards == 1
        assert card.rank == 4
        assert card.medals == [medal]
        assert medal.rank_at_time == 4
        assert medal.title == "🐣 Master Chick"
        assert medal.comment == "Great job!"
        assert medal.date == TODAY
        assert medal.id.startswith("medal-")

    def test_bonus_to_exactly_ten_is_one_reward(self) -> None:
        card = StampCard(current_stamps=8)
        ledger = ProgressionLedger(card)
        ledger.apply_outcome(_log(bonus=True))
        assert ledger.acknowledge_reward("yay", TODAY) is not None
        assert ledger.acknowledge_reward("again", TODAY) is None
        assert card.rank == 1
        assert len(card.medals) == 1

    def test_overflow_is_discarded_by_default(self) -> None:
        card = StampCard(current_stamps=9)
        ledger = ProgressionLedger(card)
        ledger.apply_outcome(_log(bonus=True))
        assert card.current_stamps == 11
        ledger.acknowledge_reward("yay", TODAY)
        assert card.current_stamps == 0

    def test_overflow_can_carry(self) -> None:
        card = StampCard(current_stamps=9)
        ledger = ProgressionLedger(card, overflow_policy=OverflowPolicy.CARRY)
        ledger.apply_outcome(_log(bonus=True))
        ledger.acknowledge_reward("yay", TODAY)
        assert card.current_stamps == 1

    def test_rank_caps_at_max(self) -> None:
        card = StampCard(current_stamps=10, rank=34)
        ledger = ProgressionLedger(card)
        medal = ledger.acknowledge_reward("Legend", TODAY)
        assert medal is not None
        assert card.rank == 34
        assert medal.rank_at_time == 34
        assert card.total_rewards == 1
        assert ledger.is_max_rank

    def test_grade_up_flag(self) -> None:
        card = StampCard(current_stamps=10, rank=4)
        ledger = ProgressionLedger(card)
        ledger.acknowledge_reward("Bunny time", TODAY)
        assert card.rank == 5
        assert ledger.is_grade_up

    def test_custom_threshold(self) -> None:
        card = StampCard(current_stamps=3)
        ledger = ProgressionLedger(card, threshold=3)
        assert ledger.reward_pending
