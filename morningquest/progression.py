"""Stamp card progression: stamps, rewards, rank-ups and medals."""

from __future__ import annotations

import datetime as dt
import uuid
from enum import StrEnum

from morningquest import ranks
from morningquest.models import Medal, MissionLog, StampCard

DEFAULT_REWARD_THRESHOLD = 10
STAMPS_PER_SUCCESS = 1
STAMPS_PER_BONUS_SUCCESS = 2


class OverflowPolicy(StrEnum):
    """What happens to stamps above the threshold when a reward is claimed."""

    DISCARD = "discard"
    CARRY = "carry"


def _medal_id() -> str:
    return f"medal-{uuid.uuid4().hex[:12]}"


class ProgressionLedger:
    """Applies mission outcomes to a child's StampCard in place."""

    def __init__(
        self,
        card: StampCard,
        threshold: int = DEFAULT_REWARD_THRESHOLD,
        overflow_policy: OverflowPolicy = OverflowPolicy.DISCARD,
    ) -> None:
        self.card = card
        self.threshold = threshold
        self.overflow_policy = OverflowPolicy(overflow_policy)

    @property
    def reward_pending(self) -> bool:
        return self.card.current_stamps >= self.threshold

    @property
    def stamps_until_reward(self) -> int:
        return max(0, self.threshold - self.card.current_stamps)

    @property
    def is_grade_up(self) -> bool:
        return ranks.is_grade_up(self.card.rank)

    @property
    def is_max_rank(self) -> bool:
        return ranks.is_max_rank(self.card.rank)

    def apply_outcome(self, log: MissionLog) -> int:
        """Add stamps for a successful run. Returns the number of stamps added."""
        if not log.is_success:
            return 0
        stamps = STAMPS_PER_BONUS_SUCCESS if log.is_bonus else STAMPS_PER_SUCCESS
        self.card.current_stamps += stamps
        return stamps

    def acknowledge_reward(
        self,
        comment: str,
        today: dt.date | None = None,
    ) -> Medal | None:
        """Claim a pending reward: reset stamps, rank up once and award one medal.

        Returns None when no reward is pending. The medal records the rank
        reached by this reward.
        """
        if not self.reward_pending:
            return None

        overflow = self.card.current_stamps - self.threshold
        self.card.current_stamps = overflow if self.overflow_policy == OverflowPolicy.CARRY else 0
        self.card.total_rewards += 1
        self.card.rank = min(self.card.rank + 1, ranks.MAX_RANK)

        medal = Medal(
            id=_medal_id(),
            title=ranks.rank_title(self.card.rank),
            date=today or dt.date.today(),
            comment=comment,
            rank_at_time=self.card.rank,
        )
        self.card.medals.append(medal)
        return medal
