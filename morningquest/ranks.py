"""Rank ladder: grade (animal) x class (title) combinations.

Seven grades times five classes gives 35 ranks. Every reward advances one
class; after the fifth class the grade advances. ``rank = grade * 5 + class``.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Grade:
    """Animal tier with its display theme."""

    name: str
    emoji: str
    icon: str
    primary_color: str
    accent_color: str


@dataclass(frozen=True)
class RankClass:
    """Title tier shown as a star count."""

    name: str
    stars: int


GRADES: list[Grade] = [
    Grade("Chick", "🐣", "feather", "yellow", "bright_yellow"),
    Grade("Bunny", "🐰", "star", "sky_blue1", "deep_sky_blue1"),
    Grade("Kitty", "🐱", "cat", "hot_pink", "pink1"),
    Grade("Lion", "🦁", "trophy", "orange1", "dark_orange"),
    Grade("Dragon", "🐉", "flame", "red", "bright_red"),
    Grade("Unicorn", "🦄", "sparkles", "medium_purple", "violet"),
    Grade("King", "👑", "crown", "slate_blue1", "gold1"),
]

CLASSES: list[RankClass] = [
    RankClass("Rookie", 1),
    RankClass("Fighter", 2),
    RankClass("Ace", 3),
    RankClass("Champion", 4),
    RankClass("Master", 5),
]

TOTAL_RANKS = len(GRADES) * len(CLASSES)
MAX_RANK = TOTAL_RANKS - 1


def clamp_rank(rank: object) -> int:
    """Clamp any stored rank value into [0, MAX_RANK]; garbage becomes 0."""
    try:
        value = int(float(rank))  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0
    return max(0, min(value, MAX_RANK))


def grade_index(rank: int) -> int:
    return clamp_rank(rank) // len(CLASSES)


def class_index(rank: int) -> int:
    return clamp_rank(rank) % len(CLASSES)


def grade_for(rank: int) -> Grade:
    return GRADES[grade_index(rank)]


def class_for(rank: int) -> RankClass:
    return CLASSES[class_index(rank)]


def rank_title(rank: int) -> str:
    """Display title, e.g. "🐣 Rookie Chick"."""
    grade = grade_for(rank)
    return f"{grade.emoji} {rank_title_short(rank)}"


def rank_title_short(rank: int) -> str:
    """Title without the emoji, e.g. "Rookie Chick"."""
    return f"{class_for(rank).name} {grade_for(rank).name}"


def is_grade_up(rank: int) -> bool:
    """True when the class wrapped around and the grade just advanced."""
    return rank > 0 and class_index(rank) == 0


def is_max_rank(rank: int) -> bool:
    return rank >= MAX_RANK
