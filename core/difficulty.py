"""Difficulty configuration for the seat-rush game engine.

Each difficulty tag maps to an immutable DifficultyConfig describing how
the compartment is populated and how aggressively standing passengers
compete for seats.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .constants import Difficulty, DEFAULT_DIFFICULTY


@dataclass(frozen=True)
class ResponseTimeRange:
    """Inclusive range of base reaction times for standing passengers (ms)."""

    min: int
    max: int


@dataclass(frozen=True)
class BoardingConfig:
    """How many standing passengers board at each station.

    Attributes:
        min_board: Fewest passengers added when boarding happens.
        max_board: Most passengers added when boarding happens.
        boarding_chance: Probability that boarding happens at a station.
    """

    min_board: int
    max_board: int
    boarding_chance: float


@dataclass(frozen=True)
class DifficultyConfig:
    """Generation and competition parameters for a difficulty level.

    Attributes:
        difficulty: The difficulty tag this config belongs to.
        display_name: Human-readable name.
        seated_npc_range: Inclusive [min, max] seated passengers at start.
        standing_npc_range: Inclusive [min, max] standing competitors.
        npc_claim_chance: Probability a standing passenger passively claims
            a seat freed during station advancement.
        npc_response_time: Range of competitor base reaction times.
        boarding: Boarding parameters for new standing passengers.
    """

    difficulty: Difficulty
    display_name: str
    seated_npc_range: tuple[int, int]
    standing_npc_range: tuple[int, int]
    npc_claim_chance: float
    npc_response_time: ResponseTimeRange
    boarding: BoardingConfig


DIFFICULTY_CONFIGS: dict[Difficulty, DifficultyConfig] = {
    Difficulty.EASY: DifficultyConfig(
        difficulty=Difficulty.EASY,
        display_name="Easy",
        seated_npc_range=(3, 4),
        standing_npc_range=(2, 3),
        npc_claim_chance=0.2,
        npc_response_time=ResponseTimeRange(min=600, max=1000),
        boarding=BoardingConfig(min_board=0, max_board=1, boarding_chance=0.2),
    ),
    Difficulty.NORMAL: DifficultyConfig(
        difficulty=Difficulty.NORMAL,
        display_name="Normal",
        seated_npc_range=(5, 5),
        standing_npc_range=(3, 4),
        npc_claim_chance=0.5,
        npc_response_time=ResponseTimeRange(min=400, max=800),
        boarding=BoardingConfig(min_board=1, max_board=2, boarding_chance=0.4),
    ),
    Difficulty.RUSH: DifficultyConfig(
        difficulty=Difficulty.RUSH,
        display_name="Rush Hour",
        seated_npc_range=(6, 6),
        standing_npc_range=(5, 6),
        npc_claim_chance=0.8,
        npc_response_time=ResponseTimeRange(min=250, max=600),
        boarding=BoardingConfig(min_board=1, max_board=2, boarding_chance=0.7),
    ),
}


def parse_difficulty(tag: Union[Difficulty, str, None]) -> Difficulty:
    """Convert a difficulty tag to a Difficulty, defaulting to NORMAL.

    Unknown or missing tags are not an error; they fall back to the
    default difficulty.
    """
    if isinstance(tag, Difficulty):
        return tag
    if tag is None:
        return DEFAULT_DIFFICULTY
    try:
        return Difficulty(str(tag).strip().lower())
    except ValueError:
        return DEFAULT_DIFFICULTY


def get_difficulty_config(tag: Union[Difficulty, str, None] = None) -> DifficultyConfig:
    """Look up the configuration for a difficulty tag."""
    return DIFFICULTY_CONFIGS[parse_difficulty(tag)]


def get_difficulty_options() -> list[Difficulty]:
    """All difficulties in ascending order of challenge."""
    return list(DIFFICULTY_CONFIGS)
