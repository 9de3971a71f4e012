"""Experience and level progression."""
from dataclasses import replace
from typing import NamedTuple

from eigo_hack.models import Stats


class LevelUp(NamedTuple):
    stats: Stats
    did_level_up: bool
    levels_gained: int


def exp_for_level(level: int) -> int:
    """Exp needed to advance from ``level`` to the next one."""
    return 100 + (level - 1) * 50


def apply_exp(stats: Stats, gained_exp: int) -> LevelUp:
    """Add exp and carry any overflow into as many levels as it covers.

    Returns a new ``Stats``; the caller persists it.
    """
    if gained_exp <= 0:
        return LevelUp(stats, False, 0)
    level = stats.level
    exp = stats.exp + gained_exp
    while exp >= exp_for_level(level):
        exp -= exp_for_level(level)
        level += 1
    gained_levels = level - stats.level
    return LevelUp(replace(stats, level=level, exp=exp), gained_levels > 0, gained_levels)


def level_progress(stats: Stats) -> float:
    """Percentage of the way to the next level."""
    return round(stats.exp / exp_for_level(stats.level) * 100, 1)
