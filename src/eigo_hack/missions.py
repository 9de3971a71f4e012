"""Daily mission generation and progress tracking."""
import random
from dataclasses import replace
from datetime import date
from typing import NamedTuple

from loguru import logger

from eigo_hack.db import transaction
from eigo_hack.models import CATEGORIES, DailyMission, MissionState, Stats
from eigo_hack.scoring import rank_at_least
from eigo_hack.store import MISSIONS, STATS, decode_missions, decode_stats, read_slot, write_slot

MAX_MISSIONS = 3
MIN_ATTEMPTS_FOR_WEAKNESS = 3
UNRANKED_CATEGORIES = ("weakness", "review")


class MissionUpdate(NamedTuple):
    state: MissionState
    newly_completed: list
    total_exp: int


def find_weak_category(stats: Stats) -> str | None:
    """Category with the lowest accuracy among those tried more than twice.

    Ties go to the category listed first in ``CATEGORIES``.
    """
    played = [
        cat for cat in CATEGORIES
        if cat in stats.category_stats and stats.category_stats[cat].total >= MIN_ATTEMPTS_FOR_WEAKNESS
    ]
    if not played:
        return None
    return min(played, key=lambda cat: stats.category_stats[cat].rate)


def generate_daily_missions(stats: Stats, today: date, rng: random.Random | None = None) -> MissionState:
    rng = rng or random.Random()
    missions = []

    weak = find_weak_category(stats)
    if weak:
        missions.append(DailyMission(
            id="cat_1", type="solve_category", description=f"「{weak}」の問題を5問正解しよう",
            target=5, exp_reward=75, category=weak,
        ))
    else:
        missions.append(DailyMission(
            id="cat_generic_1", type="solve_category", description="好きな分野の問題を10問正解しよう",
            target=10, exp_reward=50, category="all",
        ))

    missions.append(DailyMission(
        id="rank_1", type="get_rank", description="Bランク以上を1回取ろう",
        target=1, exp_reward=100, rank="B",
    ))
    missions.append(DailyMission(
        id="total_1", type="answer_total", description="合計20問に解答しよう",
        target=20, exp_reward=50,
    ))

    missions = missions[:MAX_MISSIONS]
    rng.shuffle(missions)
    return MissionState(date=today.isoformat(), missions=missions)


def refresh_mission_state(
    state: MissionState | None, stats: Stats, today: date, rng: random.Random | None = None,
) -> MissionState:
    """Keep ``state`` if it belongs to ``today``, otherwise generate a new day."""
    if state is not None and state.date == today.isoformat():
        return state
    logger.info("Generating daily missions for {}", today.isoformat())
    return generate_daily_missions(stats, today, rng)


def ensure_daily_missions(db_path: str, today: date, rng: random.Random | None = None) -> MissionState:
    """Load today's missions, generating and storing them if absent or stale."""
    with transaction(db_path) as conn:
        current = decode_missions(read_slot(conn, MISSIONS))
        state = refresh_mission_state(current, decode_stats(read_slot(conn, STATS)), today, rng)
        if state is not current:
            write_slot(conn, MISSIONS, state.to_dict())
    return state


def progress_increment(mission: DailyMission, result, session_category: str) -> int:
    if mission.type == "answer_total":
        return result.total_questions
    if mission.type == "solve_category":
        if session_category in UNRANKED_CATEGORIES:
            return 0
        if mission.category == "all" or mission.category == session_category:
            return result.correct_answers
        return 0
    if mission.type == "get_rank":
        if mission.rank and rank_at_least(result.rank, mission.rank):
            return 1
        return 0
    if mission.type == "perfect_game":
        if result.total_questions > 0 and result.correct_answers == result.total_questions:
            return 1
        return 0
    return 0


def apply_result(state: MissionState, result, session_category: str) -> MissionUpdate:
    """Advance every open mission with one finished session.

    Completed missions are left untouched, so each reward is granted once.
    """
    newly_completed = []
    total_exp = 0
    missions = []
    for mission in state.missions:
        if mission.completed:
            missions.append(mission)
            continue
        progress = mission.progress + progress_increment(mission, result, session_category)
        completed = progress >= mission.target
        updated = replace(mission, progress=progress, completed=completed)
        if completed:
            newly_completed.append(updated)
            total_exp += mission.exp_reward
            logger.info("Mission {} completed (+{} exp)", mission.id, mission.exp_reward)
        missions.append(updated)
    return MissionUpdate(MissionState(date=state.date, missions=missions), newly_completed, total_exp)
