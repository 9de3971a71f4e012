"""Session scoring and rank assignment."""
import math

from eigo_hack.models import RANKS, GameResult

BASE_POINTS = 10
SPEED_BONUS_SECONDS = 10

# Highest first; the first threshold the score reaches wins.
RANK_THRESHOLDS = (("S", 320), ("A", 240), ("B", 150), ("C", 75))

RANK_COMMENTS = {
    "S": "完璧です！正答率・スピードともに最高レベル！",
    "A": "素晴らしい成績です！高い正答率を維持できています。",
    "B": "良い調子です！この調子で正答率を上げていきましょう。",
    "C": "まずは基本をマスター！正答率を意識して再挑戦しよう。",
    "D": "まだ伸びしろあり！まずは正解することを目標に。",
}


def answer_points(is_correct: bool, elapsed_seconds: float) -> int:
    """Raw points for one answer: a base for being right plus a bonus for speed."""
    if not is_correct:
        return 0
    bonus = max(0, math.ceil(SPEED_BONUS_SECONDS - elapsed_seconds))
    return BASE_POINTS + min(bonus, SPEED_BONUS_SECONDS)


def get_rank(score: int) -> str:
    for rank, threshold in RANK_THRESHOLDS:
        if score >= threshold:
            return rank
    return "D"


def rank_at_least(achieved: str, required: str) -> bool:
    """True when ``achieved`` is as good as ``required`` under S < A < B < C < D.

    Plain character codes would put S after D, so ranks compare by position.
    """
    return RANKS.index(achieved[0]) <= RANKS.index(required[0])


def compute_result(raw_score: int, correct: int, total: int) -> GameResult:
    correct_rate = correct / total if total > 0 else 0
    # Squared rate: fast but careless play scores far lower than its raw points.
    final_score = math.floor(raw_score * correct_rate ** 2 + 0.5)
    rank = get_rank(final_score)
    return GameResult(
        score=final_score,
        correct_answers=correct,
        total_questions=total,
        rank=rank,
        comment=RANK_COMMENTS[rank],
    )
